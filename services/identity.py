from dataclasses import dataclass
from typing import Callable
from services.storage import Storage
import logging
import uuid

logger = logging.getLogger(__name__)

VISITOR_ID_KEY = "pb_visitor_id"
SESSION_ID_KEY = "pb_session_id"


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class VisitorIdentity:
    visitor_id: str
    session_id: str


class IdentityProvider:
    """Hands out the visitor id (durable storage) and session id (session storage).

    Ids are created on first access and read back afterwards. If the storage
    drops writes, every call simply returns a fresh id.
    """

    def __init__(self, durable: Storage, session: Storage, id_factory: Callable[[], str] = _new_id):
        self.durable = durable
        self.session = session
        self.id_factory = id_factory

    def _get_or_create(self, storage: Storage, key: str) -> str:
        value = storage.get(key)
        if not value:
            value = self.id_factory()
            storage.set(key, value)
            logger.debug("created new %s: %s", key, value)
        return value

    def get_or_create_visitor_id(self) -> str:
        return self._get_or_create(self.durable, VISITOR_ID_KEY)

    def get_session_id(self) -> str:
        return self._get_or_create(self.session, SESSION_ID_KEY)

    def identity(self) -> VisitorIdentity:
        return VisitorIdentity(
            visitor_id=self.get_or_create_visitor_id(),
            session_id=self.get_session_id(),
        )
