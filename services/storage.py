"""Visitor key/value storage.

The experience engine reads and writes plain string values by key and never
cares where they live. Three stores are provided:

- ``MemoryStorage``: a dict, used by tests and one-off resolutions.
- ``BackendStorage``: a namespaced view over a Valkey backend (see
  ``services.cache``), used when the caller identifies the visitor itself.
- ``CookieStorage``: the visitor's browser cookies. Writes are buffered and
  copied onto the HTTP response with ``apply``.
"""
import logging
from typing import Mapping, Protocol

from fastapi import Response

logger = logging.getLogger(__name__)


class Storage(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Mapping[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class BackendStorage:
    """Keys are stored as ``{namespace}:{key}``.

    With a ``ttl`` every read of an existing key pushes its expiry out again,
    so the namespace behaves like a session that ends after ``ttl`` idle seconds.
    """

    def __init__(self, backend, namespace: str, ttl: int | None = None):
        self.backend = backend
        self.namespace = namespace
        self.ttl = ttl

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> str | None:
        value = self.backend.get(self._key(key))
        if value is not None and self.ttl:
            self.backend.set(self._key(key), value, ex=self.ttl)
        return value

    def set(self, key: str, value: str) -> None:
        self.backend.set(self._key(key), value, ex=self.ttl)

    def delete(self, key: str) -> None:
        self.backend.delete(self._key(key))


class CookieStorage:
    """Storage over request cookies.

    ``max_age=None`` produces session cookies, which the browser drops when
    the browsing session ends.
    """

    def __init__(self, cookies: Mapping[str, str], max_age: int | None = None):
        self._cookies = cookies
        self.max_age = max_age
        # key -> new value, or None for a pending delete
        self._pending: dict[str, str | None] = {}

    def get(self, key: str) -> str | None:
        if key in self._pending:
            return self._pending[key]
        return self._cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self._pending[key] = value

    def delete(self, key: str) -> None:
        self._pending[key] = None

    def apply(self, response: Response) -> None:
        for key, value in self._pending.items():
            if value is None:
                response.delete_cookie(key)
            else:
                response.set_cookie(key, value, max_age=self.max_age, samesite="lax")
        logger.debug("applied %d cookie writes", len(self._pending))
        self._pending.clear()
