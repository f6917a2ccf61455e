import logging
from config import config
from services.storage import BackendStorage

logger = logging.getLogger(__name__)

# Key prefix for everything the experience engine keeps in Valkey
VISITOR_NAMESPACE = "pb"

# --- Valkey/Redis Backend Implementations ---

class _MockValkeyBackend:
    """Simulates the low-level Valkey/Redis client (in-memory)."""
    def __init__(self):
        self._cache = {}

    def get(self, key: str) -> str | None:
        logger.debug("cache mock get: %s", key)
        return self._cache.get(key)

    def set(self, key: str, value: str, ex: int | None = None):
        # In a real setup, 'ex' handles expiration. Here, we just store.
        logger.debug("cache mock set: %s, value: %s", key, value)
        self._cache[key] = value

    def delete(self, key: str):
        logger.debug("cache mock delete: %s", key)
        self._cache.pop(key, None)

class RealValkeyBackend:
    """Real implementation using redis-py client (compatible with Valkey)."""
    def __init__(self, host: str, port: int, db: int = 0, password: str | None = None):
        import redis

        try:
            self.client = redis.Redis(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
                socket_timeout=2.0
            )
            self.client.ping()
        except Exception as e:
            logger.error("Failed to connect to Valkey/Redis: %s", e)
            raise

    # Read/write errors are logged and swallowed: a visitor whose storage
    # cannot be read is treated as a first-time visitor.

    def get(self, key: str) -> str | None:
        try:
            logger.debug("cache valkey get: %s", key)
            return self.client.get(key)
        except Exception as e:
            logger.error("Valkey GET error for key %s: %s", key, e)
            return None

    def set(self, key: str, value: str, ex: int | None = None):
        try:
            logger.debug("cache valkey set: %s, value: %s", key, value)
            self.client.set(key, value, ex=ex)
        except Exception as e:
            logger.error("Valkey SET error for key %s: %s", key, e)

    def delete(self, key: str):
        try:
            logger.debug("cache valkey delete: %s", key)
            self.client.delete(key)
        except Exception as e:
            logger.error("Valkey DEL error for key %s: %s", key, e)


# --- Visitor storage views ---

def durable_visitor_storage(backend, visitor_id: str) -> BackendStorage:
    """Long-lived storage for one visitor (identity, assignments, attribution)."""
    return BackendStorage(backend, namespace=f"{VISITOR_NAMESPACE}:{visitor_id}")

def session_visitor_storage(backend, visitor_id: str) -> BackendStorage:
    """Per-session storage; the session ends after the configured idle TTL."""
    return BackendStorage(
        backend,
        namespace=f"{VISITOR_NAMESPACE}:{visitor_id}:session",
        ttl=config.session_ttl_seconds,
    )

# --- Initialize Backend ---
valkey_host = config.valkey_host
valkey_port = config.valkey_port

logger.info("valkey_host: %s, port: %d", valkey_host, valkey_port)

if valkey_host:
    try:
        VALKEY_BACKEND = RealValkeyBackend(host=valkey_host, port=valkey_port)
    except Exception:
        logger.info("Falling back to Mock Valkey Backend due to connection failure.")
        VALKEY_BACKEND = _MockValkeyBackend()
else:
    logger.info("VALKEY_HOST not set. Using Mock Valkey Backend.")
    VALKEY_BACKEND = _MockValkeyBackend()

def get_valkey_backend():
    return VALKEY_BACKEND

def get_mock_valkey_backend():
    return _MockValkeyBackend()
