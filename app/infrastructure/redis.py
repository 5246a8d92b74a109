"""Item storage backed by Redis, with an in-process fallback.

Items are kept as JSON strings in a single Redis list so that ``GET /items/``
can page through them with LRANGE. When Redis is disabled or unreachable the
same operations run against a plain Python list.
"""
import json
import threading
import redis
from typing import Any, Dict, Iterable, List, Optional

from app.core.logging import get_logger
from app.core.config import settings
from app.domain.item import FAKE_ITEMS

logger = get_logger(__name__)

# Redis connection pool (lazy initialization)
_redis_pool: Optional[redis.ConnectionPool] = None
_redis_client: Optional[redis.Redis] = None
_item_store: Optional["ItemStore"] = None
_item_store_lock = threading.Lock()

# RPUSH ARGV onto KEYS[1] only when the list is empty; returns the new length or 0
SEED_IF_EMPTY = """
if redis.call("LLEN", KEYS[1]) == 0 then
    return redis.call("RPUSH", KEYS[1], unpack(ARGV))
end
return 0
"""


class StorageError(Exception):
    """Raised when the item store cannot be read or written."""


def get_redis_client(
    host: Optional[str] = None,
    port: Optional[int] = None,
    db: Optional[int] = None,
    password: Optional[str] = None,
) -> Optional[redis.Redis]:
    """Get or create a pooled Redis client.

    Uses settings from environment variables if not explicitly provided.
    Returns None if Redis is not available so callers can fall back to memory.
    """
    global _redis_pool, _redis_client

    host = host or settings.redis_host
    port = port or settings.redis_port
    db = db if db is not None else settings.redis_db
    password = password or settings.redis_password

    if _redis_client is None:
        logger.info(f"Initializing Redis connection pool: {host}:{port}")

        try:
            _redis_pool = redis.ConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client = redis.Redis(connection_pool=_redis_pool)
            client.ping()
            _redis_client = client
            logger.info("Redis connection established successfully")

        except redis.RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            _redis_client = None

    return _redis_client


class ItemStore:
    """Ordered store of item rows.

    Example:
        >>> store = ItemStore()
        >>> store.seed([{"item_name": "Foo"}])
        >>> store.add({"item_name": "Bar"})
        >>> store.list(skip=1, limit=10)
        [{'item_name': 'Bar'}]
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None, key: Optional[str] = None):
        self.redis = redis_client
        self.key = key or settings.items_key
        self._rows: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

        backend = "redis" if self.redis is not None else "memory"
        logger.info(f"ItemStore initialized with {backend} backend")

    @property
    def backend(self) -> str:
        return "redis" if self.redis is not None else "memory"

    def seed(self, rows: Iterable[Dict[str, Any]]) -> int:
        """Store rows only if the store is empty.

        The emptiness check and the write happen in one step (under the lock
        in memory, in a Lua script on Redis).

        Returns:
            Number of rows written
        """
        rows = list(rows)
        if not rows:
            return 0

        if self.redis is None:
            with self._lock:
                if self._rows:
                    return 0
                self._rows.extend(dict(row) for row in rows)
        else:
            try:
                written = self.redis.eval(
                    SEED_IF_EMPTY, 1, self.key, *[json.dumps(row) for row in rows]
                )
            except redis.RedisError as e:
                logger.error(f"Error seeding items: {e}", exc_info=True)
                raise StorageError(f"Could not seed items: {e}") from e
            if not written:
                return 0

        logger.debug(f"Seeded {len(rows)} items")
        return len(rows)

    def list(self, skip: int = 0, limit: int = 10) -> List[Dict[str, Any]]:
        """Return rows ``[skip, skip + limit)``.

        Args:
            skip: Number of rows to skip
            limit: Maximum number of rows to return

        Raises:
            ValueError: If skip or limit is negative
            StorageError: If Redis fails
        """
        if skip < 0 or limit < 0:
            raise ValueError("skip and limit must be non-negative")
        if limit == 0:
            return []

        if self.redis is None:
            with self._lock:
                return [dict(row) for row in self._rows[skip:skip + limit]]

        try:
            raw = self.redis.lrange(self.key, skip, skip + limit - 1)
        except redis.RedisError as e:
            logger.error(f"Error listing items: {e}", exc_info=True)
            raise StorageError(f"Could not list items: {e}") from e

        return [json.loads(entry) for entry in raw]

    def add(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Append a row and return it."""
        if self.redis is None:
            with self._lock:
                self._rows.append(dict(row))
            return row

        try:
            self.redis.rpush(self.key, json.dumps(row, default=str))
        except redis.RedisError as e:
            logger.error(f"Error adding item: {e}", exc_info=True)
            raise StorageError(f"Could not add item: {e}") from e

        return row

    def count(self) -> int:
        if self.redis is None:
            with self._lock:
                return len(self._rows)

        try:
            return int(self.redis.llen(self.key))
        except redis.RedisError as e:
            logger.error(f"Error counting items: {e}", exc_info=True)
            raise StorageError(f"Could not count items: {e}") from e

    def clear(self) -> None:
        if self.redis is None:
            with self._lock:
                self._rows.clear()
            return

        try:
            self.redis.delete(self.key)
        except redis.RedisError as e:
            logger.error(f"Error clearing items: {e}", exc_info=True)
            raise StorageError(f"Could not clear items: {e}") from e


def get_item_store() -> ItemStore:
    """FastAPI dependency returning the process-wide item store.

    The store is created on first use and seeded with the fake items.
    Nothing is cached if seeding fails, so the next request retries.

    Raises:
        StorageError: If Redis accepted the connection but seeding failed
    """
    global _item_store

    with _item_store_lock:
        if _item_store is None:
            client = get_redis_client() if settings.use_redis else None
            if settings.use_redis and client is None:
                logger.warning("Redis unavailable, falling back to in-memory item storage")
            store = ItemStore(redis_client=client)
            store.seed(FAKE_ITEMS)
            _item_store = store

    return _item_store
