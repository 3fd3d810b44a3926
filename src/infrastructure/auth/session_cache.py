"""
Refresh token session cache.

Keeps the one current refresh token per user in Redis under
``refresh_token:<user_id>``, expiring together with the token. A refresh
token is only honoured while it is the value stored here.
"""

import logging
from uuid import UUID

import redis

logger = logging.getLogger(__name__)

KEY_PREFIX = "refresh_token"


class SessionCacheError(Exception):
    """Raised when the session cache cannot be reached or answers with an error."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        super().__init__(f"Session cache {operation} failed")
        self.operation = operation
        self.cause = cause


class RefreshTokenCache:
    """Redis-backed store for the current refresh token of each user."""

    def __init__(self, redis_client: redis.Redis) -> None:
        self.redis = redis_client

    @staticmethod
    def key_for(user_id: UUID | str) -> str:
        return f"{KEY_PREFIX}:{user_id}"

    def put(self, user_id: UUID | str, token: str, ttl_seconds: int) -> None:
        """Store the token as the user's current one, replacing any previous value."""
        try:
            self.redis.setex(self.key_for(user_id), ttl_seconds, token)
        except redis.RedisError as e:
            raise SessionCacheError("put", e) from e
        logger.debug(f"Cached refresh token for user {user_id} (ttl={ttl_seconds}s)")

    def get(self, user_id: UUID | str) -> str | None:
        """Current refresh token of the user, None when absent or expired."""
        try:
            value = self.redis.get(self.key_for(user_id))
        except redis.RedisError as e:
            raise SessionCacheError("get", e) from e
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def evict(self, user_id: UUID | str) -> bool:
        """Forget the user's refresh token. Returns True when one was stored."""
        try:
            removed = self.redis.delete(self.key_for(user_id))
        except redis.RedisError as e:
            raise SessionCacheError("evict", e) from e
        if removed:
            logger.info(f"Evicted refresh token for user {user_id}")
        return bool(removed)

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except redis.RedisError as e:
            logger.warning(f"Session cache ping failed: {e}")
            return False


def create_redis_client(
    url: str,
    socket_timeout: float = 5.0,
    socket_connect_timeout: float = 5.0,
    max_connections: int = 50,
) -> redis.Redis:
    """Create a Redis client with bounded network timeouts."""
    pool = redis.ConnectionPool.from_url(
        url,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_connect_timeout,
        max_connections=max_connections,
        decode_responses=True,
    )
    return redis.Redis(connection_pool=pool)
