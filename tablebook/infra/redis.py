"""
Redis Connection Management

Redis connection singleton plus the slot reservation primitives shared by
every active call: per-slot booking counters and per-slot, time-bounded,
ownership-checked locks. Degrades gracefully when Redis is unavailable.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError, TimeoutError, RedisError

from tablebook.config import settings

# Logger
logger = logging.getLogger(__name__)

# Key schema is shared with existing booking data, so it carries no app prefix.
SLOT_COUNT_PREFIX = "booking:slot:"
SLOT_LOCK_PREFIX = "lock:slot:"


class RedisClient:
    """
    Manages Redis connection as a singleton.

    Features:
    - Connection pooling
    - Automatic retries
    - Timeouts
    - Graceful failure handling
    """

    _client: Optional[Redis] = None
    _connected: bool = False

    @classmethod
    async def get_client(cls) -> Optional[Redis]:
        """
        Get or create Redis client.

        Returns:
            Redis client or None if connection fails
        """
        if cls._client is not None and cls._connected:
            return cls._client

        try:
            # Retry configuration: 3 retries with exponential backoff
            retry = Retry(ExponentialBackoff(), retries=3)

            cls._client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5.0,
                socket_timeout=5.0,
                retry_on_timeout=True,
                retry=retry,
            )

            # Test connection
            await cls._client.ping()
            cls._connected = True
            logger.info("Redis connection established successfully")
            return cls._client

        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.error(f"Failed to connect to Redis: {e}")
            cls._connected = False
            cls._client = None
            return None

    @classmethod
    async def close(cls) -> None:
        """Close Redis connection."""
        if cls._client is not None:
            try:
                await cls._client.aclose()
                logger.info("Redis connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                cls._client = None
                cls._connected = False

    @classmethod
    def is_connected(cls) -> bool:
        """Check if Redis is connected."""
        return cls._connected


async def get_redis() -> Optional[Redis]:
    """Return the shared Redis client, or None while Redis is unavailable."""
    return await RedisClient.get_client()


def slot_count_key(date: str, hour: str) -> str:
    """Counter key for a booking slot."""
    return f"{SLOT_COUNT_PREFIX}{date}:{hour}"


def slot_lock_key(date: str, hour: str) -> str:
    """Lock key for a booking slot."""
    return f"{SLOT_LOCK_PREFIX}{date}:{hour}"


class SlotReservationStore:
    """
    Redis-backed booking counters and reservation locks.

    Keys:
    - booking:slot:{date}:{hour} -> confirmed booking count
    - lock:slot:{date}:{hour} -> session id of the current holder (TTL)

    The conditional SET NX is the only serialization point between calls
    competing for the same slot.

    IMPORTANT: Fails CLOSED for locks - if Redis is unavailable no lock is
    granted, so a degraded store can never oversell a slot.
    """

    def __init__(
        self,
        redis_client: Optional[Redis],
        lock_ttl: Optional[int] = None,
    ):
        self.redis = redis_client
        self.lock_ttl = lock_ttl or settings.slot_lock_ttl

    async def count(self, date: str, hour: str) -> int:
        """
        Get confirmed booking count for a slot.

        Returns:
            Current count (0 if the key doesn't exist or Redis unavailable)
        """
        if self.redis is None:
            logger.warning("Redis unavailable - slot count defaults to 0")
            return 0

        try:
            value = await self.redis.get(slot_count_key(date, hour))
            return int(value) if value else 0
        except RedisError as e:
            logger.error(f"Failed to read slot count for {date}:{hour}: {e}")
            return 0

    async def increment(self, date: str, hour: str) -> Optional[int]:
        """
        Atomically record one more confirmed booking for a slot.

        Returns:
            New count, or None if Redis unavailable
        """
        if self.redis is None:
            logger.error(f"Redis unavailable - booking for {date}:{hour} not counted")
            return None

        try:
            return await self.redis.incr(slot_count_key(date, hour))
        except RedisError as e:
            logger.error(f"Failed to increment slot count for {date}:{hour}: {e}")
            return None

    async def acquire_lock(self, date: str, hour: str, session_id: str) -> bool:
        """
        Take (or refresh) the reservation lock for a slot.

        Re-entry by the current holder resets the expiry window instead of
        granting a second hold.

        Returns:
            True if session_id now holds the lock
        """
        if self.redis is None:
            logger.warning(f"Redis unavailable - lock on {date}:{hour} refused")
            return False

        key = slot_lock_key(date, hour)

        try:
            holder = await self.redis.get(key)
            if holder == session_id and await self.redis.expire(key, self.lock_ttl):
                logger.debug(f"Lock refreshed: {key} by {session_id}")
                return True

            acquired = await self.redis.set(key, session_id, nx=True, ex=self.lock_ttl)
            if acquired:
                logger.debug(f"Lock acquired: {key} by {session_id}")
            return bool(acquired)

        except RedisError as e:
            logger.error(f"Failed to acquire lock {key}: {e}")
            return False

    async def release_lock(self, date: str, hour: str, session_id: str) -> None:
        """
        Release the reservation lock if session_id holds it.

        Never releases another caller's lock. On Redis failure the lock is
        left to expire.
        """
        if self.redis is None:
            logger.warning(f"Redis unavailable - lock on {date}:{hour} left to expire")
            return

        key = slot_lock_key(date, hour)

        try:
            holder = await self.redis.get(key)
            if holder == session_id:
                await self.redis.delete(key)
                logger.debug(f"Lock released: {key} by {session_id}")
        except RedisError as e:
            logger.error(f"Failed to release lock {key}: {e}")


async def get_slot_reservation_store() -> SlotReservationStore:
    """
    Get SlotReservationStore instance.

    Returns a store even if Redis unavailable (locks fail closed).
    """
    client = await get_redis()
    return SlotReservationStore(client)
