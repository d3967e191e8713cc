"""
Redis configuration and connection management
"""

import redis.asyncio as redis
from typing import Optional
import logging
import asyncio
import time
import uuid

from reconciler.config import settings

logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[redis.Redis] = None


async def init_redis():
    """
    Initialize Redis connection
    """
    global redis_client
    try:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True
        )
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_redis():
    """
    Close Redis connection
    """
    global redis_client
    if redis_client:
        await redis_client.close()
        logger.info("Redis connection closed")


async def get_redis() -> redis.Redis:
    """
    Get Redis client
    """
    if not redis_client:
        await init_redis()
    return redis_client


class CircuitBreaker:
    """
    Circuit breaker guarding Redis calls
    """
    def __init__(self, failure_threshold=5, recovery_timeout=60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout

        self.failure_count = 0
        self.last_failure_time = None
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN

        self._lock = asyncio.Lock()

    async def is_open(self) -> bool:
        async with self._lock:
            if self.state == "OPEN":
                if time.time() - self.last_failure_time >= self.recovery_timeout:
                    self.state = "HALF_OPEN"
                    return False
                return True
            return False

    async def record_success(self):
        async with self._lock:
            self.failure_count = 0
            self.state = "CLOSED"

    async def record_failure(self):
        async with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.time()

            if self.state == "HALF_OPEN" or self.failure_count >= self.failure_threshold:
                self.state = "OPEN"

    async def call(self, func, *args, **kwargs):
        if await self.is_open():
            raise ConnectionError("Circuit breaker is open")

        try:
            result = await func(*args, **kwargs)
            await self.record_success()
            return result
        except Exception:
            await self.record_failure()
            raise


class RedisManager:
    """
    Redis manager with circuit breaker and distributed locks
    """

    def __init__(self):
        self.client: Optional[redis.Redis] = None
        self.circuit_breaker = CircuitBreaker()
        self.logger = logging.getLogger(__name__)

    async def get_client(self) -> redis.Redis:
        """Get Redis client with health check and circuit breaker"""
        if not self.client:
            self.client = await get_redis()

        await self.circuit_breaker.call(self.client.ping)
        return self.client

    async def acquire_lock(
        self,
        resource: str,
        identifier: Optional[str] = None,
        ttl: int = 30
    ) -> Optional[str]:
        """
        Acquire a distributed lock with SET NX EX

        Args:
            resource: Resource to lock (e.g., "webhook:razorpay:order_123")
            identifier: Unique identifier for lock owner
            ttl: Time to live in seconds

        Returns:
            Lock identifier if successful, None if the lock is held elsewhere
        """
        client = await self.get_client()
        lock_key = f"lock:{resource}"
        lock_value = identifier or str(uuid.uuid4())

        acquired = await client.set(lock_key, lock_value, nx=True, ex=ttl)
        if acquired:
            self.logger.debug(f"Lock acquired for {resource} with identifier {lock_value}")
            return lock_value
        return None

    async def release_lock(
        self,
        resource: str,
        identifier: str
    ) -> bool:
        """
        Release a distributed lock using atomic Lua script

        Args:
            resource: Resource to unlock
            identifier: Lock owner identifier

        Returns:
            True if lock was released, False otherwise
        """
        lock_key = f"lock:{resource}"
        lua_script = """
        if redis.call("get", KEYS[1]) == ARGV[1] then
            return redis.call("del", KEYS[1])
        else
            return 0
        end
        """

        try:
            client = await self.get_client()
            result = await client.eval(lua_script, 1, lock_key, identifier)
            released = result == 1

            if released:
                self.logger.debug(f"Lock released for {resource}")
            else:
                self.logger.warning(f"Failed to release lock for {resource} - expired or taken over")

            return released
        except Exception as e:
            # The lock expires on its own after ttl
            self.logger.error(f"Error releasing lock for {resource}: {e}")
            return False


redis_manager = RedisManager()
