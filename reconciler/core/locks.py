"""
Per-event serialization for webhook deliveries
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from reconciler.core.exceptions import LockAcquisitionError

logger = logging.getLogger(__name__)


class EventLock:
    """
    Serializes reconciliation of one gateway order across concurrent
    deliveries (retries, payment.captured racing order.paid).

    Waits up to `wait_seconds` for the lock, then raises
    LockAcquisitionError so the gateway retries the delivery later.
    """

    def __init__(self, redis_manager, ttl: int = 30, wait_seconds: float = 5.0):
        self.redis_manager = redis_manager
        self.ttl = ttl
        self.wait_seconds = wait_seconds

    @asynccontextmanager
    async def hold(self, resource: str) -> AsyncIterator[str]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.wait_seconds
        delay = 0.05

        while True:
            token = await self.redis_manager.acquire_lock(resource, ttl=self.ttl)
            if token:
                break

            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"Gave up waiting for lock on {resource}")
                raise LockAcquisitionError(resource)

            await asyncio.sleep(min(delay, remaining))
            delay = min(delay * 2, 1.0)

        try:
            yield token
        finally:
            try:
                await self.redis_manager.release_lock(resource, token)
            except Exception as e:
                # The lock expires on its own after ttl
                logger.error(f"Failed to release lock on {resource}: {e}")
