"""
Shared FastAPI dependencies
"""

from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.config import settings
from reconciler.core.database import get_session
from reconciler.core.locks import EventLock
from reconciler.core.redis import redis_manager
from reconciler.core.signature import SignatureVerifier
from reconciler.services.settings_provider import SettingsProvider, build_settings_provider


async def get_settings_provider(session: AsyncSession = Depends(get_session)) -> SettingsProvider:
    return build_settings_provider(session)


async def get_signature_verifier(
    settings_provider: SettingsProvider = Depends(get_settings_provider)
) -> SignatureVerifier:
    return SignatureVerifier(
        settings_provider,
        category=settings.PAYMENT_SETTINGS_CATEGORY,
        provider=settings.PAYMENT_PROVIDER,
    )


async def get_event_lock() -> Optional[EventLock]:
    if not settings.WEBHOOK_LOCK_ENABLED:
        return None
    return EventLock(
        redis_manager,
        ttl=settings.WEBHOOK_LOCK_TTL_SECONDS,
        wait_seconds=settings.WEBHOOK_LOCK_WAIT_SECONDS,
    )
