"""
Provider configuration lookup

The shared secret is read per request; nothing is cached in-process so a
secret rotated from the admin console applies to the next delivery.
"""

from typing import Any, Dict, Optional, Protocol, Tuple
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.config import settings
from reconciler.models.setting import ProviderSetting

logger = logging.getLogger(__name__)


class SettingsProvider(Protocol):
    async def get(self, category: str, provider: str) -> Optional[Dict[str, Any]]:
        ...


class DatabaseSettingsProvider:
    """Reads the settings table maintained by the admin console"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, category: str, provider: str) -> Optional[Dict[str, Any]]:
        result = await self.session.execute(
            select(ProviderSetting.settings).where(
                ProviderSetting.category == category,
                ProviderSetting.provider == provider,
            )
        )
        return result.scalar_one_or_none()


class StaticSettingsProvider:
    """Fixed settings, e.g. from the environment"""

    def __init__(self, entries: Dict[Tuple[str, str], Dict[str, Any]]):
        self.entries = entries

    async def get(self, category: str, provider: str) -> Optional[Dict[str, Any]]:
        return self.entries.get((category, provider))


def build_settings_provider(session: AsyncSession) -> SettingsProvider:
    """
    Settings provider selected by PAYMENT_SETTINGS_SOURCE
    """
    if settings.PAYMENT_SETTINGS_SOURCE == "env":
        entry = {"keySecret": settings.RAZORPAY_KEY_SECRET} if settings.RAZORPAY_KEY_SECRET else None
        return StaticSettingsProvider(
            {(settings.PAYMENT_SETTINGS_CATEGORY, settings.PAYMENT_PROVIDER): entry}
        )
    return DatabaseSettingsProvider(session)
