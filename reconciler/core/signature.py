"""
Razorpay signature verification

Webhooks are signed with HMAC-SHA256 over the exact raw request body; the
checkout callback is signed over "<order_id>|<payment_id>". Both use the
keySecret stored under the ("payment", "razorpay") settings entry.
"""

import hashlib
import hmac
import logging
from typing import Optional

from reconciler.services.settings_provider import SettingsProvider

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """
    Fails closed: a missing secret, a missing signature or any error while
    reading the secret or hashing verifies as False.
    """

    def __init__(self, settings_provider: SettingsProvider, category: str = "payment", provider: str = "razorpay"):
        self.settings_provider = settings_provider
        self.category = category
        self.provider = provider

    async def verify(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """Verify a webhook signature over the raw body bytes"""
        return await self._verify(raw_body, signature)

    async def verify_checkout(self, order_id: str, payment_id: str, signature: Optional[str]) -> bool:
        """Verify the signature returned to the browser after checkout"""
        return await self._verify(f"{order_id}|{payment_id}".encode(), signature)

    async def _verify(self, message: bytes, signature: Optional[str]) -> bool:
        try:
            secret = await self._get_secret()
            if not secret:
                logger.warning(f"{self.provider} key secret not configured")
                return False
            if not signature:
                return False

            expected = hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()
            return hmac.compare_digest(expected.encode(), signature.encode())
        except Exception as e:
            logger.warning(f"Signature verification error: {e}")
            return False

    async def _get_secret(self) -> Optional[str]:
        provider_settings = await self.settings_provider.get(self.category, self.provider)
        if not provider_settings:
            return None
        return provider_settings.get("keySecret")
