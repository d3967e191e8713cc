"""
Read-only transaction reports for the admin console
"""

from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.config import settings
from reconciler.core.exceptions import ValidationError
from reconciler.repositories.transactions import TransactionRepository
from reconciler.schemas.transaction import TransactionAnalyticsRow, WebhookLogEntry


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class ReportService:

    def __init__(self, session: AsyncSession):
        self.transactions = TransactionRepository(session)

    async def webhook_logs(self) -> List[WebhookLogEntry]:
        """Transactions a webhook touched in the last window, newest first"""
        since = datetime.now(timezone.utc) - timedelta(hours=settings.WEBHOOK_LOG_WINDOW_HOURS)
        transactions = await self.transactions.recently_updated_with_payment(
            since, settings.WEBHOOK_LOG_LIMIT
        )
        return [WebhookLogEntry.model_validate(tx) for tx in transactions]

    async def analytics(self, start: datetime, end: datetime) -> List[TransactionAnalyticsRow]:
        start, end = _as_utc(start), _as_utc(end)
        if start > end:
            raise ValidationError("start_date must not be after end_date", field="start_date")

        rows = await self.transactions.analytics(start, end)
        return [TransactionAnalyticsRow.model_validate(dict(row)) for row in rows]
