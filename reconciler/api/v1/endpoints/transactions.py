"""
Transaction report endpoints (admin only)
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.core.database import get_session
from reconciler.core.security import require_admin
from reconciler.schemas.response import ListResponse
from reconciler.schemas.transaction import TransactionAnalyticsRow
from reconciler.services.report_service import ReportService

router = APIRouter()


@router.get("/analytics", response_model=ListResponse[TransactionAnalyticsRow])
async def get_transaction_analytics(
    start_date: datetime = Query(...),
    end_date: datetime = Query(...),
    db: AsyncSession = Depends(get_session),
    admin: Dict = Depends(require_admin),
) -> Any:
    """
    Transaction count, total and average amount grouped by status,
    booking type and transaction type
    """
    rows = await ReportService(db).analytics(start_date, end_date)
    return ListResponse[TransactionAnalyticsRow](data=rows)
