"""
Transaction store access
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.models.transaction import Transaction


class TransactionRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def locate(
        self,
        payment_id: Optional[str] = None,
        order_id: Optional[str] = None
    ) -> Optional[Transaction]:
        """
        Find the transaction for a gateway payment id OR order id.

        Either stored id may still be NULL before the first delivery, so only
        the identifiers actually supplied are matched. Returns None when
        nothing matches.
        """
        conditions = []
        if payment_id:
            conditions.append(Transaction.razorpay_payment_id == payment_id)
        if order_id:
            conditions.append(Transaction.razorpay_order_id == order_id)
        if not conditions:
            return None

        result = await self.session.execute(
            select(Transaction)
            .where(or_(*conditions))
            .order_by(Transaction.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def save(self, transaction: Transaction) -> Transaction:
        self.session.add(transaction)
        await self.session.flush()
        return transaction

    async def recently_updated_with_payment(self, since: datetime, limit: int) -> List[Transaction]:
        """Transactions updated after `since` that carry a gateway payment id, newest first"""
        result = await self.session.execute(
            select(Transaction)
            .where(
                Transaction.updated_at >= since,
                Transaction.razorpay_payment_id.is_not(None),
            )
            .order_by(Transaction.updated_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def analytics(self, start: datetime, end: datetime) -> list:
        """Count, total and average amount per (status, booking type, transaction type)"""
        result = await self.session.execute(
            select(
                Transaction.status,
                Transaction.booking_type,
                Transaction.transaction_type,
                func.count(Transaction.id).label("count"),
                func.sum(Transaction.amount).label("total_amount"),
                func.avg(Transaction.amount).label("avg_amount"),
            )
            .where(Transaction.created_at >= start, Transaction.created_at <= end)
            .group_by(Transaction.status, Transaction.booking_type, Transaction.transaction_type)
            .order_by(Transaction.status, Transaction.booking_type)
        )
        return list(result.mappings().all())
