"""
Booking Synchronizer

Mirrors a settled transaction onto its cabin or hostel booking:

* initial booking payment: completed/failed moves the booking's status and
  payment status;
* renewal payment: completed extends the end date, adds the months and the
  amount, and appends the renewal (and coupon) history entries; a failed
  renewal leaves the confirmed booking untouched.

Every path is idempotent per (transaction, outcome) so gateway redeliveries
never append a second history entry or add the amount twice.
"""

from datetime import datetime, timezone
from typing import Dict, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.core.state_machine import PaymentOutcome
from reconciler.models.booking import BookingStatus
from reconciler.models.transaction import Transaction, TransactionType, BookingType
from reconciler.repositories.bookings import Booking, BookingRepository, booking_repositories

logger = logging.getLogger(__name__)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class BookingSynchronizer:

    def __init__(self, session: AsyncSession, repositories: Optional[Dict[BookingType, BookingRepository]] = None):
        self.repositories = repositories or booking_repositories(session)

    async def sync(self, transaction: Transaction, outcome: PaymentOutcome) -> Optional[Booking]:
        """
        Returns the persisted booking, or None when there was nothing to
        write (booking missing, failed renewal, already applied).
        """
        log_extra = {"transaction_id": transaction.transaction_id, "booking_id": str(transaction.booking_id)}

        repository = self.repositories.get(BookingType(transaction.booking_type))
        if repository is None:
            logger.info(f"No booking store for type {transaction.booking_type}", extra=log_extra)
            return None

        booking = await repository.get(transaction.booking_id)
        if booking is None:
            logger.info(f"Booking not found for transaction {transaction.transaction_id}", extra=log_extra)
            return None

        now = datetime.now(timezone.utc)
        transaction_type = TransactionType(transaction.transaction_type)

        if outcome == PaymentOutcome.COMPLETED:
            if transaction_type == TransactionType.BOOKING:
                changed = self._complete_booking(booking, now)
            elif transaction_type == TransactionType.RENEWAL:
                changed = self._apply_renewal(booking, transaction, now)
            else:
                changed = False
        elif outcome == PaymentOutcome.FAILED:
            changed = transaction_type == TransactionType.BOOKING and self._fail_booking(booking)
        else:
            raise ValueError(f"Bookings are only synchronized for settled outcomes, got {outcome}")

        if not changed:
            logger.info(
                f"Booking {booking.booking_id} unchanged by {transaction_type.value} {outcome.value}",
                extra=log_extra,
            )
            return None

        await repository.save(booking)
        logger.info(f"Updated booking {booking.booking_id} for transaction {transaction.transaction_id}", extra=log_extra)
        return booking

    def _complete_booking(self, booking: Booking, now: datetime) -> bool:
        if booking.payment_status == BookingStatus.COMPLETED:
            return False

        booking.payment_status = BookingStatus.COMPLETED
        booking.status = BookingStatus.COMPLETED
        booking.payment_date = now
        return True

    def _fail_booking(self, booking: Booking) -> bool:
        if booking.payment_status == BookingStatus.FAILED and booking.status == BookingStatus.FAILED:
            return False

        booking.payment_status = BookingStatus.FAILED
        booking.status = BookingStatus.FAILED
        return True

    def _apply_renewal(self, booking: Booking, transaction: Transaction, now: datetime) -> bool:
        transaction_ref = str(transaction.id)
        renewal_history = list(booking.renewal_history or [])

        if any(entry.get("transactionId") == transaction_ref for entry in renewal_history):
            return False

        if transaction.new_end_date:
            booking.end_date = transaction.new_end_date
        if transaction.additional_months:
            # Legacy bookings were created without a duration: one month
            booking.months = (booking.months or 1) + transaction.additional_months
        booking.total_price = (booking.total_price or 0) + transaction.amount

        renewal_history.append({
            "previousEndDate": _isoformat(transaction.previous_end_date),
            "newEndDate": _isoformat(transaction.new_end_date),
            "additionalMonths": transaction.additional_months,
            "additionalAmount": transaction.amount,
            "previousAmount": booking.total_price - transaction.amount,
            "renewedAt": now.isoformat(),
            "renewedBy": str(transaction.user_id),
            "transactionId": transaction_ref,
        })
        # New list objects so the JSON columns are flagged dirty
        booking.renewal_history = renewal_history

        coupon = transaction.applied_coupon or {}
        if coupon.get("couponCode"):
            coupons_history = list(booking.coupons_history or [])
            coupons_history.append({
                "couponId": coupon.get("couponId"),
                "couponCode": coupon["couponCode"],
                "discountAmount": coupon.get("discountAmount", 0),
                "couponType": coupon.get("couponType"),
                "couponValue": coupon.get("couponValue"),
                "appliedAt": coupon.get("appliedAt") or now.isoformat(),
                "transactionId": transaction_ref,
                "transactionType": TransactionType.RENEWAL.value,
            })
            booking.coupons_history = coupons_history

        return True
