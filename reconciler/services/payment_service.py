"""
Checkout callback verification and payment status lookups
"""

from typing import Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.core.exceptions import NotFoundError, SignatureVerificationError, ValidationError
from reconciler.core.signature import SignatureVerifier
from reconciler.models.transaction import BookingType, Transaction
from reconciler.repositories.bookings import Booking, booking_repositories
from reconciler.repositories.transactions import TransactionRepository
from reconciler.schemas.payment import CheckoutVerificationRequest

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for the browser-side payment callbacks"""

    def __init__(self, session: AsyncSession, verifier: Optional[SignatureVerifier] = None):
        self.session = session
        self.verifier = verifier
        self.transactions = TransactionRepository(session)
        self.bookings = booking_repositories(session)

    async def verify_transaction_payment(self, request: CheckoutVerificationRequest) -> Transaction:
        """
        Record the checkout signature on the transaction.

        Status is left to the webhook, which is the only path that settles
        a transaction and its booking.
        """
        valid = await self.verifier.verify_checkout(
            request.razorpay_order_id,
            request.razorpay_payment_id,
            request.razorpay_signature,
        )
        if not valid:
            logger.error(f"Invalid checkout signature for order {request.razorpay_order_id}")
            raise SignatureVerificationError()

        transaction = await self.transactions.locate(order_id=request.razorpay_order_id)
        if transaction is None:
            raise NotFoundError("Transaction", request.razorpay_order_id)

        transaction.razorpay_payment_id = request.razorpay_payment_id
        transaction.razorpay_signature = request.razorpay_signature
        await self.transactions.save(transaction)
        await self.session.commit()

        logger.info(f"Checkout verified for transaction {transaction.transaction_id}")
        return transaction

    async def get_booking(self, booking_id: UUID, booking_type: str) -> Booking:
        try:
            repository = self.bookings[BookingType(booking_type)]
        except ValueError:
            raise ValidationError("Invalid booking type", field="booking_type")

        booking = await repository.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking
