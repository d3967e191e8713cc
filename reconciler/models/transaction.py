"""
Transaction model: one payment attempt against a booking
"""

from sqlalchemy import Column, String, Integer, DateTime, JSON, Uuid
import enum

from reconciler.models.base import BaseModel, enum_type


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class BookingType(str, enum.Enum):
    CABIN = "cabin"
    HOSTEL = "hostel"


class TransactionType(str, enum.Enum):
    BOOKING = "booking"
    RENEWAL = "renewal"
    CANCELLATION = "cancellation"
    REFUND = "refund"


class Transaction(BaseModel):
    """
    Payment transaction, created pending by the checkout flow with the
    gateway order id attached and moved to a terminal status by webhooks.
    """
    __tablename__ = "transactions"

    transaction_id = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    booking_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    booking_type = Column(enum_type(BookingType), nullable=False)
    transaction_type = Column(enum_type(TransactionType), nullable=False)

    amount = Column(Integer, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    # couponId, couponCode, discountAmount, couponType, couponValue, appliedAt
    applied_coupon = Column(JSON)

    # Renewal only
    additional_months = Column(Integer)
    previous_end_date = Column(DateTime(timezone=True))
    new_end_date = Column(DateTime(timezone=True))

    status = Column(
        enum_type(TransactionStatus),
        default=TransactionStatus.PENDING,
        nullable=False,
        index=True
    )
    payment_method = Column(String(50))
    razorpay_order_id = Column(String(64), index=True)
    razorpay_payment_id = Column(String(64), index=True)
    razorpay_signature = Column(String(128))
    payment_response = Column(JSON)

    def __repr__(self):
        return (
            f"<Transaction(id={self.id}, transaction_id={self.transaction_id}, "
            f"type={self.transaction_type}, status={self.status})>"
        )
