"""
Transaction read schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from reconciler.models.transaction import BookingType, TransactionStatus, TransactionType
from reconciler.schemas.base import BaseSchema


class WebhookLogEntry(BaseSchema):
    """Projection of a transaction recently touched by a webhook"""
    transaction_id: str = Field(serialization_alias="transactionId")
    status: TransactionStatus
    booking_type: BookingType = Field(serialization_alias="bookingType")
    transaction_type: TransactionType = Field(serialization_alias="transactionType")
    razorpay_payment_id: Optional[str] = None
    updated_at: datetime = Field(serialization_alias="updatedAt")


class TransactionAnalyticsRow(BaseSchema):
    status: TransactionStatus
    booking_type: BookingType = Field(serialization_alias="bookingType")
    transaction_type: TransactionType = Field(serialization_alias="transactionType")
    count: int
    total_amount: int = Field(serialization_alias="totalAmount")
    avg_amount: float = Field(serialization_alias="avgAmount")
