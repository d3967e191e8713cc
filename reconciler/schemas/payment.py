"""
Checkout callback and payment status schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from reconciler.models.booking import BookingStatus
from reconciler.schemas.base import BaseSchema


class CheckoutVerificationRequest(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class PaymentStatusResponse(BaseSchema):
    payment_status: BookingStatus = Field(serialization_alias="paymentStatus")
    payment_method: Optional[str] = Field(None, serialization_alias="paymentMethod")
    payment_date: Optional[datetime] = Field(None, serialization_alias="paymentDate")
