"""
Payment API Endpoints
Browser-side callbacks that complement the webhook
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from reconciler.api.deps import get_signature_verifier
from reconciler.core.database import get_session
from reconciler.core.signature import SignatureVerifier
from reconciler.schemas.payment import CheckoutVerificationRequest, PaymentStatusResponse
from reconciler.schemas.response import DataResponse, MessageResponse
from reconciler.services.payment_service import PaymentService

router = APIRouter()


@router.post("/razorpay/verify-transaction-payment", response_model=MessageResponse)
async def verify_transaction_payment(
    payload: CheckoutVerificationRequest,
    db: AsyncSession = Depends(get_session),
    verifier: SignatureVerifier = Depends(get_signature_verifier),
) -> Any:
    """Verify the checkout signature and record it on the transaction"""
    await PaymentService(db, verifier).verify_transaction_payment(payload)
    return MessageResponse(message="Payment verified successfully")


@router.get("/status/{booking_id}", response_model=DataResponse[PaymentStatusResponse])
async def check_payment_status(
    booking_id: UUID,
    booking_type: str = Query(..., description="cabin or hostel"),
    db: AsyncSession = Depends(get_session),
) -> Any:
    """Payment status of a booking"""
    booking = await PaymentService(db).get_booking(booking_id, booking_type)
    return DataResponse[PaymentStatusResponse](data=PaymentStatusResponse.model_validate(booking))
