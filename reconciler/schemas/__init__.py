"""
Pydantic schemas
"""

from reconciler.schemas.response import DataResponse, ListResponse, ErrorResponse, MessageResponse, WebhookAck
from reconciler.schemas.payment import CheckoutVerificationRequest, PaymentStatusResponse
from reconciler.schemas.transaction import WebhookLogEntry, TransactionAnalyticsRow

__all__ = [
    "DataResponse",
    "ListResponse",
    "ErrorResponse",
    "MessageResponse",
    "WebhookAck",
    "CheckoutVerificationRequest",
    "PaymentStatusResponse",
    "WebhookLogEntry",
    "TransactionAnalyticsRow",
]
