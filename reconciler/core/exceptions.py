"""
Custom application exceptions
"""

from typing import Optional, Dict, Any


class ReconcilerException(Exception):
    """Base exception for the reconciliation service"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(ReconcilerException):
    """Resource not found errors"""

    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id {identifier} not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404
        )


class ValidationError(ReconcilerException):
    """Validation errors"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class SignatureVerificationError(ReconcilerException):
    """Gateway signature did not match"""

    def __init__(self, message: str = "Invalid payment signature"):
        super().__init__(
            message=message,
            code="INVALID_SIGNATURE",
            status_code=400
        )


class WebhookPayloadError(ReconcilerException):
    """A verified webhook body that does not match its event kind"""

    def __init__(self, event: str, message: str, errors: Optional[list] = None):
        super().__init__(
            message=f"Malformed {event} payload: {message}",
            code="MALFORMED_WEBHOOK",
            status_code=422,
            details={"event": event, "errors": errors or []}
        )
        self.event = event


class LockAcquisitionError(ReconcilerException):
    """Failed to acquire lock error"""

    def __init__(self, resource: str):
        super().__init__(
            message=f"Failed to acquire lock for resource: {resource}",
            code="LOCK_FAILED",
            status_code=409,
            details={"resource": resource}
        )
