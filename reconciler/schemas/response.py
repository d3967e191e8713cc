"""
Generic response schemas
"""

from pydantic import BaseModel
from typing import Any, Optional, Dict, List, Generic, TypeVar

T = TypeVar('T')


class DataResponse(BaseModel, Generic[T]):
    """Generic success response"""
    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    """Generic list response"""
    success: bool = True
    data: List[T]


class ErrorDetail(BaseModel):
    """Error detail schema"""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = {}


class ErrorResponse(BaseModel):
    """Generic error response"""
    success: bool = False
    error: ErrorDetail


class WebhookAck(BaseModel):
    """Webhook acknowledgement; `error` only on processing failures"""
    success: bool
    message: str
    error: Optional[str] = None


class MessageResponse(BaseModel):
    """Simple message response"""
    success: bool = True
    message: str
