"""
Database models
"""

from reconciler.models.transaction import Transaction, TransactionStatus, TransactionType, BookingType
from reconciler.models.booking import CabinBooking, HostelBooking, BookingStatus
from reconciler.models.setting import ProviderSetting

__all__ = [
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "BookingType",
    "CabinBooking",
    "HostelBooking",
    "BookingStatus",
    "ProviderSetting",
]
