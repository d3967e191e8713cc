"""
API endpoints module
"""

from . import webhooks, payments, transactions, health

__all__ = [
    "webhooks",
    "payments",
    "transactions",
    "health"
]
