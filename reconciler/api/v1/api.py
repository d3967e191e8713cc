"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from reconciler.api.v1.endpoints import (
    webhooks,
    payments,
    transactions,
    health
)

api_router = APIRouter()

api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(health.router, prefix="/health", tags=["health"])
