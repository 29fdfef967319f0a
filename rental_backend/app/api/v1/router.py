"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from rental_backend.app.api.v1.endpoints import shippo_webhook, twilio_status, transactions

router = APIRouter()

# Carrier tracking webhooks
router.include_router(shippo_webhook.router)

# SMS delivery receipts
router.include_router(twilio_status.router)

# Diagnostics
router.include_router(transactions.router)
