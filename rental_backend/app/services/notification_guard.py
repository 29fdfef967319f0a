"""
Notification idempotency guard.

Shippo retries deliveries and may send the same event concurrently, so a
borrower SMS is claimed in Redis (SET NX) before it is sent. The persisted
flag on the transaction remains the long-term record; the claim only
serializes concurrent deliveries.
"""

from typing import Optional

from rental_backend.app.core.config import settings
from rental_backend.app.domain.shipping.status_map import CarrierPhase

CLAIM_PREFIX = "shipping:notify:"

# Phase -> protected_data.shippingNotification flag
NOTIFICATION_FLAGS = {
    CarrierPhase.SHIPPED: "firstScan",
    CarrierPhase.DELIVERED: "delivered",
}


def notification_flag(phase: CarrierPhase) -> Optional[str]:
    """Flag name for a phase, or None when the phase sends nothing."""
    return NOTIFICATION_FLAGS.get(phase)


def claim_key(transaction_id: str, phase: CarrierPhase) -> str:
    return f"{CLAIM_PREFIX}{transaction_id}:{phase.value}"


async def claim_notification(redis, transaction_id: str, phase: CarrierPhase) -> bool:
    """
    Atomically claim the right to send one notification.

    Returns:
        True if this caller owns the send, False if another delivery does
    """
    acquired = await redis.set(
        claim_key(transaction_id, phase),
        "1",
        ex=settings.notification_claim_ttl_seconds,
        nx=True,
    )
    return bool(acquired)


async def release_notification(redis, transaction_id: str, phase: CarrierPhase) -> None:
    """Drop a claim so a later delivery may retry a failed send."""
    await redis.delete(claim_key(transaction_id, phase))
