"""
Carrier Status Normalization.

Maps carrier-specific tracking statuses (as reported by Shippo webhooks)
to the application shipping phases that drive borrower SMS notifications.
"""

import enum


class CarrierPhase(str, enum.Enum):
    """Normalized shipping phase derived from a carrier status."""
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    EXCEPTION = "EXCEPTION"
    OTHER = "OTHER"


# Item picked up / first scan (borrower "on the way" SMS)
SHIPPED_STATUSES = {
    "ACCEPTED",     # USPS: label accepted by carrier
    "ACCEPTANCE",
    "IN_TRANSIT",   # UPS/FedEx
    "TRANSIT",      # Shippo generic
    "PICKUP",
    "PRE_TRANSIT",
}

# Delivery completed (borrower "delivered" SMS)
DELIVERED_STATUSES = {
    "DELIVERED",
    "DELIVERY",
}

# Delivery failed or returned
EXCEPTION_STATUSES = {
    "FAILURE",
    "RETURNED",
    "EXCEPTION",
    "UNKNOWN",
}

# Carriers emit suffixed variants such as DELIVERED_TO_ACCESS_POINT
DELIVERED_PREFIX = "DELIVERED"


def _normalize(status_raw) -> str:
    if status_raw is None:
        return ""
    return str(status_raw).strip().upper()


def to_carrier_phase(status_raw) -> CarrierPhase:
    """
    Normalize a raw carrier status to an application phase.

    Args:
        status_raw: Raw status from the webhook payload (any case, may be None)

    Returns:
        CarrierPhase; OTHER for anything unrecognized
    """
    status = _normalize(status_raw)

    if status in SHIPPED_STATUSES:
        return CarrierPhase.SHIPPED

    if status in DELIVERED_STATUSES:
        return CarrierPhase.DELIVERED

    if status in EXCEPTION_STATUSES:
        return CarrierPhase.EXCEPTION

    return CarrierPhase.OTHER


def is_shipped_status(status) -> bool:
    """Check if status indicates first scan / shipped."""
    return to_carrier_phase(status) is CarrierPhase.SHIPPED


def is_delivered_status(status) -> bool:
    """
    Check if status indicates delivered.

    Accepts the exact delivered statuses and any status starting with
    DELIVERED (e.g. DELIVERED_TO_NEIGHBOR), which to_carrier_phase
    classifies as OTHER.
    """
    normalized = _normalize(status)
    if not normalized:
        return False

    if normalized in DELIVERED_STATUSES:
        return True

    return normalized.startswith(DELIVERED_PREFIX)
