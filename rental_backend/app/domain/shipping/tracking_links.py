"""
Carrier-aware public tracking links.

Short carrier URLs keep the first-scan SMS well under a single segment
compared to the long Shippo tracking URLs.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)

SHIPPO_TRACKING_URL = "https://goshippo.com/track/{tracking_number}"

# Checked in order; "ups" is a substring of "usps" so USPS comes first
CARRIER_TRACKING_URLS = (
    ("usps", "https://tools.usps.com/go/TrackConfirmAction_input?origTrackNum={tracking_number}"),
    ("ups", "https://www.ups.com/track?loc=en_US&tracknum={tracking_number}"),
    ("fedex", "https://www.fedex.com/fedextrack/?tracknumbers={tracking_number}"),
    ("dhl", "https://www.dhl.com/en/express/tracking.html?AWB={tracking_number}"),
)


def get_public_tracking_url(carrier: Optional[str], tracking_number: Optional[str]) -> str:
    """
    Build a public tracking URL for a carrier and tracking number.

    Unknown carriers and missing tracking numbers fall back to Shippo's
    universal tracker.
    """
    if not tracking_number:
        logger.warning("No tracking number provided, using Shippo fallback")
        return SHIPPO_TRACKING_URL.format(tracking_number="unknown")

    normalized_carrier = (carrier or "").lower()
    for key, template in CARRIER_TRACKING_URLS:
        if key in normalized_carrier:
            return template.format(tracking_number=tracking_number)

    logger.warning("Unknown carrier %r, using Shippo fallback", carrier)
    return SHIPPO_TRACKING_URL.format(tracking_number=tracking_number)
