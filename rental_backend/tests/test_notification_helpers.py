"""
Unit tests for phone normalization, tracking links and SMS copy.
"""

import pytest

from rental_backend.app.domain.notifications.phone import normalize_phone_e164, is_valid_phone, mask_phone
from rental_backend.app.domain.notifications.messages import build_first_scan_message, build_delivered_message
from rental_backend.app.domain.shipping.tracking_links import get_public_tracking_url


@pytest.mark.parametrize("raw, expected", [
    ("5551234567", "+15551234567"),
    ("(555) 123-4567", "+15551234567"),
    ("15551234567", "+15551234567"),
    ("+15551234567", "+15551234567"),
    ("+44 20 7946 0958", "+442079460958"),
    ("1234567", "+11234567"),
])
def test_normalize_phone_e164(raw, expected):
    assert normalize_phone_e164(raw) == expected


def test_normalize_phone_uses_default_country():
    assert normalize_phone_e164("2079460958", default_country="GB") == "+442079460958"


@pytest.mark.parametrize("raw", [None, "", "+123", "call me"])
def test_normalize_phone_returns_unnormalizable_input(raw):
    assert normalize_phone_e164(raw) == raw


def test_is_valid_phone():
    assert is_valid_phone("+15551234567") is True
    assert is_valid_phone("555-123-4567") is True
    assert is_valid_phone("12345") is False
    assert is_valid_phone("+15551234") is False
    assert is_valid_phone(None) is False


def test_mask_phone():
    assert mask_phone("+15551234567") == "***4567"
    assert mask_phone(None) == "unknown"
    assert mask_phone("12") == "***"


@pytest.mark.parametrize("carrier, prefix", [
    ("USPS", "https://tools.usps.com/"),
    ("usps_priority", "https://tools.usps.com/"),
    ("UPS", "https://www.ups.com/"),
    ("FedEx", "https://www.fedex.com/"),
    ("dhl_express", "https://www.dhl.com/"),
])
def test_public_tracking_url_by_carrier(carrier, prefix):
    url = get_public_tracking_url(carrier, "TRACK123")
    assert url.startswith(prefix)
    assert url.endswith("TRACK123")


def test_public_tracking_url_fallbacks():
    assert get_public_tracking_url("lasership", "ABC") == "https://goshippo.com/track/ABC"
    assert get_public_tracking_url(None, "ABC") == "https://goshippo.com/track/ABC"
    assert get_public_tracking_url("USPS", None) == "https://goshippo.com/track/unknown"


def test_sms_copy():
    first_scan = build_first_scan_message("https://ups.com/t/1")
    assert "on the way" in first_scan
    assert first_scan.endswith("https://ups.com/t/1")
    assert "delivered" in build_delivered_message()
