"""
Phone number normalization for SMS delivery.
"""

import re
from typing import Optional

COUNTRY_CODES = {
    "US": "1",
    "CA": "1",
    "UK": "44",
    "GB": "44",
}

_NON_DIAL_CHARS = re.compile(r"[^\d+]")
_E164 = re.compile(r"^\+\d{10,15}$")
_US_TEN_DIGIT = re.compile(r"^\d{10}$")


def _clean(phone: str) -> str:
    return _NON_DIAL_CHARS.sub("", str(phone).strip())


def normalize_phone_e164(phone: Optional[str], default_country: str = "US") -> Optional[str]:
    """
    Normalize a phone number to E.164 (+<country><number>).

    Examples:
        "5551234567"      -> "+15551234567"
        "(555) 123-4567"  -> "+15551234567"
        "15551234567"     -> "+15551234567"

    Returns the input unchanged when it cannot be normalized.
    """
    if not phone or not isinstance(phone, str):
        return phone

    country_code = COUNTRY_CODES.get(default_country.upper(), "1")
    cleaned = _clean(phone)

    if cleaned.startswith("+"):
        # Country code plus at least 7 digits
        return cleaned if len(cleaned) >= 8 else phone

    if len(cleaned) == 10:
        return f"+{country_code}{cleaned}"

    if len(cleaned) == 11 and cleaned.startswith("1"):
        return f"+{cleaned}"

    if cleaned:
        if len(cleaned) >= 10:
            return f"+{cleaned}"
        return f"+{country_code}{cleaned}"

    return phone


def is_valid_phone(phone: Optional[str]) -> bool:
    """True for E.164 numbers or bare US 10-digit numbers."""
    if not phone or not isinstance(phone, str):
        return False

    cleaned = _clean(phone)
    return bool(_E164.match(cleaned) or _US_TEN_DIGIT.match(cleaned))


def mask_phone(phone: Optional[str]) -> str:
    """Mask all but the last four digits for logging."""
    if not phone:
        return "unknown"
    digits = re.sub(r"\D", "", str(phone))
    if len(digits) <= 4:
        return "***"
    return f"***{digits[-4:]}"
