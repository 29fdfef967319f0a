"""
Unit tests for webhook signature verification.
"""

import base64
import hashlib
import hmac

from rental_backend.app.core.webhook_security import (
    compute_shippo_signature,
    verify_shippo_signature,
    compute_twilio_signature,
    verify_twilio_signature,
)

SECRET = "whsec_test_secret"
BODY = b'{"event": "track_updated", "data": {"tracking_number": "1Z999"}}'


def test_shippo_signature_roundtrip():
    signature = compute_shippo_signature(BODY, SECRET)
    assert verify_shippo_signature(BODY, signature, SECRET) is True
    assert verify_shippo_signature(BODY, f"sha256={signature}", SECRET) is True
    assert verify_shippo_signature(BODY, signature.upper(), SECRET) is True


def test_shippo_signature_rejects_tampering():
    signature = compute_shippo_signature(BODY, SECRET)
    assert verify_shippo_signature(BODY + b" ", signature, SECRET) is False
    assert verify_shippo_signature(BODY, signature, "other-secret") is False
    assert verify_shippo_signature(BODY, None, SECRET) is False
    assert verify_shippo_signature(BODY, signature, "") is False


def test_twilio_signature_is_sorted_concatenation():
    url = "https://mycompany.com/myapp.php?foo=1&bar=2"
    params = {
        "CallSid": "CA1234567890ABCDE",
        "Caller": "+12349013030",
        "Digits": "1234",
        "From": "+12349013030",
        "To": "+18005551212",
    }
    data = url + "CallSidCA1234567890ABCDECaller+12349013030Digits1234From+12349013030To+18005551212"
    expected = base64.b64encode(hmac.new(b"12345", data.encode(), hashlib.sha1).digest()).decode()

    assert compute_twilio_signature(url, params, "12345") == expected
    assert verify_twilio_signature(url, params, expected, "12345") is True


def test_twilio_signature_rejects_changed_params():
    url = "https://example.com/v1/twilio/sms-status"
    params = {"MessageSid": "SM1", "MessageStatus": "delivered"}
    signature = compute_twilio_signature(url, params, "token")
    assert verify_twilio_signature(url, {**params, "MessageStatus": "failed"}, signature, "token") is False
    assert verify_twilio_signature(url, params, None, "token") is False
