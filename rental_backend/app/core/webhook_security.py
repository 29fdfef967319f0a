"""
Inbound webhook signature verification.

Shippo: hex HMAC-SHA256 of the raw request body (X-Shippo-Signature).
Twilio: base64 HMAC-SHA1 of the full URL plus sorted form params
(X-Twilio-Signature).
"""

import base64
import hashlib
import hmac
from typing import Mapping, Optional


def compute_shippo_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_shippo_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verify a Shippo webhook signature.

    Accepts the bare hex digest or a "sha256=<hex>" form.
    """
    if not signature or not secret:
        return False

    received = signature.strip()
    if received.lower().startswith("sha256="):
        received = received[len("sha256="):]

    expected = compute_shippo_signature(body, secret)
    return hmac.compare_digest(expected, received.lower())


def compute_twilio_signature(url: str, params: Mapping[str, str], auth_token: str) -> str:
    data = url + "".join(f"{key}{params[key]}" for key in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), data.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_twilio_signature(
    url: str,
    params: Mapping[str, str],
    signature: Optional[str],
    auth_token: str
) -> bool:
    """Verify a Twilio status callback signature."""
    if not signature or not auth_token:
        return False

    expected = compute_twilio_signature(url, params, auth_token)
    return hmac.compare_digest(expected, signature)
