"""
Twilio SMS delivery receipt endpoint.
"""

import logging
from fastapi import APIRouter, Request, Response, status

from rental_backend.app.core.config import settings
from rental_backend.app.core.exceptions import WebhookSignatureError
from rental_backend.app.core.webhook_security import verify_twilio_signature
from rental_backend.app.domain.notifications.phone import mask_phone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/twilio", tags=["Twilio"])

# Twilio error codes worth calling out in logs
CARRIER_FILTERED = "30007"
RECIPIENT_OPTED_OUT = "21610"


def _public_url(request: Request) -> str:
    """URL as Twilio requested it (behind a proxy the scheme comes from X-Forwarded-Proto)."""
    proto = request.headers.get("x-forwarded-proto", request.url.scheme)
    host = request.headers.get("host", request.url.netloc)
    url = f"{proto}://{host}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


@router.post("/sms-status", status_code=status.HTTP_204_NO_CONTENT)
async def sms_status_callback(request: Request):
    """Log a delivery receipt for an outbound SMS."""
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}

    if settings.twilio_auth_token:
        signature = request.headers.get("X-Twilio-Signature")
        if not verify_twilio_signature(_public_url(request), params, signature, settings.twilio_auth_token):
            logger.warning("[DLR] Rejected status callback with invalid signature")
            raise WebhookSignatureError("twilio")

    message_sid = params.get("MessageSid")
    message_status = params.get("MessageStatus") or "unknown"
    error_code = params.get("ErrorCode") or ""
    phone = mask_phone(params.get("To"))

    logger.info("[DLR] %s %s -> %s %s", phone, message_sid, message_status, error_code)

    if message_status in ("undelivered", "failed"):
        if error_code == CARRIER_FILTERED:
            logger.warning("[DLR] Carrier filtered message to %s (content issue)", phone)
        elif error_code == RECIPIENT_OPTED_OUT:
            logger.warning("[DLR] Recipient %s opted out; must text START to resume", phone)
        else:
            logger.error("[DLR] Message failed to %s: %s (%s)", phone, message_status, error_code)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
