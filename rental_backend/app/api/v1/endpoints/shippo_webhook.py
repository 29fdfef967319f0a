"""
Shippo Tracking Webhook Endpoints.

Receives track_updated events and sends borrower SMS for first scan and
delivery. A test-mode injection endpoint accepts flat payloads without a
signature when TEST_WEBHOOKS_ENABLED is set.
"""

import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from rental_backend.app.core.config import settings
from rental_backend.app.core.exceptions import InvalidWebhookPayloadError, WebhookSignatureError
from rental_backend.app.core.redis_client import get_redis
from rental_backend.app.core.webhook_security import verify_shippo_signature
from rental_backend.app.db.session import get_db
from rental_backend.app.schemas.shippo_webhook import (
    ShippoWebhookPayload,
    InjectedTrackPayload,
    TrackingUpdate,
    event_mode,
)
from rental_backend.app.services.shipping_notification_service import ShippingNotificationService
from rental_backend.app.services.sms_service import SmsService, get_sms_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])

SHIPPO_SIGNATURE_HEADER = "X-Shippo-Signature"


async def get_shipping_notification_service(
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
    sms: SmsService = Depends(get_sms_service)
) -> ShippingNotificationService:
    return ShippingNotificationService(db, redis, sms)


def require_test_webhooks():
    """Hide the injection endpoint unless test webhooks are enabled."""
    if not settings.test_webhooks_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


def parse_shippo_payload(body: bytes) -> ShippoWebhookPayload:
    try:
        raw = json.loads(body or b"null")
    except ValueError:
        raise InvalidWebhookPayloadError("Malformed JSON body")

    if not isinstance(raw, dict) or not isinstance(raw.get("data"), dict):
        raise InvalidWebhookPayloadError("Invalid payload structure - missing data field")

    try:
        return ShippoWebhookPayload.model_validate(raw)
    except ValidationError as e:
        raise InvalidWebhookPayloadError(details={"errors": e.errors(include_url=False, include_context=False)})


@router.post("/shippo")
async def shippo_tracking_webhook(
    request: Request,
    service: ShippingNotificationService = Depends(get_shipping_notification_service)
):
    """Shippo track_updated webhook."""
    body = await request.body()

    if settings.shippo_webhook_secret:
        signature = request.headers.get(SHIPPO_SIGNATURE_HEADER)
        if not verify_shippo_signature(body, signature, settings.shippo_webhook_secret):
            logger.warning("[SHIPPO] Rejected webhook with invalid signature")
            raise WebhookSignatureError("shippo")
    else:
        logger.debug("[SHIPPO] SHIPPO_WEBHOOK_SECRET not set - signature not verified")

    payload = parse_shippo_payload(body)

    expected_mode = settings.shippo_mode
    mode = event_mode(payload)
    if expected_mode and mode and mode.lower() != expected_mode.lower():
        logger.warning("[SHIPPO] Mode mismatch: event=%s expected=%s", mode, expected_mode)
        return {"ok": True, "ignored": "mode_mismatch"}

    return await service.process_tracking_update(TrackingUpdate.from_shippo(payload))


@router.post("/__test/shippo/track", dependencies=[Depends(require_test_webhooks)])
async def inject_test_tracking_update(
    payload: InjectedTrackPayload,
    service: ShippingNotificationService = Depends(get_shipping_notification_service)
):
    """Inject a tracking update without a signature (test mode only)."""
    logger.info("[TEST] Injected track_updated for %s status=%s", payload.tracking_number, payload.status)
    return await service.process_tracking_update(TrackingUpdate.from_test_payload(payload))
