"""
Shipping Notification Service.

Turns carrier tracking updates into borrower SMS:

    tracking update -> carrier phase -> transaction -> idempotency -> SMS -> flag

Only outbound shipments notify the borrower; return-label updates are
recorded and otherwise ignored.
"""

import logging
from typing import Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession

from rental_backend.app.core.exceptions import (
    AppException,
    InvalidWebhookPayloadError,
    MissingRecipientError,
    SmsDeliveryError,
    TransactionNotFoundError,
)
from rental_backend.app.domain.notifications.messages import build_delivered_message, build_first_scan_message
from rental_backend.app.domain.shipping.status_map import CarrierPhase, to_carrier_phase, is_delivered_status
from rental_backend.app.domain.shipping.tracking_links import get_public_tracking_url
from rental_backend.app.models.transaction import Transaction
from rental_backend.app.schemas.shippo_webhook import TrackingUpdate
from rental_backend.app.services import transaction_service
from rental_backend.app.services.dead_letter import record_failure
from rental_backend.app.services.notification_guard import (
    claim_notification,
    notification_flag,
    release_notification,
)
from rental_backend.app.services.sms_service import SmsService

logger = logging.getLogger(__name__)

SMS_TYPES = {
    CarrierPhase.SHIPPED: "first scan",
    CarrierPhase.DELIVERED: "delivery",
}

TRACKING_EVENTS = {
    CarrierPhase.SHIPPED: "first_scan",
    CarrierPhase.DELIVERED: "delivered",
}


def notification_phase(status) -> CarrierPhase:
    """
    Phase used for notification routing.

    Suffixed delivered statuses (DELIVERED_TO_ACCESS_POINT) classify as
    OTHER but still count as a delivery for the borrower.
    """
    phase = to_carrier_phase(status)
    if phase is CarrierPhase.OTHER and is_delivered_status(status):
        return CarrierPhase.DELIVERED
    return phase


class ShippingNotificationService:

    def __init__(self, db: AsyncSession, redis, sms: SmsService):
        self.db = db
        self.redis = redis
        self.sms = sms

    async def process_tracking_update(self, update: TrackingUpdate) -> Dict[str, Any]:
        """
        Process one tracking update end to end.

        Returns:
            Response body for the webhook caller

        Raises:
            InvalidWebhookPayloadError: Nothing to match the update with
            TransactionNotFoundError: No transaction for the update
            MissingRecipientError: Transaction has no usable borrower phone
            SmsDeliveryError: SMS provider failed (captured in the DLQ)
        """
        if not update.tracking_number and not update.transaction_id:
            raise InvalidWebhookPayloadError("Missing tracking_number")

        phase = notification_phase(update.status)
        flag = notification_flag(phase)
        logger.info(
            "[SHIPPO] tracking=%s carrier=%s status=%s phase=%s",
            update.tracking_number, update.carrier, update.status, phase.value
        )

        if flag is None:
            logger.info("[SHIPPO] Status %r does not notify - ignoring", update.status)
            return {
                "ok": True,
                "ignored": True,
                "phase": phase.value,
                "message": f"Status '{update.status}' does not trigger a notification",
            }

        transaction, match_strategy = await transaction_service.resolve_transaction(
            self.db, update.transaction_id, update.tracking_number
        )
        if transaction is None:
            raise TransactionNotFoundError(update.tracking_number, update.transaction_id)

        if _is_return_shipment(transaction, update):
            transaction_service.record_tracking_status(
                transaction, update.status, update.substatus, f"return_{TRACKING_EVENTS[phase]}"
            )
            await self.db.commit()
            logger.info("[SHIPPO] Return shipment update for %s - no borrower SMS", transaction.id)
            return {
                "ok": True,
                "ignored": True,
                "phase": phase.value,
                "transactionId": transaction.id,
                "message": "Return shipment update recorded",
            }

        sms_type = SMS_TYPES[phase]
        base = {
            "transactionId": transaction.id,
            "matchStrategy": match_strategy,
            "phase": phase.value,
            "smsType": sms_type,
        }

        if transaction_service.is_notification_sent(transaction, flag):
            logger.info("[SHIPPO] %s SMS already sent for %s - skipping", sms_type, transaction.id)
            return {**base, "success": True, "idempotent": True,
                    "message": f"{sms_type} SMS already sent"}

        if not await claim_notification(self.redis, transaction.id, phase):
            logger.info("[SHIPPO] %s SMS for %s in flight elsewhere - skipping", sms_type, transaction.id)
            return {**base, "success": True, "idempotent": True, "reason": "in_flight",
                    "message": f"{sms_type} SMS already in progress"}

        try:
            await self._send(transaction, update, phase, sms_type)
        except AppException:
            await release_notification(self.redis, transaction.id, phase)
            raise

        transaction_service.record_tracking_status(
            transaction, update.status, update.substatus, TRACKING_EVENTS[phase]
        )
        await transaction_service.mark_notification_sent(self.db, transaction, flag)
        await self.db.commit()

        logger.info("[SHIPPO] %s webhook processed for %s", sms_type, transaction.id)
        return {**base, "success": True, "message": f"{sms_type} SMS sent successfully"}

    async def _send(
        self,
        transaction: Transaction,
        update: TrackingUpdate,
        phase: CarrierPhase,
        sms_type: str
    ) -> None:
        phone = transaction_service.get_borrower_phone(transaction)
        if not phone:
            raise MissingRecipientError(transaction.id)

        if phase is CarrierPhase.SHIPPED:
            message = build_first_scan_message(_tracking_url(transaction, update))
        else:
            message = build_delivered_message()

        tags = {
            "role": "customer",
            "transactionId": transaction.id,
            "transition": f"webhook/shippo-{sms_type.replace(' ', '-')}",
        }
        try:
            await self.sms.send_sms(phone, message, tags)
        except SmsDeliveryError as e:
            await record_failure(
                self.db,
                task_name=f"shippo_{TRACKING_EVENTS[phase]}_sms",
                error_message=e.message,
                reference_id=transaction.id,
                payload={
                    "tracking_number": update.tracking_number,
                    "status": update.status,
                    "details": e.details,
                },
            )
            raise


def _is_return_shipment(transaction: Transaction, update: TrackingUpdate) -> bool:
    return bool(
        update.tracking_number
        and transaction.return_tracking_number == update.tracking_number
        and transaction.outbound_tracking_number != update.tracking_number
    )


def _tracking_url(transaction: Transaction, update: TrackingUpdate) -> str:
    """Short carrier link when the carrier is known, else the stored label URL."""
    carrier = update.carrier or transaction.carrier
    tracking_number = transaction.outbound_tracking_number or update.tracking_number
    if carrier or not transaction.outbound_tracking_url:
        return get_public_tracking_url(carrier, tracking_number)
    return transaction.outbound_tracking_url
