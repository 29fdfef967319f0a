"""
SMS Service.

Sends borrower SMS through the Twilio REST API. Without Twilio
credentials (or with SMS_DRY_RUN set) messages are logged instead of sent.
"""

import logging
from typing import Optional, Dict, Any

import httpx

from rental_backend.app.core.config import settings
from rental_backend.app.core.exceptions import SmsDeliveryError
from rental_backend.app.core.reliability import CircuitBreaker, CircuitOpenError, sms_circuit_breaker
from rental_backend.app.domain.notifications.phone import mask_phone

logger = logging.getLogger(__name__)


class SmsService:

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        circuit_breaker: CircuitBreaker = sms_circuit_breaker
    ):
        self._http_client = http_client
        self.circuit_breaker = circuit_breaker

    @property
    def is_configured(self) -> bool:
        has_sender = bool(settings.twilio_from_number or settings.twilio_messaging_service_sid)
        return bool(settings.twilio_account_sid and settings.twilio_auth_token and has_sender)

    def _messages_url(self) -> str:
        return f"{settings.twilio_api_base_url}/Accounts/{settings.twilio_account_sid}/Messages.json"

    async def send_sms(self, to: str, body: str, tags: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send one SMS.

        Args:
            to: Recipient in E.164
            body: Message text
            tags: Context for logs (role, transaction id, trigger)

        Returns:
            {"sid", "status", "dry_run"}

        Raises:
            SmsDeliveryError: Provider rejected the message or is unreachable
        """
        tags = tags or {}

        if settings.sms_dry_run or not self.is_configured:
            logger.info("[SMS][DRY-RUN] to=%s tags=%s body=%r", mask_phone(to), tags, body)
            return {"sid": None, "status": "dry_run", "dry_run": True}

        form = {"To": to, "Body": body}
        if settings.twilio_messaging_service_sid:
            form["MessagingServiceSid"] = settings.twilio_messaging_service_sid
        else:
            form["From"] = settings.twilio_from_number

        try:
            response = await self.circuit_breaker.call(self._post_message, form)
        except CircuitOpenError as e:
            logger.error("[SMS] Provider circuit open, not sending to %s", mask_phone(to))
            raise SmsDeliveryError("SMS provider temporarily unavailable", details={"reason": str(e)})
        except httpx.HTTPStatusError as e:
            error = _provider_error(e.response)
            logger.error("[SMS] Twilio failed for %s: %s", mask_phone(to), error)
            raise SmsDeliveryError(details={"provider_status": e.response.status_code, **error})
        except httpx.HTTPError as e:
            logger.error("[SMS] Twilio request failed for %s: %s", mask_phone(to), e)
            raise SmsDeliveryError(details={"reason": type(e).__name__})

        if response.is_error:
            error = _provider_error(response)
            logger.error("[SMS] Twilio rejected message to %s: %s", mask_phone(to), error)
            raise SmsDeliveryError(details={"provider_status": response.status_code, **error})

        try:
            data = response.json()
        except ValueError:
            logger.error("[SMS] Unreadable Twilio response for %s: %r", mask_phone(to), response.text[:200])
            raise SmsDeliveryError(details={"provider_status": response.status_code, "reason": "invalid_response"})

        logger.info("[SMS] Sent to %s sid=%s tags=%s", mask_phone(to), data.get("sid"), tags)
        return {"sid": data.get("sid"), "status": data.get("status"), "dry_run": False}

    async def _post_message(self, form: Dict[str, str]) -> httpx.Response:
        """POST to Twilio. Only 5xx raises; 4xx rejections are returned to the caller."""
        auth = (settings.twilio_account_sid, settings.twilio_auth_token)
        if self._http_client is not None:
            response = await self._http_client.post(self._messages_url(), data=form, auth=auth)
        else:
            async with httpx.AsyncClient(timeout=settings.sms_timeout_seconds) as client:
                response = await client.post(self._messages_url(), data=form, auth=auth)
        if response.is_server_error:
            response.raise_for_status()
        return response


def _provider_error(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"provider_message": response.text[:200]}
    return {"provider_code": payload.get("code"), "provider_message": payload.get("message")}


sms_service = SmsService()


def get_sms_service() -> SmsService:
    """FastAPI dependency returning the process-wide SMS service."""
    return sms_service
