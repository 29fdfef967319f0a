"""
Shippo Webhook Schemas.
"""

import json
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, Union


class ShippoTrackingStatus(BaseModel):
    status: Optional[str] = None
    substatus: Optional[Union[Dict[str, Any], str]] = None
    status_details: Optional[str] = None


class ShippoTrackData(BaseModel):
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    tracking_status: Optional[ShippoTrackingStatus] = None
    # Shippo echoes label metadata back as a string; older labels stored an object
    metadata: Optional[Union[Dict[str, Any], str]] = None


class ShippoWebhookPayload(BaseModel):
    """track_updated event as delivered by Shippo."""
    event: Optional[Union[Dict[str, Any], str]] = None
    test: Optional[bool] = None
    data: ShippoTrackData


class InjectedTrackPayload(BaseModel):
    """Flat payload accepted by the test-mode injection endpoint."""
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    status: Optional[str] = None
    substatus: Optional[str] = None
    tx_id: Optional[str] = Field(default=None, alias="txId")


class TrackingUpdate(BaseModel):
    """Provider-neutral tracking update handed to the notification service."""
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    status: Optional[str] = None
    substatus: Optional[str] = None
    transaction_id: Optional[str] = None

    @classmethod
    def from_shippo(cls, payload: ShippoWebhookPayload) -> "TrackingUpdate":
        data = payload.data
        tracking_status = data.tracking_status or ShippoTrackingStatus()
        substatus = tracking_status.substatus
        if isinstance(substatus, dict):
            substatus = substatus.get("code")
        return cls(
            tracking_number=data.tracking_number,
            carrier=data.carrier,
            status=tracking_status.status,
            substatus=substatus,
            transaction_id=_metadata_transaction_id(data.metadata),
        )

    @classmethod
    def from_test_payload(cls, payload: InjectedTrackPayload) -> "TrackingUpdate":
        return cls(
            tracking_number=payload.tracking_number,
            carrier=payload.carrier,
            status=payload.status,
            substatus=payload.substatus,
            transaction_id=payload.tx_id,
        )


def event_mode(payload: ShippoWebhookPayload) -> Optional[str]:
    """Shippo mode ('test' or 'live') of the event, if reported."""
    if isinstance(payload.event, dict):
        return payload.event.get("mode")
    if payload.test is not None:
        return "test" if payload.test else "live"
    return None


def _metadata_transaction_id(metadata) -> Optional[str]:
    if isinstance(metadata, str):
        try:
            metadata = json.loads(metadata)
        except ValueError:
            return None
    if not isinstance(metadata, dict):
        return None
    return metadata.get("transactionId") or metadata.get("txId")
