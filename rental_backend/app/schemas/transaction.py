"""
Transaction diagnostics schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Dict, Any, List


class NotificationFlag(BaseModel):
    sent: bool = False
    sentAt: Optional[str] = None


class FailedNotification(BaseModel):
    id: int
    task_name: str
    error_message: str
    created_at: datetime

    class Config:
        from_attributes = True


class ShippingNotificationStatus(BaseModel):
    transaction_id: str
    carrier: Optional[str]
    outbound_tracking_number: Optional[str]
    return_tracking_number: Optional[str]
    has_borrower_phone: bool
    first_scan: NotificationFlag
    delivered: NotificationFlag
    last_tracking_status: Optional[Dict[str, Any]] = None
    failed_notifications: List[FailedNotification] = []
