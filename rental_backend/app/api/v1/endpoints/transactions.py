"""
Transaction diagnostics endpoints.

Read-only view of a transaction's shipping notification state, guarded
by the ops API token.
"""

import hmac
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from rental_backend.app.core.config import settings
from rental_backend.app.core.exceptions import ResourceNotFoundError
from rental_backend.app.db.session import get_db
from rental_backend.app.schemas.transaction import (
    ShippingNotificationStatus,
    NotificationFlag,
    FailedNotification,
)
from rental_backend.app.services import transaction_service
from rental_backend.app.services.dead_letter import list_failures

router = APIRouter(prefix="/transactions", tags=["Transactions - Diagnostics"])


def require_ops_token(x_ops_token: Optional[str] = Header(None)):
    if not settings.ops_api_token:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    if not x_ops_token or not hmac.compare_digest(x_ops_token, settings.ops_api_token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid ops token")


@router.get(
    "/{transaction_id}/shipping-notifications",
    response_model=ShippingNotificationStatus,
    dependencies=[Depends(require_ops_token)]
)
async def get_shipping_notifications(
    transaction_id: str = Path(..., description="Transaction ID"),
    db: AsyncSession = Depends(get_db)
):
    """Notification flags, last tracking status and failed sends for a transaction."""
    transaction = await transaction_service.get_transaction(db, transaction_id)
    if not transaction:
        raise ResourceNotFoundError("Transaction", transaction_id)

    protected_data = transaction.protected_data or {}
    notifications = protected_data.get(transaction_service.SHIPPING_NOTIFICATION_KEY) or {}
    failures = await list_failures(db, reference_id=transaction.id)

    return ShippingNotificationStatus(
        transaction_id=transaction.id,
        carrier=transaction.carrier,
        outbound_tracking_number=transaction.outbound_tracking_number,
        return_tracking_number=transaction.return_tracking_number,
        has_borrower_phone=transaction_service.get_borrower_phone(transaction) is not None,
        first_scan=NotificationFlag(**(notifications.get("firstScan") or {})),
        delivered=NotificationFlag(**(notifications.get("delivered") or {})),
        last_tracking_status=protected_data.get(transaction_service.LAST_TRACKING_STATUS_KEY),
        failed_notifications=[FailedNotification.model_validate(f) for f in failures],
    )
