"""
Transaction lookup and shipping-notification bookkeeping.

Transactions are matched to Shippo tracking updates either by the
transaction id carried in the label metadata or by tracking number.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from rental_backend.app.models.transaction import Transaction
from rental_backend.app.domain.notifications.phone import normalize_phone_e164, is_valid_phone, mask_phone

logger = logging.getLogger(__name__)

SHIPPING_NOTIFICATION_KEY = "shippingNotification"
LAST_TRACKING_STATUS_KEY = "lastTrackingStatus"

MATCH_BY_TRANSACTION_ID = "metadata.transactionId"
MATCH_BY_TRACKING_NUMBER = "tracking_number_search"
MATCH_UNKNOWN = "unknown"


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def get_transaction(db: AsyncSession, transaction_id: str) -> Optional[Transaction]:
    result = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
    return result.scalar_one_or_none()


async def find_transaction_by_tracking_number(
    db: AsyncSession,
    tracking_number: str
) -> Optional[Transaction]:
    """Match a tracking number against outbound or return labels."""
    result = await db.execute(
        select(Transaction)
        .where(
            or_(
                Transaction.outbound_tracking_number == tracking_number,
                Transaction.return_tracking_number == tracking_number,
            )
        )
        .order_by(Transaction.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def resolve_transaction(
    db: AsyncSession,
    transaction_id: Optional[str],
    tracking_number: Optional[str]
) -> Tuple[Optional[Transaction], str]:
    """
    Find the transaction a tracking update belongs to.

    Prefers the transaction id from label metadata and falls back to a
    tracking-number search.

    Returns:
        (transaction or None, match strategy)
    """
    if transaction_id:
        transaction = await get_transaction(db, transaction_id)
        if transaction:
            return transaction, MATCH_BY_TRANSACTION_ID
        logger.warning("No transaction for metadata.transactionId=%s", transaction_id)

    if tracking_number:
        transaction = await find_transaction_by_tracking_number(db, tracking_number)
        if transaction:
            return transaction, MATCH_BY_TRACKING_NUMBER
        logger.warning("No transaction with tracking number %s", tracking_number)

    return None, MATCH_UNKNOWN


def get_borrower_phone(transaction: Transaction) -> Optional[str]:
    """Borrower phone in E.164, or None when the transaction has none."""
    protected_data = transaction.protected_data or {}
    raw_phone = transaction.customer_phone or protected_data.get("customerPhone")
    if not raw_phone:
        return None

    phone = normalize_phone_e164(raw_phone)
    if not is_valid_phone(phone):
        logger.warning("Could not normalize borrower phone %s", mask_phone(raw_phone))
        return None
    return phone


def is_notification_sent(transaction: Transaction, flag: str) -> bool:
    notifications = (transaction.protected_data or {}).get(SHIPPING_NOTIFICATION_KEY) or {}
    return (notifications.get(flag) or {}).get("sent") is True


def record_tracking_status(
    transaction: Transaction,
    status: Optional[str],
    substatus: Optional[str],
    event: str
) -> None:
    protected_data = dict(transaction.protected_data or {})
    protected_data[LAST_TRACKING_STATUS_KEY] = {
        "status": status,
        "substatus": substatus,
        "timestamp": _utcnow_iso(),
        "event": event,
    }
    transaction.protected_data = protected_data


async def mark_notification_sent(db: AsyncSession, transaction: Transaction, flag: str) -> None:
    """Persist the sent flag for one notification; caller commits."""
    protected_data = dict(transaction.protected_data or {})
    notifications = dict(protected_data.get(SHIPPING_NOTIFICATION_KEY) or {})
    notifications[flag] = {"sent": True, "sentAt": _utcnow_iso()}
    protected_data[SHIPPING_NOTIFICATION_KEY] = notifications
    transaction.protected_data = protected_data
    await db.flush()
