"""
Dead letter capture for failed notification sends.
"""

import logging
from typing import Optional, Dict, Any, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from rental_backend.app.models.dlq import DeadLetterQueue, DLQStatus

logger = logging.getLogger(__name__)


async def record_failure(
    db: AsyncSession,
    task_name: str,
    error_message: str,
    reference_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None
) -> DeadLetterQueue:
    """Store a failed task and commit it independently of the caller's work."""
    entry = DeadLetterQueue(
        task_name=task_name,
        reference_id=reference_id,
        error_message=error_message,
        payload=payload,
        status=DLQStatus.FAILED
    )
    db.add(entry)
    await db.commit()
    logger.warning("DLQ: captured %s for %s: %s", task_name, reference_id, error_message)
    return entry


async def list_failures(
    db: AsyncSession,
    reference_id: Optional[str] = None,
    limit: int = 20
) -> List[DeadLetterQueue]:
    query = select(DeadLetterQueue).where(DeadLetterQueue.status == DLQStatus.FAILED)
    if reference_id:
        query = query.where(DeadLetterQueue.reference_id == reference_id)
    result = await db.execute(query.order_by(desc(DeadLetterQueue.id)).limit(limit))
    return list(result.scalars().all())
