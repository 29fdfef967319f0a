"""
Dead Letter Queue (DLQ) Model.

Stores failed notification sends for retry or audit.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum
from sqlalchemy.sql import func
from rental_backend.app.db.session import Base
import enum


class DLQStatus(str, enum.Enum):
    FAILED = "FAILED"
    RETRYING = "RETRYING"
    PROCESSED = "PROCESSED"
    ARCHIVED = "ARCHIVED"  # Gave up


class DeadLetterQueue(Base):
    """
    Dead Letter Queue table.
    Captures failed SMS sends with the context needed to resend.
    """
    __tablename__ = "dead_letter_queue"
    
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    
    task_name = Column(String(100), nullable=False, index=True)
    reference_id = Column(String(64), nullable=True, index=True)  # transaction id
    error_message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=True)
    
    status = Column(Enum(DLQStatus), default=DLQStatus.FAILED, nullable=False, index=True)
    retry_count = Column(Integer, default=0)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_retry_at = Column(DateTime(timezone=True), nullable=True)
    
    def __repr__(self):
        return f"<DLQ(id={self.id}, task='{self.task_name}', status='{self.status}')>"
