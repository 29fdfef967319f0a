"""
Transaction database model.

A rental transaction between a lender and a borrower. Shipping state
written by label purchase and the tracking webhook lives on the row;
notification flags live in `protected_data`.
"""

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from rental_backend.app.db.session import Base


class Transaction(Base):
    """
    Rental transaction.
    
    protected_data layout:
        shippingNotification: {firstScan: {sent, sentAt}, delivered: {sent, sentAt}}
        lastTrackingStatus: {status, substatus, timestamp, event}
        customerPhone: optional fallback phone
    """
    __tablename__ = "transactions"
    
    id = Column(String(64), primary_key=True, index=True)
    
    # Borrower contact
    customer_phone = Column(String(32), nullable=True)
    
    # Shipping
    carrier = Column(String(50), nullable=True)
    outbound_tracking_number = Column(String(100), nullable=True, index=True)
    outbound_tracking_url = Column(String(500), nullable=True)
    return_tracking_number = Column(String(100), nullable=True, index=True)
    
    protected_data = Column(JSON, nullable=False, default=dict)  # replaced wholesale on update
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    
    def __repr__(self):
        return f"<Transaction(id='{self.id}', outbound='{self.outbound_tracking_number}')>"
