from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from storefront_payments.database import Base

ORDER_CREATED = "created"
ORDER_PAID = "paid"
ORDER_FAILED = "failed"

FULFILLMENT_PENDING = "pending"
FULFILLMENT_CONFIRMED = "confirmed"


def _utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True)                   # storefront order id
    razorpay_order_id = Column(String, unique=True, index=True)
    razorpay_payment_id = Column(String, nullable=True)
    amount = Column(Integer)                                # paise
    currency = Column(String)
    receipt = Column(String)
    notes = Column(JSON, default=dict)
    status = Column(String, default=ORDER_CREATED)          # created | paid | failed
    fulfillment_status = Column(String, default=FULFILLMENT_PENDING)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
