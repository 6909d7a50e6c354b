import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront_payments.errors import ConflictError, NotFoundError, PersistenceError
from storefront_payments.models import (
    FULFILLMENT_CONFIRMED,
    FULFILLMENT_PENDING,
    ORDER_CREATED,
    ORDER_FAILED,
    ORDER_PAID,
    Order,
)

logger = logging.getLogger(__name__)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError("Database update failed", details=str(exc)) from exc


def get_order(db: Session, order_id: str) -> Optional[Order]:
    try:
        return db.get(Order, order_id)
    except SQLAlchemyError as exc:
        raise PersistenceError("Database lookup failed", details=str(exc)) from exc


def record_gateway_order(
    db: Session,
    order_id: str,
    gateway_order: Dict[str, Any],
    receipt: str,
    notes: Dict[str, str],
) -> Order:
    """Store a freshly created gateway order, or rebind an unpaid record to it."""
    order = get_order(db, order_id)

    if order is None:
        order = Order(id=order_id)
        db.add(order)
    elif order.status == ORDER_PAID:
        raise ConflictError("Order already paid")

    order.razorpay_order_id = gateway_order["id"]
    order.razorpay_payment_id = None
    order.amount = gateway_order.get("amount")
    order.currency = gateway_order.get("currency")
    order.receipt = receipt
    order.notes = notes
    order.status = ORDER_CREATED
    order.fulfillment_status = FULFILLMENT_PENDING

    _commit(db)
    return order


def find_by_gateway_order(db: Session, razorpay_order_id: str) -> Optional[Order]:
    return db.query(Order).filter_by(razorpay_order_id=razorpay_order_id).first()


def mark_paid(db: Session, order_id: str, razorpay_order_id: str, razorpay_payment_id: str) -> Order:
    """Move an order to paid/confirmed. Calling it again for a paid order is a no-op."""
    order = get_order(db, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    if order.razorpay_order_id and order.razorpay_order_id != razorpay_order_id:
        raise ConflictError("Payment does not belong to this order")

    if order.status == ORDER_PAID:
        return order

    order.razorpay_order_id = razorpay_order_id
    order.razorpay_payment_id = razorpay_payment_id
    order.status = ORDER_PAID
    order.fulfillment_status = FULFILLMENT_CONFIRMED
    _commit(db)
    logger.info("Order %s marked paid (payment %s)", order.id, razorpay_payment_id)
    return order


def mark_failed(db: Session, order: Order, razorpay_payment_id: Optional[str] = None) -> bool:
    """Only a still-created order can fail; paid orders are never demoted."""
    if order.status != ORDER_CREATED:
        return False

    order.status = ORDER_FAILED
    if razorpay_payment_id:
        order.razorpay_payment_id = razorpay_payment_id
    _commit(db)
    logger.info("Order %s marked failed", order.id)
    return True
