import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from storefront_payments.config import Settings
from storefront_payments.errors import (
    ConfigurationError,
    ConflictError,
    GatewayCredentialsError,
    GatewayError,
    NotFoundError,
    PaymentError,
    PersistenceError,
    ValidationError,
)
from storefront_payments.models import ORDER_PAID
from storefront_payments.razorpay_service import RazorpayClient
from storefront_payments.signature import verify_payment_signature
from storefront_payments.store import (
    find_by_gateway_order,
    get_order,
    mark_failed,
    mark_paid,
    record_gateway_order,
)

logger = logging.getLogger(__name__)

MINOR_UNITS_PER_MAJOR = 100

VERIFIED_MESSAGE = "Payment verified successfully"
INVALID_MESSAGE = "Invalid payment signature"
PERSIST_FAILED_MESSAGE = "Payment verified but failed to update order"


def build_notes(
    notes: Optional[Dict[str, str]],
    order_id: Optional[str] = None,
    customer_email: Optional[str] = None,
    customer_phone: Optional[str] = None,
) -> Dict[str, str]:
    merged = dict(notes or {})
    if order_id:
        merged["order_id"] = order_id
    if customer_email:
        merged["customer_email"] = customer_email
    if customer_phone:
        merged["customer_phone"] = customer_phone
    return merged


def create_order(
    db: Session,
    gateway: RazorpayClient,
    settings: Settings,
    amount: Optional[int],
    currency: Optional[str],
    receipt: Optional[str],
    notes: Dict[str, str],
    order_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Validate the checkout request, create the gateway order and record it.

    ``amount`` is in the display currency; the gateway receives minor units.
    """
    if amount is None or not currency or not receipt:
        raise ValidationError("Missing required fields: amount, currency, receipt")
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0")
    if currency != settings.currency:
        raise ValidationError(f"Only {settings.currency} currency is supported")

    if order_id:
        existing = get_order(db, order_id)
        if existing is not None and existing.status == ORDER_PAID:
            raise ConflictError("Order already paid")

    try:
        gateway_order = gateway.create_order(
            amount=amount * MINOR_UNITS_PER_MAJOR,
            currency=currency,
            receipt=receipt,
            notes=notes,
        )
    except GatewayError as exc:
        if exc.status_code == 400:
            raise ValidationError("Invalid request parameters", details=exc.details)
        if exc.status_code == 401:
            raise GatewayCredentialsError("Invalid Razorpay credentials")
        raise GatewayError("Failed to create Razorpay order", details=exc.details, status_code=500)

    logger.info(
        "Razorpay order created: id=%s amount=%s currency=%s",
        gateway_order.get("id"), gateway_order.get("amount"), gateway_order.get("currency"),
    )

    record_id = order_id or str(uuid.uuid4())
    try:
        record_gateway_order(db, record_id, gateway_order, receipt, notes)
    except ConflictError:
        # paid between the check above and now
        logger.warning("Order %s was paid before Razorpay order %s could be bound",
                       record_id, gateway_order.get("id"))
        raise
    except PersistenceError:
        # the gateway order exists, so the checkout can still go ahead
        logger.exception("Failed to record Razorpay order %s", gateway_order.get("id"))

    return {"success": True, "order": gateway_order, "orderId": record_id}


def verify_payment(
    db: Session,
    settings: Settings,
    razorpay_order_id: Optional[str],
    razorpay_payment_id: Optional[str],
    razorpay_signature: Optional[str],
    order_id: Optional[str] = None,
) -> Dict[str, Any]:
    if not razorpay_order_id or not razorpay_payment_id or not razorpay_signature:
        raise ValidationError(
            "Missing required fields: razorpay_order_id, razorpay_payment_id, razorpay_signature"
        )
    if not settings.key_secret:
        raise ConfigurationError("Razorpay credentials not configured")

    is_valid = verify_payment_signature(
        settings.key_secret, razorpay_order_id, razorpay_payment_id, razorpay_signature
    )
    logger.info(
        "Payment verification: order_id=%s payment_id=%s valid=%s",
        razorpay_order_id, razorpay_payment_id, is_valid,
    )

    if not is_valid:
        return {"success": True, "isValid": False, "message": INVALID_MESSAGE}

    if order_id:
        try:
            mark_paid(db, order_id, razorpay_order_id, razorpay_payment_id)
        except PaymentError as exc:
            logger.error("Verified payment %s but could not update order %s: %s",
                         razorpay_payment_id, order_id, exc.error)
            exc.extra.update(isValid=True, message=PERSIST_FAILED_MESSAGE)
            raise

    return {"success": True, "isValid": True, "message": VERIFIED_MESSAGE}


def payment_status(gateway: RazorpayClient, payment_id: str) -> Dict[str, Any]:
    if not payment_id:
        raise ValidationError("Payment ID is required")

    try:
        payment = gateway.fetch_payment(payment_id)
    except GatewayError as exc:
        if exc.status_code == 404:
            raise NotFoundError("Payment not found")
        raise GatewayError(
            "Failed to fetch payment status", details=exc.details, status_code=exc.status_code
        )

    return {"success": True, "payment": payment}


def apply_webhook_event(db: Session, event: Dict[str, Any]) -> bool:
    """Apply a signed gateway event to the matching order. Returns True if it changed."""
    event_type = event.get("event")
    entity = event.get("payload")
    for key in ("payment", "entity"):
        entity = entity.get(key) if isinstance(entity, dict) else None
    if not isinstance(entity, dict):
        return False
    gateway_order_id = entity.get("order_id")
    if event_type not in ("payment.captured", "payment.failed") or not gateway_order_id:
        return False

    order = find_by_gateway_order(db, gateway_order_id)
    if order is None:
        logger.info("Webhook %s for unknown order %s", event_type, gateway_order_id)
        return False

    if event_type == "payment.failed":
        return mark_failed(db, order, entity.get("id"))

    before = order.status
    mark_paid(db, order.id, gateway_order_id, entity.get("id"))
    return before != order.status
