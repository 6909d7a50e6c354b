import json
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from sqlalchemy.orm import Session

from storefront_payments import payments
from storefront_payments.auth import verify_token
from storefront_payments.config import Settings
from storefront_payments.database import get_db
from storefront_payments.errors import ConfigurationError
from storefront_payments.razorpay_service import RazorpayClient
from storefront_payments.signature import verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> RazorpayClient:
    return request.app.state.gateway


class CustomerInfo(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None


class CreateOrderRequest(BaseModel):
    amount: Optional[int] = None
    currency: Optional[str] = None
    receipt: Optional[str] = None
    notes: Optional[Dict[str, str]] = None
    orderId: Optional[str] = None
    customerInfo: Optional[CustomerInfo] = None


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    orderId: Optional[str] = None


@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "status": "ok",
        "razorpay": {
            "configured": settings.razorpay_configured,
            "mode": settings.razorpay_mode,
        },
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/create-order")
def create_order_api(
    request: CreateOrderRequest,
    db: Session = Depends(get_db),
    gateway: RazorpayClient = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
    auth=Depends(verify_token),
):
    customer = request.customerInfo or CustomerInfo()
    notes = payments.build_notes(request.notes, request.orderId, customer.email, customer.phone)
    return payments.create_order(
        db,
        gateway,
        settings,
        amount=request.amount,
        currency=request.currency,
        receipt=request.receipt,
        notes=notes,
        order_id=request.orderId,
    )


@router.post("/verify-payment")
def verify_payment_api(
    request: VerifyPaymentRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    auth=Depends(verify_token),
):
    return payments.verify_payment(
        db,
        settings,
        request.razorpay_order_id,
        request.razorpay_payment_id,
        request.razorpay_signature,
        order_id=request.orderId,
    )


@router.get("/payment-status/{payment_id}")
def payment_status_api(
    payment_id: str,
    gateway: RazorpayClient = Depends(get_gateway),
    auth=Depends(verify_token),
):
    return payments.payment_status(gateway, payment_id)


@router.post("/webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: str = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not settings.webhook_secret:
        raise ConfigurationError("Razorpay webhook secret not configured")

    payload = await request.body()

    if not verify_webhook_signature(settings.webhook_secret, payload, x_razorpay_signature):
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")

    changed = await run_in_threadpool(payments.apply_webhook_event, db, event)
    logger.info("Webhook %s processed (changed=%s)", event.get("event"), changed)
    return {"ok": True}
