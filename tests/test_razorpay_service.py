import base64
import json

import httpx
import pytest

from storefront_payments.config import Settings
from storefront_payments.errors import ConfigurationError, GatewayError, GatewayTimeoutError
from storefront_payments.razorpay_service import RazorpayClient

API_URL = "https://api.razorpay.test/v1"


def make_client(handler, **overrides):
    settings = Settings(
        test_key_id="rzp_test_123",
        test_key_secret="secret_456",
        api_url=API_URL,
        **overrides,
    )
    return RazorpayClient(settings, transport=httpx.MockTransport(handler))


def test_create_order_posts_to_orders_with_basic_auth():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_1", "amount": 100000, "currency": "INR"})

    client = make_client(handler)
    order = client.create_order(100000, "INR", "r1", {"k": "v"})

    assert order["id"] == "order_1"
    assert seen["method"] == "POST"
    assert seen["url"] == f"{API_URL}/orders"
    expected_auth = base64.b64encode(b"rzp_test_123:secret_456").decode()
    assert seen["auth"] == f"Basic {expected_auth}"
    assert seen["body"] == {
        "amount": 100000,
        "currency": "INR",
        "receipt": "r1",
        "notes": {"k": "v"},
        "payment_capture": 1,
    }


def test_manual_capture_sends_zero():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_1"})

    make_client(handler, auto_capture=False).create_order(500, "INR", "r1", {})

    assert seen["body"]["payment_capture"] == 0


def test_fetch_payment_url():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"id": "pay_1", "status": "captured"})

    payment = make_client(handler).fetch_payment("pay_1")

    assert payment["status"] == "captured"
    assert seen["url"] == f"{API_URL}/payments/pay_1"


def test_error_status_raises_gateway_error_with_payload():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR"}})

    with pytest.raises(GatewayError) as exc_info:
        make_client(handler).create_order(100, "INR", "r1", {})

    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"error": {"code": "BAD_REQUEST_ERROR"}}


def test_timeout_raises_gateway_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(GatewayTimeoutError) as exc_info:
        make_client(handler).fetch_payment("pay_1")

    assert exc_info.value.status_code == 408


def test_connection_error_raises_bad_gateway():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GatewayError) as exc_info:
        make_client(handler).fetch_payment("pay_1")

    assert exc_info.value.status_code == 502


def test_unconfigured_credentials_make_no_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    settings = Settings(api_url=API_URL)
    client = RazorpayClient(settings, transport=httpx.MockTransport(handler))

    with pytest.raises(ConfigurationError):
        client.create_order(100, "INR", "r1", {})
    assert calls == []


def test_non_json_success_body_raises_gateway_error():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    with pytest.raises(GatewayError) as exc_info:
        make_client(handler).fetch_payment("pay_1")

    assert exc_info.value.status_code == 502
    assert exc_info.value.error == "Payment gateway returned an invalid response"
