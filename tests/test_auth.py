from dataclasses import replace

from fastapi.testclient import TestClient
from jose import jwt

from conftest import JWT_SECRET, sign
from storefront_payments.main import create_app

VERIFY_BODY = {
    "razorpay_order_id": "order_1",
    "razorpay_payment_id": "pay_1",
    "razorpay_signature": sign("order_1", "pay_1"),
}


def test_missing_token_is_rejected(settings):
    with TestClient(create_app(settings)) as client:
        response = client.post("/verify-payment", json=VERIFY_BODY)

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or missing token"


def test_wrong_scheme_and_bad_signature_are_rejected(settings):
    forged = jwt.encode({"sub": "user-1"}, "not-the-secret", algorithm="HS256")

    with TestClient(create_app(settings)) as client:
        basic = client.post("/verify-payment", json=VERIFY_BODY, headers={"Authorization": "Basic abc"})
        bad = client.post("/verify-payment", json=VERIFY_BODY, headers={"Authorization": f"Bearer {forged}"})

    assert basic.status_code == 401
    assert bad.status_code == 401


def test_platform_token_is_accepted(settings):
    token = jwt.encode({"sub": "user-1", "aud": "authenticated"}, JWT_SECRET, algorithm="HS256")

    with TestClient(create_app(settings)) as client:
        response = client.post(
            "/verify-payment", json=VERIFY_BODY, headers={"Authorization": f"Bearer {token}"}
        )

    assert response.status_code == 200
    assert response.json()["isValid"] is True


def test_health_is_public(settings):
    with TestClient(create_app(settings)) as client:
        assert client.get("/health").status_code == 200


def test_auth_can_be_disabled(settings):
    with TestClient(create_app(replace(settings, require_auth=False))) as client:
        response = client.post("/verify-payment", json=VERIFY_BODY)

    assert response.status_code == 200


def test_missing_auth_secret_is_a_server_error(settings):
    with TestClient(create_app(replace(settings, jwt_secret=""))) as client:
        response = client.post("/verify-payment", json=VERIFY_BODY)

    assert response.status_code == 500
    assert response.json()["error"] == "Auth secret not configured"
