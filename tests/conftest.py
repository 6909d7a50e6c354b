import hashlib
import hmac

import pytest
from fastapi.testclient import TestClient

from storefront_payments.auth import verify_token
from storefront_payments.config import Settings
from storefront_payments.main import create_app
from storefront_payments.models import Order

KEY_SECRET = "test_key_secret"
WEBHOOK_SECRET = "whsec_test"
JWT_SECRET = "jwt_test_secret"


def sign(order_id, payment_id, secret=KEY_SECRET):
    return hmac.new(
        secret.encode(), f"{order_id}|{payment_id}".encode(), hashlib.sha256
    ).hexdigest()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        test_key_id="rzp_test_123",
        test_key_secret=KEY_SECRET,
        webhook_secret=WEBHOOK_SECRET,
        api_url="https://api.razorpay.test/v1",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret=JWT_SECRET,
    )


@pytest.fixture
def fastapi_app(settings):
    return create_app(settings)


@pytest.fixture
def client(fastapi_app):
    # Bypass auth verification for tests
    fastapi_app.dependency_overrides[verify_token] = lambda: True

    with TestClient(fastapi_app) as c:
        yield c

    fastapi_app.dependency_overrides.clear()


def load_order(fastapi_app, order_id):
    db = fastapi_app.state.session_factory()
    try:
        return db.get(Order, order_id)
    finally:
        db.close()
