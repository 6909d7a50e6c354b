import hashlib
import hmac


def compute_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Lowercase hex HMAC-SHA256 of ``"{order_id}|{payment_id}"``."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def compute_webhook_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def signatures_match(expected: str, supplied: str) -> bool:
    # bytes so non-ascii input compares unequal instead of raising
    return hmac.compare_digest(expected.encode("utf-8"), supplied.encode("utf-8"))


def verify_payment_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    return signatures_match(compute_signature(secret, order_id, payment_id), signature)


def verify_webhook_signature(secret: str, body: bytes, signature: str) -> bool:
    if not signature:
        return False
    return signatures_match(compute_webhook_signature(secret, body), signature)
