from typing import Any, Dict, Optional


class PaymentError(Exception):
    """Base error rendered as ``{"success": false, "error": ...}``."""

    status_code = 500

    def __init__(
        self,
        error: str,
        details: Any = None,
        status_code: Optional[int] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(error)
        self.error = error
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "error": self.error}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(PaymentError):
    status_code = 400


class GatewayCredentialsError(PaymentError):
    status_code = 401


class NotFoundError(PaymentError):
    status_code = 404


class GatewayTimeoutError(PaymentError):
    status_code = 408


class ConflictError(PaymentError):
    status_code = 409


class ConfigurationError(PaymentError):
    status_code = 500


class PersistenceError(PaymentError):
    status_code = 500


class GatewayError(PaymentError):
    """Upstream failure; ``status_code`` is the provider's when it sent one."""

    status_code = 502
