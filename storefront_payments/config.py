import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, built once and handed to each component."""

    environment: str = "development"

    # Razorpay test and live key pairs; the environment picks one
    test_key_id: str = ""
    test_key_secret: str = ""
    live_key_id: str = ""
    live_key_secret: str = ""
    webhook_secret: str = ""
    api_url: str = "https://api.razorpay.com/v1"

    currency: str = "INR"
    auto_capture: bool = True
    timeout_seconds: float = 10.0

    database_url: str = "sqlite:///./storefront.db"

    jwt_secret: str = ""
    require_auth: bool = True

    allowed_origins: tuple = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv(dotenv_path=ENV_PATH)
        origins_raw = os.getenv("ALLOWED_ORIGINS", "*")
        origins: List[str] = [o.strip() for o in origins_raw.split(",") if o.strip()]
        return cls(
            environment=os.getenv("APP_ENV", "development"),
            test_key_id=os.getenv("RAZORPAY_KEY_ID", ""),
            test_key_secret=os.getenv("RAZORPAY_KEY_SECRET", ""),
            live_key_id=os.getenv("RAZORPAY_LIVE_KEY_ID", ""),
            live_key_secret=os.getenv("RAZORPAY_LIVE_KEY_SECRET", ""),
            webhook_secret=os.getenv("RAZORPAY_WEBHOOK_SECRET", ""),
            api_url=os.getenv("RAZORPAY_API_URL", "https://api.razorpay.com/v1"),
            currency=os.getenv("PAYMENT_CURRENCY", "INR").upper(),
            auto_capture=_flag("PAYMENT_AUTO_CAPTURE", "true"),
            timeout_seconds=float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10")),
            database_url=os.getenv("DATABASE_URL", "sqlite:///./storefront.db"),
            jwt_secret=os.getenv("SUPABASE_JWT_SECRET", ""),
            require_auth=_flag("REQUIRE_AUTH", "true"),
            allowed_origins=tuple(origins) or ("*",),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def key_id(self) -> str:
        return self.live_key_id if self.is_production else self.test_key_id

    @property
    def key_secret(self) -> str:
        return self.live_key_secret if self.is_production else self.test_key_secret

    @property
    def razorpay_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    @property
    def razorpay_mode(self) -> str:
        return "test" if "test" in self.key_id else "live"
