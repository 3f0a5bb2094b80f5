"""Configuration management for the ChainHeart ledger."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()

NOTIFIER_BACKENDS = ("smtp", "webhook", "log")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Ledger configuration."""

    # Required
    db_url: str

    log_level: str = "INFO"

    # Storage settings
    upload_dir: str = "./uploads"
    upload_url_prefix: str = "/uploads/"

    # Notification settings
    notifier: str = "log"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    mail_from: str = "no-reply@chainheart.local"
    notify_webhook_url: str = ""
    notify_timeout_seconds: float = 10.0
    notify_max_retries: int = 2

    # Certificate settings
    explorer_tx_url: str = "https://sepolia.etherscan.io/tx/"
    brand_name: str = "ChainHeart"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_url = os.getenv("DB_URL")
        if not db_url:
            raise ValueError("DB_URL environment variable is required")

        return cls(
            db_url=db_url,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            # Storage settings
            upload_dir=os.getenv("UPLOAD_DIR", "./uploads"),
            upload_url_prefix=os.getenv("UPLOAD_URL_PREFIX", "/uploads/"),
            # Notification settings
            notifier=os.getenv("NOTIFIER", "log").lower(),
            smtp_host=os.getenv("SMTP_HOST", "localhost"),
            smtp_port=int(os.getenv("SMTP_PORT", "587")),
            smtp_user=os.getenv("SMTP_USER", ""),
            smtp_password=os.getenv("SMTP_PASSWORD", ""),
            smtp_use_tls=_env_bool("SMTP_USE_TLS", "true"),
            mail_from=os.getenv("MAIL_FROM", "no-reply@chainheart.local"),
            notify_webhook_url=os.getenv("NOTIFY_WEBHOOK_URL", ""),
            notify_timeout_seconds=float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "10")),
            notify_max_retries=int(os.getenv("NOTIFY_MAX_RETRIES", "2")),
            # Certificate settings
            explorer_tx_url=os.getenv("EXPLORER_TX_URL", "https://sepolia.etherscan.io/tx/"),
            brand_name=os.getenv("BRAND_NAME", "ChainHeart"),
        )

    def validate(self) -> None:
        """Validate configuration values."""
        if not self.db_url:
            raise ValueError("db_url is required")
        if not self.upload_dir:
            raise ValueError("upload_dir is required")
        if self.notifier not in NOTIFIER_BACKENDS:
            raise ValueError(f"notifier must be one of {', '.join(NOTIFIER_BACKENDS)}")
        if self.notifier == "webhook" and not self.notify_webhook_url:
            raise ValueError("notify_webhook_url is required for the webhook notifier")
        if self.smtp_port <= 0:
            raise ValueError("smtp_port must be > 0")
        if self.notify_timeout_seconds <= 0:
            raise ValueError("notify_timeout_seconds must be > 0")
        if self.notify_max_retries < 0:
            raise ValueError("notify_max_retries must be >= 0")

    def get_smtp_params(self) -> dict:
        """Get SMTP connection parameters as a dictionary."""
        return {
            "host": self.smtp_host,
            "port": self.smtp_port,
            "user": self.smtp_user,
            "password": self.smtp_password,
            "use_tls": self.smtp_use_tls,
        }
