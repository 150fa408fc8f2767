"""Application settings read from the environment.

Protean infrastructure (databases, brokers, event store) is configured in
``domain.toml``; the values here are storefront business knobs.
"""

import os
from dataclasses import dataclass
from decimal import Decimal

_settings = None


@dataclass(frozen=True)
class Settings:
    tax_rate: Decimal = Decimal("0.10")
    review_window_days: int = 15
    currency: str = "usd"
    webhook_secret: str = "whsec_storefront_dev"
    webhook_tolerance_seconds: int = 300

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            tax_rate=Decimal(os.environ.get("STOREFRONT_TAX_RATE", "0.10")),
            review_window_days=int(os.environ.get("STOREFRONT_REVIEW_WINDOW_DAYS", "15")),
            currency=os.environ.get("STOREFRONT_CURRENCY", "usd").lower(),
            webhook_secret=os.environ.get("STOREFRONT_WEBHOOK_SECRET", "whsec_storefront_dev"),
            webhook_tolerance_seconds=int(os.environ.get("STOREFRONT_WEBHOOK_TOLERANCE", "300")),
        )


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override settings (useful for tests)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    global _settings
    _settings = None
