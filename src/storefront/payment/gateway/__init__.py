"""The payment gateway in use by checkout, cancellation and webhooks.

``FakeGateway`` signs its webhooks with ``STOREFRONT_WEBHOOK_SECRET``, so
a gateway installed lazily always verifies callbacks against the current
settings. Production code installs a provider adapter with ``set_gateway``.
"""

import structlog

from storefront.payment.gateway.fake_adapter import FakeGateway
from storefront.payment.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)

_active: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _active
    if _active is None:
        _active = FakeGateway()
        logger.info("No payment gateway installed, using in-memory gateway", provider=_active.provider_name)
    return _active


def set_gateway(gateway: PaymentGateway) -> None:
    global _active
    _active = gateway


def reset_gateway() -> None:
    global _active
    _active = None
