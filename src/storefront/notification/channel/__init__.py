"""Active notification channels.

In-memory adapters are installed lazily; a deployment swaps in real ones
with ``set_mailer`` / ``set_alerter`` at startup.
"""

from storefront.notification.channel.memory import InMemoryAlerter, InMemoryMailer
from storefront.notification.channel.ports import CustomerMailer, OpsAlerter

OPS_CHANNEL = "#storefront-ops"

_mailer: CustomerMailer | None = None
_alerter: OpsAlerter | None = None


def get_mailer() -> CustomerMailer:
    global _mailer
    if _mailer is None:
        _mailer = InMemoryMailer()
    return _mailer


def get_alerter() -> OpsAlerter:
    global _alerter
    if _alerter is None:
        _alerter = InMemoryAlerter()
    return _alerter


def set_mailer(mailer: CustomerMailer) -> None:
    global _mailer
    _mailer = mailer


def set_alerter(alerter: OpsAlerter) -> None:
    global _alerter
    _alerter = alerter


def reset_channels() -> None:
    """Drop installed adapters so the next lookup starts from an empty outbox."""
    global _mailer, _alerter
    _mailer = None
    _alerter = None
