"""Payment gateway port (abstract interface).

Defines the contract every payment provider adapter implements. Checkout,
cancellation, refunds and the webhook endpoint only talk to this interface,
so providers can be swapped without touching domain code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PaymentIntent:
    """A pending charge opened with the provider."""

    external_id: str
    client_secret: str
    amount_cents: int
    currency: str
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    refund_id: str | None = None
    amount_cents: int | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class GatewayEvent:
    """A verified webhook notification."""

    id: str
    type: str
    external_id: str | None
    failure_reason: str | None = None


PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    provider_name: str = "stripe"

    @abstractmethod
    def create_intent(self, amount_cents: int, currency: str, metadata: dict) -> PaymentIntent:
        """Open a payment intent. Raises ``PaymentGatewayError`` on failure."""
        ...

    @abstractmethod
    def cancel_intent(self, external_id: str) -> None:
        """Cancel an open intent. Raises ``PaymentGatewayError`` on failure."""
        ...

    @abstractmethod
    def refund(self, external_id: str, amount_cents: int | None = None) -> RefundResult:
        """Refund a captured payment, fully when ``amount_cents`` is None."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        """Verify the signature over the raw body and parse the event.

        Raises ``InvalidWebhookSignature`` when verification fails and
        ``InvalidWebhookPayload`` when a verified body is not an event.
        """
        ...
