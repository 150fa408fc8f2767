"""Configurable fake payment gateway for development and testing.

Simulates a Stripe-style provider without network calls. Intents and
refunds are kept in memory, webhooks are signed with the real HMAC scheme,
and every operation can be told to fail so error paths can be exercised.
"""

import json
from uuid import uuid4

from storefront.errors import InvalidWebhookPayload, PaymentGatewayError
from storefront.payment.gateway.port import (
    PAYMENT_FAILED,
    PAYMENT_SUCCEEDED,
    GatewayEvent,
    PaymentGateway,
    PaymentIntent,
    RefundResult,
)
from storefront.payment.gateway.signing import sign_payload, verify_signature
from storefront.utils.settings import get_settings


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    provider_name = "stripe"

    def __init__(self, webhook_secret: str | None = None, tolerance_seconds: int | None = None) -> None:
        settings = get_settings()
        self.webhook_secret = webhook_secret or settings.webhook_secret
        self.tolerance_seconds = (
            settings.webhook_tolerance_seconds if tolerance_seconds is None else tolerance_seconds
        )
        self.should_succeed: bool = True
        self.failing_operations: set[str] | None = None
        self.failure_reason: str = "Card declined"
        self.intents: dict[str, dict] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Card declined",
        operations: set[str] | None = None,
    ) -> None:
        """Configure gateway behavior at runtime.

        ``operations`` limits failures to the named methods, e.g.
        ``{"cancel_intent"}``; None means every operation.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failing_operations = operations

    def _fails(self, operation: str) -> bool:
        if self.should_succeed:
            return False
        return self.failing_operations is None or operation in self.failing_operations

    def create_intent(self, amount_cents: int, currency: str, metadata: dict) -> PaymentIntent:
        self.calls.append(
            {"method": "create_intent", "amount_cents": amount_cents, "currency": currency, "metadata": metadata}
        )
        if self._fails("create_intent"):
            raise PaymentGatewayError("create_intent", self.failure_reason)

        external_id = f"pi_fake_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            external_id=external_id,
            client_secret=f"{external_id}_secret_{uuid4().hex[:8]}",
            amount_cents=amount_cents,
            currency=currency,
            metadata=dict(metadata),
        )
        self.intents[external_id] = {"intent": intent, "status": "requires_payment_method", "refunds": []}
        return intent

    def cancel_intent(self, external_id: str) -> None:
        self.calls.append({"method": "cancel_intent", "external_id": external_id})
        if self._fails("cancel_intent"):
            raise PaymentGatewayError("cancel_intent", self.failure_reason)

        record = self.intents.get(external_id)
        if record is None:
            raise PaymentGatewayError("cancel_intent", f"No such payment intent: {external_id}")
        record["status"] = "canceled"

    def refund(self, external_id: str, amount_cents: int | None = None) -> RefundResult:
        self.calls.append({"method": "refund", "external_id": external_id, "amount_cents": amount_cents})
        if self._fails("refund"):
            return RefundResult(success=False, failure_reason=self.failure_reason)

        record = self.intents.get(external_id)
        if record is None:
            return RefundResult(success=False, failure_reason=f"No such payment intent: {external_id}")

        amount = record["intent"].amount_cents if amount_cents is None else amount_cents
        refund_id = f"re_fake_{uuid4().hex[:12]}"
        record["refunds"].append({"id": refund_id, "amount_cents": amount})
        return RefundResult(success=True, refund_id=refund_id, amount_cents=amount)

    def construct_event(self, payload: bytes, signature: str) -> GatewayEvent:
        verify_signature(payload, signature, self.webhook_secret, self.tolerance_seconds)

        try:
            body = json.loads(payload)
        except ValueError as exc:
            raise InvalidWebhookPayload("body is not JSON") from exc
        data = body.get("data") if isinstance(body, dict) else None
        obj = data.get("object") if isinstance(data, dict) else None
        if not isinstance(obj, dict):
            raise InvalidWebhookPayload("missing data.object")

        failure = (obj.get("last_payment_error") or {}).get("message")
        return GatewayEvent(
            id=body.get("id", ""),
            type=body.get("type", ""),
            external_id=obj.get("id"),
            failure_reason=failure,
        )

    # -------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------
    def signed_event(
        self,
        event_type: str,
        external_id: str,
        failure_reason: str | None = None,
        event_id: str | None = None,
        timestamp: int | None = None,
    ) -> tuple[bytes, str]:
        """Build a webhook body and matching signature header, as the provider would send them."""
        obj = {"id": external_id, "object": "payment_intent"}
        if failure_reason:
            obj["last_payment_error"] = {"message": failure_reason}
        payload = json.dumps(
            {
                "id": event_id or f"evt_fake_{uuid4().hex[:12]}",
                "type": event_type,
                "data": {"object": obj},
            }
        ).encode()
        return payload, sign_payload(payload, self.webhook_secret, timestamp)

    def succeed(self, external_id: str, **kwargs) -> tuple[bytes, str]:
        self.intents.get(external_id, {})["status"] = "succeeded"
        return self.signed_event(PAYMENT_SUCCEEDED, external_id, **kwargs)

    def fail(self, external_id: str, reason: str = "Card declined", **kwargs) -> tuple[bytes, str]:
        return self.signed_event(PAYMENT_FAILED, external_id, failure_reason=reason, **kwargs)
