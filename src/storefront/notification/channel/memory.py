"""In-memory channel adapters: the default outside production and in tests."""

from uuid import uuid4

from storefront.notification.channel.ports import CustomerMailer, DeliveryReceipt, OpsAlerter


class _Outbox:
    prefix = "msg"

    def __init__(self) -> None:
        self.outbox: list[dict] = []
        self.error: str | None = None

    def fail_with(self, error: str) -> None:
        """Refuse every following message with ``error`` until ``recover()``."""
        self.error = error

    def recover(self) -> None:
        self.error = None

    def _deliver(self, **message) -> DeliveryReceipt:
        if self.error is not None:
            return DeliveryReceipt(delivered=False, error=self.error)
        message_id = f"{self.prefix}-{uuid4().hex[:12]}"
        self.outbox.append({"message_id": message_id, **message})
        return DeliveryReceipt(delivered=True, message_id=message_id)


class InMemoryMailer(_Outbox, CustomerMailer):
    prefix = "email"

    def send(self, to: str, subject: str, body: str) -> DeliveryReceipt:
        return self._deliver(to=to, subject=subject, body=body)


class InMemoryAlerter(_Outbox, OpsAlerter):
    prefix = "alert"

    def post(self, channel: str, text: str) -> DeliveryReceipt:
        return self._deliver(channel=channel, text=text)
