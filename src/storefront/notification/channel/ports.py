"""Outbound channels for order notifications.

Customers are reached by email at the address given at checkout; operators
by posts to a chat channel. Adapters report each attempt with a
``DeliveryReceipt`` and never raise for an undeliverable message.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class DeliveryReceipt:
    delivered: bool
    message_id: str | None = None
    error: str | None = None


class CustomerMailer(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> DeliveryReceipt:
        """Send a plain-text email to one recipient."""


class OpsAlerter(ABC):
    @abstractmethod
    def post(self, channel: str, text: str) -> DeliveryReceipt:
        """Post ``text`` to an operator channel such as ``#storefront-ops``."""
