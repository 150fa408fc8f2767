"""Storefront exceptions that have no Protean equivalent.

Validation problems raise ``protean.exceptions.ValidationError`` and missing
records raise ``protean.exceptions.ObjectNotFoundError``; the classes below
cover authorization, checkout availability and payment-provider failures.
"""


class StorefrontError(Exception):
    """Base exception for storefront errors."""

    pass


class NotAuthorizedError(StorefrontError):
    """Raised when the caller may not act on the requested resource."""

    def __init__(self, message: str = "You are not allowed to perform this action"):
        self.message = message
        super().__init__(message)


class UnavailableItemsError(StorefrontError):
    """Raised at checkout when one or more cart lines cannot be fulfilled.

    ``lines`` holds one dict per offending cart line with product_id,
    variant_id, requested, available and reason.
    """

    def __init__(self, lines: list[dict]):
        self.lines = lines
        super().__init__(f"{len(lines)} cart item(s) are no longer available")


class PaymentGatewayError(StorefrontError):
    """Raised when the payment provider call fails."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Payment gateway {operation} failed: {reason}")


class InvalidWebhookSignature(StorefrontError):
    """Raised when a webhook payload fails signature verification."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Webhook signature verification failed: {reason}")


class InvalidWebhookPayload(StorefrontError):
    """Raised when a correctly signed webhook body is not a provider event."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Malformed webhook payload: {reason}")
