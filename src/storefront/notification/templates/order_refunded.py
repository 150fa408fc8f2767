"""Refund template — sent after a refund has gone through the gateway."""


class OrderRefundedTemplate:
    notification_type = "order_refunded"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        amount = context.get("amount", "0.00")
        currency = (context.get("currency") or "usd").upper()
        reason = context.get("reason")
        body = f"A refund of {currency} {amount} for order {order_number} has been issued.\n\n"
        if reason:
            body += f"Reason: {reason}\n\n"
        body += "Depending on your bank it can take 5-10 business days to appear on your statement."
        return {"subject": f"Refund for order {order_number}", "body": body}
