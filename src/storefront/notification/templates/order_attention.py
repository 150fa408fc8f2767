"""Operator alert template — an order needs manual attention."""


class OrderAttentionTemplate:
    notification_type = "order_attention"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        reason = context.get("reason", "unknown")
        return {
            "subject": f"Order {order_number} needs attention ({reason})",
            "body": (
                f":warning: Order {order_number} ({context.get('order_id', 'N/A')}) needs attention.\n"
                f"Reason: {reason}\n"
                f"{context.get('notes', '')}"
            ),
        }
