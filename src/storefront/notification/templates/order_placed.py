"""Order placed template — sent when checkout succeeds and payment is awaited."""


class OrderPlacedTemplate:
    notification_type = "order_placed"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        total = context.get("total_amount", "0.00")
        currency = (context.get("currency") or "usd").upper()
        items = "\n".join(
            f"  - {line.get('name', 'Item')} x {line.get('quantity', 1)}" for line in context.get("lines", [])
        )
        return {
            "subject": f"Order {order_number} received",
            "body": (
                f"Thanks for your order {order_number}.\n\n"
                f"{items}\n\n"
                f"Order Total: {currency} {total}\n\n"
                "We'll let you know as soon as your payment is confirmed."
            ),
        }
