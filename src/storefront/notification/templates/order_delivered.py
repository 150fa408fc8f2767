"""Order delivered template — delivery notice with the review deadline."""


class OrderDeliveredTemplate:
    notification_type = "order_delivered"

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number", "N/A")
        review_by = context.get("review_expires_at", "")
        return {
            "subject": f"Order {order_number} delivered",
            "body": (
                f"Your order {order_number} has been delivered.\n\n"
                f"You can review the items in this order until {review_by}.\n\n"
                "Thank you for shopping with us!"
            ),
        }
