"""Order confirmed template — sent once every fulfillment stage has been dispatched."""

from notifications.templates.kinds import StoreNotification


class OrderConfirmedTemplate:
    notification_type = StoreNotification.ORDER_CONFIRMED

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        lines = [f"Thank you for your order! Order #{order_id} has been received and is being processed.", ""]
        if context.get("has_books"):
            lines.append("Your printed books have been sent to production. We'll email you when they ship.")
        if context.get("has_digital"):
            lines.append("Your digital items have been delivered. Check your inbox for access codes.")
        lines += ["", "Thank you for supporting open education!"]
        return {
            "subject": f"Order #{order_id} Confirmed",
            "body": "\n".join(lines),
        }
