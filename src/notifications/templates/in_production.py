"""In production template — sent when the printer starts manufacturing the order."""

from notifications.templates.kinds import StoreNotification


class InProductionTemplate:
    notification_type = StoreNotification.IN_PRODUCTION

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        return {
            "subject": f"Order #{order_id} Is Being Printed",
            "body": (
                f"Good news! Your order #{order_id} is now in production.\n\n"
                "Printing usually takes a few business days. "
                "We'll send tracking information as soon as it ships."
            ),
        }
