"""Shipped template — sent for each new wave of parcels, with tracking links."""

from notifications.templates.kinds import StoreNotification


class ShippedTemplate:
    notification_type = StoreNotification.SHIPPED

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        tracking = context.get("tracking", [])

        lines = [f"Great news! Your order #{order_id} has shipped.", ""]
        for parcel in tracking:
            lines.append(f"Tracking Number: {parcel['tracking_id']}")
            lines.extend(f"  {url}" for url in parcel.get("tracking_urls", []))
        lines += ["", "You can track your package using the links above."]
        return {
            "subject": "Your Order Has Shipped!",
            "body": "\n".join(lines),
        }
