"""Template registry — maps store notification kinds to template classes.

Each template knows how to render subject and body from context data.
"""

from notifications.templates.in_production import InProductionTemplate
from notifications.templates.kinds import StoreNotification
from notifications.templates.order_confirmed import OrderConfirmedTemplate
from notifications.templates.shipped import ShippedTemplate

TEMPLATE_REGISTRY: dict[StoreNotification, type] = {
    StoreNotification.ORDER_CONFIRMED: OrderConfirmedTemplate,
    StoreNotification.IN_PRODUCTION: InProductionTemplate,
    StoreNotification.SHIPPED: ShippedTemplate,
}


def get_template(notification_type: StoreNotification):
    """Look up a template class by notification kind."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
