"""Customer notifier — renders a store notification and sends it by email."""

import structlog

from notifications.channel.email_port import EmailPort, EmailResult
from notifications.templates import get_template
from notifications.templates.kinds import StoreNotification

logger = structlog.get_logger(__name__)


class CustomerNotifier:
    def __init__(self, email: EmailPort):
        self.email = email

    def notify(self, kind: StoreNotification, to: str, context: dict) -> EmailResult:
        content = get_template(kind).render(context)
        result = self.email.send(to=to, subject=content["subject"], body=content["body"])
        if result.sent:
            logger.info(
                "Customer notification sent",
                kind=kind.value,
                order_id=context.get("order_id"),
                message_id=result.message_id,
            )
        else:
            logger.error(
                "Customer notification failed",
                kind=kind.value,
                order_id=context.get("order_id"),
                error=result.error,
            )
        return result
