"""Mailgun email adapter."""

import requests
import structlog

from notifications.channel.email_port import EmailPort, EmailResult

logger = structlog.get_logger(__name__)

MAILGUN_API_URL = "https://api.mailgun.net/v3"


class MailgunEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str,
        domain: str,
        sender: str,
        timeout_seconds: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.domain = domain
        self.sender = sender
        self.timeout = timeout_seconds
        self.session = session or requests.Session()
        self.session.auth = ("api", api_key)

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> EmailResult:
        data = {"from": self.sender, "to": [to], "subject": subject, "text": body}
        if html_body:
            data["html"] = html_body

        try:
            response = self.session.post(
                f"{MAILGUN_API_URL}/{self.domain}/messages",
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Mailgun request failed", to=to, error=str(e))
            return EmailResult(sent=False, error=str(e))

        if response.status_code >= 400:
            logger.error("Mailgun rejected message", to=to, status_code=response.status_code)
            return EmailResult(sent=False, error=f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            body = response.json()
        except ValueError:
            body = None
        message_id = body.get("id") if isinstance(body, dict) else None
        return EmailResult(sent=True, message_id=message_id)
