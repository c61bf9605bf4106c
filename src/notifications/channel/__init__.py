"""Email channel registry.

Uses the fake adapter by default; Mailgun is configured via the
EMAIL_ADAPTER environment variable in production.
"""

from notifications.channel.email_port import EmailPort


def build_email_channel(settings) -> EmailPort:
    if settings.email_adapter == "fake":
        from notifications.channel.fake_email import FakeEmailAdapter

        return FakeEmailAdapter()
    if settings.email_adapter == "mailgun":
        from notifications.channel.mailgun_email import MailgunEmailAdapter

        return MailgunEmailAdapter(
            api_key=settings.mailgun_api_key,
            domain=settings.mailgun_domain,
            sender=settings.mail_sender,
            timeout_seconds=settings.external_timeout_seconds,
        )
    raise ValueError(f"Unknown email adapter: {settings.email_adapter}")
