"""
Email service with provider abstraction.

Supports SMTP, Resend API, and a console provider that only logs.
Provider is selected via configuration.
"""

from __future__ import annotations

import ssl
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

import structlog

from klede.config import Settings
from klede.email.templates import launch_email, promotional_email, welcome_email

logger = structlog.get_logger()

# Template registry: name -> template function
_TEMPLATE_REGISTRY: dict[str, Any] = {
    "welcome": welcome_email,
    "promotional": promotional_email,
    "launch": launch_email,
}


class BaseEmailProvider(ABC):
    """Abstract base class for email delivery providers."""

    @abstractmethod
    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send an email. Returns True on success."""
        ...


class SMTPProvider(BaseEmailProvider):
    """Send emails via SMTP using aiosmtplib."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_address: str,
        from_name: str,
        use_tls: bool = True,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.from_name = from_name
        self.use_tls = use_tls

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send via SMTP."""
        import aiosmtplib

        msg = MIMEMultipart("alternative")
        msg["From"] = f"{self.from_name} <{self.from_address}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            tls_context = ssl.create_default_context() if self.use_tls else None
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                tls_context=tls_context,
            )
            logger.info("email_sent", to=to_email, subject=subject, provider="smtp")
            return True
        except Exception:
            logger.exception("email_send_failed", to=to_email, provider="smtp")
            return False


class ResendProvider(BaseEmailProvider):
    """Send emails via Resend API."""

    def __init__(self, api_key: str, from_address: str, from_name: str) -> None:
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send via Resend HTTP API."""
        import httpx

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    "https://api.resend.com/emails",
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": f"{self.from_name} <{self.from_address}>",
                        "to": [to_email],
                        "subject": subject,
                        "html": html_body,
                        "text": text_body,
                    },
                    timeout=10.0,
                )
                response.raise_for_status()
                logger.info("email_sent", to=to_email, subject=subject, provider="resend")
                return True
        except Exception:
            logger.exception("email_send_failed", to=to_email, provider="resend")
            return False


class ConsoleProvider(BaseEmailProvider):
    """Log emails instead of delivering them (local development)."""

    def __init__(self) -> None:
        self.outbox: list[dict[str, str]] = []

    async def send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        self.outbox.append({"to": to_email, "subject": subject, "text": text_body})
        logger.info("email_logged", to=to_email, subject=subject, provider="console")
        return True


def create_provider(settings: Settings) -> BaseEmailProvider:
    """Create email provider based on configuration."""
    provider_name = settings.email_provider.lower()

    if provider_name == "smtp":
        return SMTPProvider(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )
    if provider_name == "resend":
        return ResendProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
        )
    if provider_name == "console":
        return ConsoleProvider()
    msg = f"Unsupported email provider: {provider_name}"
    raise ValueError(msg)


class EmailService:
    """
    High-level email service for the Klede waitlist.

    Renders templates and hands them to the configured provider.
    """

    def __init__(self, provider: BaseEmailProvider, shop_url: str = "https://klede.com/shop") -> None:
        self.provider = provider
        self.shop_url = shop_url

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> bool:
        """Send an email. Returns True if sent, False if the provider failed."""
        return await self.provider.send(to, subject, html_body, text_body)

    async def send_template(
        self,
        to: str,
        template_name: str,
        context: dict[str, str] | None = None,
    ) -> bool:
        """
        Render a template and send.

        Args:
            to: Recipient email.
            template_name: Template name (welcome, promotional, launch).
            context: Template context variables.

        Raises:
            ValueError: If the template name is unknown.
        """
        context = context or {}
        template_func = _TEMPLATE_REGISTRY.get(template_name)
        if template_func is None:
            msg = f"Unknown template: {template_name}"
            raise ValueError(msg)

        if template_name == "welcome":
            subject, html_body, text_body = template_func(to)
        elif template_name == "promotional":
            subject, html_body, text_body = template_func(to, context.get("message", ""))
        else:
            subject, html_body, text_body = template_func(to, context.get("shop_url", self.shop_url))

        return await self.send_email(to, subject, html_body, text_body)

    async def send_welcome_email(self, email: str) -> bool:
        return await self.send_template(email, "welcome")

    async def send_promotional_email(self, email: str, message: str = "") -> bool:
        return await self.send_template(email, "promotional", {"message": message})

    async def send_launch_email(self, email: str) -> bool:
        return await self.send_template(email, "launch")


def create_email_service(settings: Settings) -> EmailService:
    """Build the email service for ``settings``."""
    return EmailService(
        provider=create_provider(settings),
        shop_url=f"{settings.frontend_base_url.rstrip('/')}/shop",
    )
