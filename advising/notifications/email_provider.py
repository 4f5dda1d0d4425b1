"""
Email Provider

Delivery backends for queued advising messages:
- Resend HTTP API (hosted deployments)
- SMTP relay (campus mail servers)
- Console (development; logs instead of sending)

Providers never raise on delivery failure. They return a SendResult so the
dispatcher can mark the message FAILED and move on to the next one.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import EmailMessage as MimeMessage
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
RESEND_TIMEOUT_SECONDS = 30.0


@dataclass
class EmailMessage:
    """One outbound email as handed to a provider."""
    to: str
    subject: str
    html_body: str
    plain_text_body: str
    cc: List[str] = field(default_factory=list)
    from_email: Optional[str] = None
    reply_to: Optional[str] = None

    @property
    def recipients(self) -> List[str]:
        return [self.to] + list(self.cc)


@dataclass
class SendResult:
    """Delivery outcome reported back to the dispatcher."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "SendResult":
        return cls(success=False, error=error)


class EmailProvider(ABC):
    """Delivers a single email."""

    def __init__(self, from_email: Optional[str] = None):
        self.from_email = from_email

    @abstractmethod
    async def send(self, message: EmailMessage) -> SendResult:
        """Deliver the message; report failures in the result."""

    @abstractmethod
    def is_configured(self) -> bool:
        pass

    def sender_for(self, message: EmailMessage) -> Optional[str]:
        return message.from_email or self.from_email


class ResendProvider(EmailProvider):
    """
    Resend email provider.

    https://resend.com/docs/api-reference/emails/send-email
    """

    def __init__(self, api_key: str, from_email: str):
        super().__init__(from_email)
        self.api_key = api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_payload(self, message: EmailMessage) -> Dict[str, Any]:
        payload = {
            "from": self.sender_for(message),
            "to": [message.to],
            "subject": message.subject,
            "html": message.html_body,
            "text": message.plain_text_body,
        }
        if message.cc:
            payload["cc"] = list(message.cc)
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        return payload

    async def send(self, message: EmailMessage) -> SendResult:
        if not self.is_configured():
            return SendResult.failed("Resend API key not configured")

        import httpx

        try:
            async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json=self.build_payload(message),
                )
        except httpx.HTTPError as e:
            logger.error(f"Resend request for {message.to} failed: {e}")
            return SendResult.failed(str(e))

        if not response.is_success:
            logger.error(f"Resend rejected message to {message.to}: {response.status_code} {response.text}")
            return SendResult.failed(f"{response.status_code}: {response.text}")

        return SendResult(success=True, message_id=response.json().get("id"))


def build_mime_message(message: EmailMessage, sender: Optional[str]) -> MimeMessage:
    """Multipart plain text + HTML message for SMTP delivery."""
    mime = MimeMessage()
    mime["Subject"] = message.subject
    if sender:
        mime["From"] = sender
    mime["To"] = message.to
    if message.cc:
        mime["Cc"] = ", ".join(message.cc)
    if message.reply_to:
        mime["Reply-To"] = message.reply_to
    mime.set_content(message.plain_text_body or "")
    mime.add_alternative(message.html_body, subtype="html")
    return mime


class SMTPProvider(EmailProvider):
    """SMTP relay provider, usually the institution's own mail server."""

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        from_email: str,
        use_tls: bool = True,
    ):
        super().__init__(from_email)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls

    def is_configured(self) -> bool:
        return bool(self.host)

    async def send(self, message: EmailMessage) -> SendResult:
        if not self.is_configured():
            return SendResult.failed("SMTP host not configured")

        import aiosmtplib

        try:
            await aiosmtplib.send(
                build_mime_message(message, self.sender_for(message)),
                recipients=message.recipients,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.use_tls,
            )
        except aiosmtplib.SMTPException as e:
            logger.error(f"SMTP delivery to {message.to} via {self.host} failed: {e}")
            return SendResult.failed(str(e))
        except OSError as e:
            logger.error(f"Could not reach SMTP relay {self.host}:{self.port}: {e}")
            return SendResult.failed(str(e))

        return SendResult(success=True)


class ConsoleProvider(EmailProvider):
    """Logs messages instead of delivering them."""

    def is_configured(self) -> bool:
        return True

    async def send(self, message: EmailMessage) -> SendResult:
        logger.info(
            "Email (console mode)\n"
            f"  To: {message.to}\n"
            f"  Cc: {', '.join(message.cc) or '-'}\n"
            f"  Subject: {message.subject}\n\n"
            f"{message.plain_text_body}"
        )
        return SendResult(success=True, message_id="console")


def get_email_provider(
    resend_api_key: Optional[str] = None,
    smtp_config: Optional[dict] = None,
    console_mode: bool = False,
    from_email: str = "Student Success <noreply@advising.local>",
) -> EmailProvider:
    """
    Pick a provider from settings.

    Console mode wins, then Resend when an API key is set, then SMTP when a
    relay is configured. Falls back to the console.
    """
    if console_mode:
        logger.info("Using console email provider (development mode)")
        return ConsoleProvider(from_email)

    if resend_api_key:
        logger.info("Using Resend email provider")
        return ResendProvider(api_key=resend_api_key, from_email=from_email)

    if smtp_config:
        logger.info(f"Using SMTP email provider ({smtp_config.get('host')})")
        return SMTPProvider(from_email=from_email, **smtp_config)

    logger.warning("No email provider configured, using console fallback")
    return ConsoleProvider(from_email)
