"""
Email delivery — SMTP or the Resend HTTP API.

Provider selection:
    EMAIL_PROVIDER=smtp, or SMTP_HOST set  → SmtpMailer
    otherwise                              → ResendMailer (needs RESEND_API_KEY)

The mailer is built lazily by a MailerHandle owned by the FastAPI app,
so configuration errors surface on first send, not at import time.
"""

import json
import logging
import smtplib
import ssl
import urllib.error
import urllib.request
from email.message import EmailMessage as MimeMessage
from email.utils import make_msgid
from typing import Optional

from fastapi import Request

from .config import Settings
from .emails import EmailMessage

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class MailerError(Exception):
    """Email provider is misconfigured or rejected the message."""


class Mailer:
    provider = "base"

    def send(self, sender: str, to: list[str], message: EmailMessage) -> str:
        """Sends one message. Returns the provider's message id."""
        raise NotImplementedError


class SmtpMailer(Mailer):
    provider = "smtp"

    def __init__(self, host: str, port: int, user: str, password: str, secure: bool = False):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        # Port 465 is implicit TLS
        self.secure = secure or port == 465

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self.secure:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=30, context=context)
        conn = smtplib.SMTP(self.host, self.port, timeout=30)
        try:
            # Upgrade only when the server offers it; local relays often do not
            conn.ehlo()
            if conn.has_extn("starttls"):
                conn.starttls(context=context)
                conn.ehlo()
        except (smtplib.SMTPException, OSError):
            conn.close()
            raise
        return conn

    def send(self, sender: str, to: list[str], message: EmailMessage) -> str:
        msg = MimeMessage()
        try:
            msg["From"] = sender
            msg["To"] = ", ".join(to)
            msg["Subject"] = message.subject
        except ValueError as e:
            # CR/LF in a header value
            raise MailerError(f"Invalid email header: {e}") from e
        msg["Message-ID"] = make_msgid()
        msg.set_content(message.text)
        if message.html:
            msg.add_alternative(message.html, subtype="html")

        try:
            with self._connect() as conn:
                conn.login(self.user, self.password)
                conn.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailerError(f"SMTP send failed: {e}") from e
        return msg["Message-ID"]


class ResendMailer(Mailer):
    provider = "resend"

    def __init__(self, api_key: str, api_url: str = RESEND_API_URL):
        self.api_key = api_key
        self.api_url = api_url

    def send(self, sender: str, to: list[str], message: EmailMessage) -> str:
        payload = json.dumps({
            "from": sender,
            "to": to,
            "subject": message.subject,
            "text": message.text,
            "html": message.html,
        }).encode("utf-8")

        req = urllib.request.Request(
            self.api_url,
            data=payload,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=30) as response:
                result = json.loads(response.read())
        except urllib.error.HTTPError as e:
            error_body = e.read().decode()
            raise MailerError(f"Resend API error ({e.code}): {error_body}") from e
        except urllib.error.URLError as e:
            raise MailerError(f"Resend API unreachable: {e.reason}") from e

        return result.get("id", "sent")


def build_mailer(settings: Settings) -> Mailer:
    """Builds the configured mailer. Raises MailerError when the provider is missing credentials."""
    if settings.smtp_enabled():
        if not (settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASS):
            raise MailerError("SMTP not configured. Set SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS")
        return SmtpMailer(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASS,
            secure=settings.SMTP_SECURE,
        )
    if not settings.RESEND_API_KEY:
        raise MailerError(
            "Resend not configured. Set EMAIL_PROVIDER=smtp with SMTP_* vars, or provide RESEND_API_KEY."
        )
    return ResendMailer(settings.RESEND_API_KEY)


class MailerHandle:
    """Lazily builds and caches one mailer for the lifetime of its owner (the app)."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._mailer: Optional[Mailer] = None

    def get(self) -> Mailer:
        if self._mailer is None:
            self._mailer = build_mailer(self.settings)
            logger.info("Email provider initialized: %s", self._mailer.provider)
        return self._mailer


# --- FastAPI dependency ---

def get_mailer_handle(request: Request) -> MailerHandle:
    """The app-scoped MailerHandle (created in main.py)."""
    return request.app.state.mailer_handle
