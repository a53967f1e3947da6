from __future__ import annotations

import logging
import smtplib
import ssl
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol

from audit_reports.models.config_models import SmtpConfig
from audit_reports.models.email_message import OutgoingEmail, split_addresses

"""Mail transports.

A transport takes one OutgoingEmail and either delivers it or raises
MailTransportError; callers decide whether a failure aborts the run.

- SmtpTransport: STARTTLS on the configured port, falling back to implicit
  SSL on 465 when the STARTTLS attempt fails
- RecordingTransport: keeps messages in memory (dry runs, tests)
"""

__all__ = [
    "MailTransport",
    "MailTransportError",
    "RecordingTransport",
    "SmtpTransport",
    "build_mime_message",
]

logger = logging.getLogger(__name__)


class MailTransportError(Exception):
    pass


class MailTransport(Protocol):
    def send(self, message: OutgoingEmail) -> None: ...


def build_mime_message(message: OutgoingEmail, from_email: str) -> MIMEMultipart:
    msg = MIMEMultipart()
    msg["From"] = formataddr((message.sender_name, from_email)) if message.sender_name else from_email
    msg["To"] = ", ".join(split_addresses(message.to))
    cc = split_addresses(message.cc)
    if cc:
        msg["Cc"] = ", ".join(cc)
    msg["Subject"] = message.subject
    msg.attach(MIMEText(message.html_body or "", "html", "utf-8"))
    for attachment in message.attachments:
        maintype, _, subtype = attachment.mime_type.partition("/")
        part = MIMEBase(maintype, subtype or "octet-stream")
        part.set_payload(attachment.content)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", f'attachment; filename="{attachment.filename}"')
        msg.attach(part)
    return msg


class SmtpTransport:
    def __init__(self, config: SmtpConfig) -> None:
        self.config = config

    def _check_config(self) -> None:
        missing = [k for k in ("host", "user", "password", "from_email") if not getattr(self.config, k)]
        if missing:
            raise MailTransportError(f"SMTP is not configured (missing: {', '.join(missing)})")

    def _send_starttls(self, from_email: str, recipients: list[str], raw: str) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout) as server:
            server.ehlo()
            server.starttls(context=context)
            server.ehlo()
            server.login(self.config.user, self.config.password)
            server.sendmail(from_email, recipients, raw)

    def _send_ssl(self, from_email: str, recipients: list[str], raw: str) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self.config.host, 465, timeout=self.config.timeout, context=context) as server:
            server.ehlo()
            server.login(self.config.user, self.config.password)
            server.sendmail(from_email, recipients, raw)

    def send(self, message: OutgoingEmail) -> None:
        self._check_config()
        recipients = message.recipients
        if not split_addresses(message.to):
            raise MailTransportError(f"no recipients for '{message.subject}'")
        from_email = self.config.from_email
        raw = build_mime_message(message, from_email).as_string()

        if self.config.force_ssl:
            try:
                self._send_ssl(from_email, recipients, raw)
            except (smtplib.SMTPException, OSError) as e:
                raise MailTransportError(f"{type(e).__name__}: {e}") from e
            return

        try:
            self._send_starttls(from_email, recipients, raw)
        except (smtplib.SMTPServerDisconnected, smtplib.SMTPException, OSError) as first:
            logger.debug(f"STARTTLS:{self.config.port} failed ({first}); retrying over SSL:465")
            try:
                self._send_ssl(from_email, recipients, raw)
            except (smtplib.SMTPException, OSError) as second:
                raise MailTransportError(
                    f"{type(second).__name__}: {second}. Prior: {type(first).__name__}: {first}"
                ) from second


class RecordingTransport:
    """Collects messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[OutgoingEmail] = []

    def send(self, message: OutgoingEmail) -> None:
        if not split_addresses(message.to):
            raise MailTransportError(f"no recipients for '{message.subject}'")
        self.sent.append(message)
        logger.info(f"dry-run: '{message.subject}' -> {message.to}")
