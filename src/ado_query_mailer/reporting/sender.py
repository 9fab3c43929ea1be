"""Send the HTML report by email.

Two transports are available:

- :class:`SmtpSender` -- stdlib ``smtplib`` and ``email.mime``; the TLS
  option ``force`` connects with SMTP over SSL, ``ignore`` never upgrades
  the connection, and ``auto`` uses STARTTLS when the server offers it.
- :class:`SendGridSender` -- the SendGrid v3 ``mail/send`` REST endpoint.

Senders never raise on delivery problems; errors are logged and
``send`` returns ``False``.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import requests

from ado_query_mailer.config import MailSettings, SendGridSettings, SmtpSettings
from ado_query_mailer.errors import ConfigurationError

logger = logging.getLogger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"


class BaseSender(ABC):
    """Delivers one HTML body to a list of recipients."""

    def __init__(self, subject: str) -> None:
        self.subject = subject

    @abstractmethod
    def send(self, html_body: str, recipients: list[str]) -> bool:
        """Send *html_body* to *recipients*.

        Returns:
            ``True`` if the message was accepted for delivery.
        """
        ...


class SmtpSender(BaseSender):
    """Send HTML email through an SMTP server."""

    def __init__(self, settings: SmtpSettings, subject: str) -> None:
        super().__init__(subject)
        self.settings = settings

    def build_message(self, html_body: str, recipients: list[str]) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = self.subject
        msg["From"] = self.settings.sender
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        settings = self.settings
        if settings.tls == "force":
            return smtplib.SMTP_SSL(settings.host, settings.port)

        server = smtplib.SMTP(settings.host, settings.port)
        if settings.tls == "auto":
            try:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            except (smtplib.SMTPException, OSError):
                server.close()
                raise
        return server

    def send(self, html_body: str, recipients: list[str]) -> bool:
        settings = self.settings
        if not recipients:
            logger.warning("No recipient email addresses provided; skipping send.")
            return False

        msg = self.build_message(html_body, recipients)
        logger.debug("Host: %s", settings.host)
        logger.debug("Port: %d", settings.port)
        logger.debug("TLS: %s", settings.tls)
        logger.debug("From: %s", msg["From"])
        logger.debug("To: %s", msg["To"])
        logger.debug("Subject: %s", msg["Subject"])

        try:
            with self._connect() as server:
                if settings.username:
                    server.login(settings.username, settings.password or "")
                server.send_message(msg)

            logger.info("Email sent successfully to %s", msg["To"])
            return True

        except smtplib.SMTPAuthenticationError:
            logger.error(
                "SMTP authentication failed. Check SMTP_USERNAME and "
                "SMTP_PASSWORD environment variables."
            )
            return False

        except smtplib.SMTPException as exc:
            logger.error("SMTP error while sending email: %s", exc)
            return False

        except OSError as exc:
            logger.error(
                "Network error while connecting to %s:%d: %s",
                settings.host, settings.port, exc,
            )
            return False


class SendGridSender(BaseSender):
    """Send HTML email through the SendGrid web API."""

    def __init__(
        self,
        settings: SendGridSettings,
        subject: str,
        timeout: float = 60,
    ) -> None:
        super().__init__(subject)
        self.settings = settings
        self.timeout = timeout

    def build_payload(self, html_body: str, recipients: list[str]) -> dict:
        sender: dict = {"email": self.settings.sender_email}
        if self.settings.sender_name:
            sender["name"] = self.settings.sender_name
        return {
            "personalizations": [
                {"to": [{"email": address} for address in recipients]}
            ],
            "from": sender,
            "subject": self.subject,
            "content": [{"type": "text/html", "value": html_body}],
        }

    def send(self, html_body: str, recipients: list[str]) -> bool:
        if not recipients:
            logger.warning("No recipient email addresses provided; skipping send.")
            return False

        logger.debug("To: %s", recipients)
        logger.debug("From: %s", self.settings.sender)
        logger.debug("Subject: %s", self.subject)

        try:
            resp = requests.post(
                SENDGRID_API_URL,
                json=self.build_payload(html_body, recipients),
                headers={"Authorization": f"Bearer {self.settings.api_key}"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.error("SendGrid request failed: %s", exc)
            return False

        logger.info("Email accepted by SendGrid for %s", ", ".join(recipients))
        return True


def build_sender(settings: MailSettings) -> BaseSender:
    """Return the sender for ``settings.send_method``.

    Raises:
        ConfigurationError: If the send method is unsupported or its
            transport settings are missing.
    """
    if settings.send_method == "SMTP" and settings.smtp is not None:
        logger.debug("Using SMTP as transport")
        return SmtpSender(settings.smtp, settings.subject)
    if settings.send_method == "SendGrid" and settings.sendgrid is not None:
        logger.debug("Using SendGrid as transport")
        return SendGridSender(settings.sendgrid, settings.subject)
    raise ConfigurationError(
        f"Sending through {settings.send_method} is not supported"
    )
