import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from config import Settings, settings as default_settings
from modules.approvals.exceptions import NotificationDeliveryFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


class EmailService:
    """SMTP sender. ``send`` raises NotificationDeliveryFailure on any failure."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    @property
    def configured(self) -> bool:
        return self.settings.email_configured

    def send(self, email: OutgoingEmail) -> None:
        if not self.configured:
            raise NotificationDeliveryFailure("Email not configured")

        s = self.settings
        msg = MIMEMultipart("alternative")
        msg["Subject"] = email.subject
        msg["From"] = f"{s.APP_NAME} <{s.EMAILS_FROM_EMAIL or s.SMTP_USER}>"
        msg["To"] = email.to
        msg.attach(MIMEText(email.text, "plain"))
        msg.attach(MIMEText(email.html, "html"))

        try:
            if s.SMTP_PORT == 465:
                with smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS) as server:
                    server.login(s.SMTP_USER, s.SMTP_PASSWORD)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SECONDS) as server:
                    server.starttls()
                    server.login(s.SMTP_USER, s.SMTP_PASSWORD)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationDeliveryFailure(f"SMTP delivery to {email.to} failed: {e}") from e

        logger.info("Email sent to %s (%s)", email.to, email.subject)
