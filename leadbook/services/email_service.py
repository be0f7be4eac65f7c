import logging
import smtplib
import socket
from email.message import EmailMessage
from email.utils import formataddr

from leadbook.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self, config=settings):
        self.server = config.SMTP_SERVER
        self.port = config.SMTP_PORT
        self.user = config.SMTP_USER
        self.password = config.SMTP_PASSWORD
        self.from_address = config.EMAIL_FROM
        self.app_name = config.APP_NAME

    @property
    def is_configured(self) -> bool:
        return bool(self.server and self.user and self.password and self.from_address)

    def _build_message(self, to_email: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.app_name, self.from_address))
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def send_email(self, to_email: str, subject: str, html_body: str):
        """Send one HTML email. Returns ``(success, error)``."""
        if not self.is_configured:
            logger.error(f"❌ SMTP is not configured; cannot send '{subject}' to {to_email}")
            return False, "SMTP_NOT_CONFIGURED"

        try:
            message = self._build_message(to_email, subject, html_body)
            with smtplib.SMTP(self.server, self.port, timeout=30) as smtp:
                smtp.starttls()
                smtp.login(self.user, self.password)
                smtp.send_message(message)

            logger.info(f"✅ Email sent to {to_email}: {subject}")
            return True, None

        except smtplib.SMTPRecipientsRefused as e:
            logger.warning(f"📭 Recipient rejected: {to_email}: {e.recipients}")
            return False, f"RECIPIENT_NOT_FOUND: {e.recipients}"

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"🔐 SMTP authentication failed for {self.user}: {e}")
            return False, f"AUTH_ERROR: {e}"

        except (socket.timeout, TimeoutError) as e:
            logger.error(f"⏱️ Timeout while sending to {to_email}: {e}")
            return False, f"TIMEOUT_ERROR: {e}"

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Failed to send email to {to_email}: {e}")
            return False, str(e)


def get_email_service() -> EmailService:
    return EmailService()
