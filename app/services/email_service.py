"""
Email Service using SMTP
"""
import logging
import smtplib
from email.mime.text import MIMEText
from email.utils import formataddr

logger = logging.getLogger(__name__)


class EmailService:
    """Send plain-text emails over SMTP"""

    def __init__(self, settings):
        self.enabled = settings.enable_notifications
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.use_tls = settings.smtp_use_tls
        self.sender_name = settings.site_name
        self.from_address = settings.email_from_address or settings.smtp_user or settings.admin_email

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_address)

    def send_email(self, to: str, subject: str, body: str, reply_to: str | None = None) -> bool:
        """
        Send an email.

        Args:
            to: Recipient address
            subject: Subject line
            body: Plain-text body
            reply_to: Optional Reply-To address

        Returns:
            True if the SMTP server accepted the message
        """
        if not self.enabled:
            logger.info(f"Notifications disabled, not sending '{subject}'")
            return False

        if not to:
            logger.warning(f"No recipient for '{subject}'")
            return False

        if not self.configured:
            logger.warning(f"SMTP not configured - would send '{subject}' to {to}")
            return False

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.sender_name, self.from_address))
        msg["To"] = to
        if reply_to:
            msg["Reply-To"] = reply_to

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                if self.use_tls:
                    server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.from_address, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Failed to send '{subject}' to {to}: {e}")
            return False

        logger.info(f"Email '{subject}' sent to {to}")
        return True
