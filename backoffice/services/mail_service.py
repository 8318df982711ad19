"""Mail service — outgoing SMTP email."""

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from backoffice.core.config import settings
from backoffice.core.logging_config import get_logger

logger = get_logger("services.mail")


class MailService:
    """Sends email over SMTP; skips with a warning when SMTP is not configured."""

    @staticmethod
    def is_configured() -> bool:
        return bool(settings.SMTP_HOST and settings.SMTP_FROM)

    @staticmethod
    def send_email(to: str, subject: str, text: str, html: Optional[str] = None) -> bool:
        """Send one message. Returns False when skipped."""
        if not MailService.is_configured():
            logger.warning("smtp_not_configured_skipping_email", extra={"subject": subject})
            return False

        msg = MIMEMultipart("alternative")
        msg["From"] = settings.SMTP_FROM
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(text, "plain"))
        if html:
            msg.attach(MIMEText(html, "html"))

        use_ssl = settings.SMTP_SECURE or settings.SMTP_PORT == 465
        smtp_class = smtplib.SMTP_SSL if use_ssl else smtplib.SMTP
        try:
            with smtp_class(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
                if not use_ssl:
                    server.starttls()
                if settings.SMTP_USER and settings.SMTP_PASS:
                    server.login(settings.SMTP_USER, settings.SMTP_PASS)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError):
            logger.exception("email_send_failed", extra={"subject": subject})
            raise

        logger.info("email_sent", extra={"subject": subject})
        return True

    @staticmethod
    def send_password_reset_email(to: str, reset_url: str) -> bool:
        return MailService.send_email(
            to,
            "Reset your password",
            f"Click the link to reset your password: {reset_url}",
            f'<p>Click the link to reset your password:</p><p><a href="{reset_url}">{reset_url}</a></p>',
        )


mail_service = MailService()
