"""
SMTP Client
Single-attempt SMTP delivery; failures are surfaced to the caller
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, Optional, Dict, Any
import logging
from datetime import datetime, timezone

from gallery_service.utils.config import SMTPConfig

logger = logging.getLogger(__name__)


class SMTPError(Exception):
    """Custom SMTP exception"""
    pass


class EmailMessage:
    """Email message container"""

    def __init__(
        self,
        to_emails: List[str],
        subject: str,
        html_content: Optional[str] = None,
        text_content: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        reply_to: Optional[str] = None
    ):
        self.to_emails = to_emails if isinstance(to_emails, list) else [to_emails]
        self.subject = subject
        self.html_content = html_content
        self.text_content = text_content
        self.from_email = from_email
        self.from_name = from_name
        self.reply_to = reply_to

        # Validation
        if not self.to_emails:
            raise ValueError("At least one recipient email is required")
        if not self.subject:
            raise ValueError("Subject is required")
        if not self.html_content and not self.text_content:
            raise ValueError("Either HTML or text content is required")


class SMTPClient:
    """SMTP client over aiosmtplib"""

    def __init__(self, config: SMTPConfig):
        self.config = config

    async def send_email(self, email_message: EmailMessage) -> Dict[str, Any]:
        """
        Send email in a single attempt

        Args:
            email_message: Email message to send

        Returns:
            Dictionary with send result

        Raises:
            SMTPError: If the transport rejects the message or is unreachable
        """
        mime_message = self._create_mime_message(email_message)
        try:
            result = await aiosmtplib.send(
                mime_message,
                recipients=email_message.to_emails,
                hostname=self.config.smtp_host,
                port=self.config.smtp_port,
                start_tls=self.config.smtp_use_tls,
                username=self.config.smtp_username,
                password=self.config.smtp_password,
                timeout=self.config.smtp_timeout
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Email send to {len(email_message.to_emails)} recipients failed: {e}")
            raise SMTPError(f"Failed to send email: {e}") from e

        logger.info(f"Email sent successfully to {len(email_message.to_emails)} recipients")
        return {
            "success": True,
            "message_id": mime_message.get('Message-ID'),
            "recipients": email_message.to_emails,
            "smtp_result": result,
            "sent_at": datetime.now(timezone.utc).isoformat()
        }

    def _create_mime_message(self, email_message: EmailMessage) -> MIMEMultipart:
        """Create MIME message from EmailMessage"""
        from_email = email_message.from_email or self.config.default_from_email
        from_name = email_message.from_name or self.config.default_from_name
        from_address = f"{from_name} <{from_email}>" if from_name else from_email

        if email_message.html_content and email_message.text_content:
            msg = MIMEMultipart('alternative')
        else:
            msg = MIMEMultipart()

        msg['From'] = from_address
        msg['To'] = ', '.join(email_message.to_emails)
        msg['Subject'] = email_message.subject

        if email_message.reply_to:
            msg['Reply-To'] = email_message.reply_to

        # Plain text first so clients prefer the HTML part
        if email_message.text_content:
            msg.attach(MIMEText(email_message.text_content, 'plain', 'utf-8'))
        if email_message.html_content:
            msg.attach(MIMEText(email_message.html_content, 'html', 'utf-8'))

        return msg
