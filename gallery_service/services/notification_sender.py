"""
Notification Sender
Renders account emails from Jinja2 templates and delivers them over SMTP
"""

import os
import logging
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape

from gallery_service.models.user import EMAIL_VERIFICATION_LIFETIME, PASSWORD_RESET_LIFETIME
from gallery_service.utils.config import AppConfig
from gallery_service.utils.smtp_client import EmailMessage, SMTPClient, SMTPError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "..", "templates")


class NotificationError(Exception):
    """Raised when an email could not be handed to the mail transport"""
    pass


def describe_lifetime(lifetime) -> str:
    """Human wording for a token lifetime, e.g. '24 hours' or '10 minutes'"""
    minutes = int(lifetime.total_seconds() // 60)
    if minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours != 1 else ''}"
    return f"{minutes} minute{'s' if minutes != 1 else ''}"


class NotificationSender:
    """Account notification emails"""

    def __init__(self, smtp_client: SMTPClient, app_config: AppConfig, templates_dir: Optional[str] = None):
        self.smtp_client = smtp_client
        self.frontend_url = app_config.frontend_url.rstrip("/")
        self.platform_name = app_config.platform_name

        self.jinja_env = Environment(
            loader=FileSystemLoader(templates_dir or TEMPLATES_DIR),
            autoescape=select_autoescape(['html', 'xml', 'html.j2']),
            trim_blocks=True,
            lstrip_blocks=True
        )

        # Default template variables available to all templates
        self.default_variables = {
            "platform_name": app_config.platform_name,
            "support_email": app_config.support_email,
            "current_year": datetime.now().year,
        }

    def render(self, template_name: str, variables: Dict[str, Any]) -> Dict[str, str]:
        """Render the html and text variants of an account template"""
        template_vars = {**self.default_variables, **variables}
        html_template = self.jinja_env.get_template(f"account/{template_name}.html.j2")
        text_template = self.jinja_env.get_template(f"account/{template_name}.txt.j2")
        return {
            "html_content": html_template.render(**template_vars),
            "text_content": text_template.render(**template_vars),
        }

    def _link(self, path: str, token: str) -> str:
        return f"{self.frontend_url}/{path}?{urlencode({'token': token})}"

    async def _send(self, email: str, subject: str, template_name: str, variables: Dict[str, Any]):
        content = self.render(template_name, variables)
        message = EmailMessage(
            to_emails=[email],
            subject=subject,
            html_content=content["html_content"],
            text_content=content["text_content"]
        )
        try:
            await self.smtp_client.send_email(message)
        except SMTPError as e:
            logger.error(f"Failed to send {template_name} email: {e}")
            raise NotificationError(f"Failed to send {template_name} email") from e
        logger.info(f"{template_name} email sent to {email}")

    async def send_verification(self, email: str, raw_token: str):
        """Email the verification link; raises NotificationError on transport failure"""
        await self._send(
            email,
            f"Verify Your Email - {self.platform_name}",
            "verify_email",
            {
                "verification_url": self._link("verify-email", raw_token),
                "expiry_text": describe_lifetime(EMAIL_VERIFICATION_LIFETIME),
            }
        )

    async def send_password_reset(self, email: str, raw_token: str):
        """Email the password reset link; raises NotificationError on transport failure"""
        await self._send(
            email,
            f"Reset Your Password - {self.platform_name}",
            "password_reset",
            {
                "reset_url": self._link("reset-password", raw_token),
                "expiry_text": describe_lifetime(PASSWORD_RESET_LIFETIME),
            }
        )
