"""Outbound mail - fire-and-forget notifications rendered from named templates."""

from __future__ import annotations

import smtplib
from email.mime.text import MIMEText
from typing import Any, Dict, Optional, Tuple

from fastapi import BackgroundTasks

from storefront.config import settings
import logging

logger = logging.getLogger(__name__)

TEMPLATES: Dict[str, Tuple[str, str]] = {
    "user_welcome": (
        "Welcome to Yummy Express!",
        "Hi {firstname},\n\n"
        "Thanks for signing up. Activate your account here:\n"
        "{activation_url}\n\n"
        "Your user id is {user_id}.\n",
    ),
    "password_reset": (
        "Your password reset code",
        "Use the code below to reset your password. It expires in {expires_minutes} minutes.\n\n"
        "{code}\n\n"
        "If you did not ask for a reset you can ignore this email.\n",
    ),
}


class Mailer:
    """SMTP sender taking (recipient, template name, data)."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        sender: str = "",
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls

    @classmethod
    def from_settings(cls) -> "Mailer":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            sender=settings.MAIL_SENDER,
            use_tls=settings.SMTP_USE_TLS,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.host)

    def render(self, template_name: str, data: Dict[str, Any]) -> MIMEText:
        subject, body = TEMPLATES[template_name]
        msg = MIMEText(body.format(**data))
        msg["Subject"] = subject
        msg["From"] = self.sender
        return msg

    def send(self, recipient: str, template_name: str, data: Dict[str, Any]) -> None:
        msg = self.render(template_name, data)
        msg["To"] = recipient
        if not self.enabled:
            logger.info(f"SMTP not configured, dropping '{template_name}' mail to {recipient}")
            return
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.sendmail(self.sender, [recipient], msg.as_string())
        logger.info(f"Sent '{template_name}' mail to {recipient}")

    def send_quietly(self, recipient: str, template_name: str, data: Dict[str, Any]) -> None:
        """Background entry point: failures are logged, never raised."""
        try:
            self.send(recipient, template_name, data)
        except Exception as exc:
            logger.error(f"Failed to send '{template_name}' mail to {recipient}: {exc}")

    def dispatch(
        self,
        background_tasks: Optional[BackgroundTasks],
        recipient: str,
        template_name: str,
        data: Dict[str, Any],
    ) -> None:
        """Queue the mail after the response; no-op when there is no task queue."""
        if background_tasks is None:
            return
        background_tasks.add_task(self.send_quietly, recipient, template_name, data)


mailer = Mailer.from_settings()
