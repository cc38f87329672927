# app/services/notifications.py
"""
Email notifications.

``EmailService`` talks SMTP through aiosmtplib. ``NotificationDispatcher``
hands each message to a worker thread so that workflow calls never wait on
the mail server; delivery errors are logged there and go no further.
"""
import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Optional

import aiosmtplib
from loguru import logger

from app.core.config import (
    SMTP_HOST,
    SMTP_PORT,
    SMTP_USER,
    SMTP_PASSWORD,
    SMTP_START_TLS,
    EMAIL_FROM,
    EMAIL_FROM_NAME,
    NOTIFICATION_WORKERS,
)


class EmailService:
    """Async SMTP sender."""

    def __init__(
        self,
        smtp_host: str = SMTP_HOST,
        smtp_port: int = SMTP_PORT,
        smtp_user: str = SMTP_USER,
        smtp_password: str = SMTP_PASSWORD,
        from_email: str = EMAIL_FROM,
        from_name: str = EMAIL_FROM_NAME,
        start_tls: bool = SMTP_START_TLS,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.from_name = from_name
        self.start_tls = start_tls

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def build_message(
        self, to_email: str, subject: str, body: str, attachment_path: Optional[str] = None
    ) -> MIMEMultipart:
        message = MIMEMultipart()
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(body, "plain", "utf-8"))

        if attachment_path:
            path = Path(attachment_path)
            if path.is_file():
                part = MIMEApplication(path.read_bytes(), Name=path.name)
                part["Content-Disposition"] = f'attachment; filename="{path.name}"'
                message.attach(part)
                logger.debug(f"[Email] Attaching file: {path.name}")
            else:
                # Send the text alone
                logger.warning(f"[Email] Attachment file not found: {attachment_path}")
        return message

    async def send_email(
        self, to_email: str, subject: str, body: str, attachment_path: Optional[str] = None
    ) -> bool:
        """Returns True if the server accepted the message."""
        if not self.is_configured:
            logger.warning(f"[Email] SMTP not configured, skipping '{subject}' to {to_email}")
            return False

        message = self.build_message(to_email, subject, body, attachment_path)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.start_tls,
            )
        except Exception as e:
            logger.error(f"[Email] Failed to send email to {to_email}: {e}")
            return False

        logger.info(f"[Email] Sent '{subject}' to {to_email}")
        return True


class NotificationDispatcher:
    """
    Fire-and-forget front for EmailService.

    The worker pool is created on first use and dropped on shutdown, so an app
    whose lifespan runs again gets a fresh pool. Nothing raised while queueing
    or delivering reaches the caller.
    """

    def __init__(self, email_service: Optional[EmailService] = None, max_workers: int = NOTIFICATION_WORKERS):
        self.email_service = email_service or EmailService()
        self.max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="notify")
            return self._executor

    def notify(self, recipient: Optional[str], subject: str, body: str, attachment_path: Optional[str] = None) -> None:
        if not recipient:
            logger.warning(f"[Notify] No recipient address for '{subject}', skipping.")
            return
        try:
            self._get_executor().submit(self._deliver, recipient, subject, body, attachment_path)
        except RuntimeError as e:
            # pool shut down between lookup and submit
            logger.error(f"[Notify] Could not queue '{subject}' for {recipient}: {e}")
            return
        logger.debug(f"[Notify] Queued '{subject}' for {recipient}")

    def _deliver(self, recipient: str, subject: str, body: str, attachment_path: Optional[str]) -> bool:
        try:
            return asyncio.run(self.email_service.send_email(recipient, subject, body, attachment_path))
        except Exception:
            logger.exception(f"[Notify] Delivery of '{subject}' to {recipient} crashed")
            return False

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
