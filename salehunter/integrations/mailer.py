"""
SMTP email dispatch.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Optional

from loguru import logger


class SmtpEmailSender:
    """
    Sends HTML email over SMTP.

    The blocking smtplib exchange runs in a worker thread; send() reports
    success as a bool and never raises.
    """

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_address: str = "no-reply@salehunter.local",
        use_tls: bool = True,
        timeout_seconds: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.use_tls = use_tls
        self.timeout_seconds = timeout_seconds

    async def send(self, to_address: str, subject: str, html_body: str) -> bool:
        if not self.host:
            logger.warning(f"SMTP not configured; email '{subject}' to {to_address} not sent")
            return False

        message = self._build_message(to_address, subject, html_body)
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._deliver, message),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            logger.error(f"Failed to send email to {to_address}: {type(e).__name__}: {e}")
            return False

        logger.info(f"Email '{subject}' sent to {to_address}")
        return True

    def _build_message(self, to_address: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content("This message requires an HTML-capable email client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)
