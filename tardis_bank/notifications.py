"""
Verification Mail Module

Delivers the email-verification message sent after registration. Delivery is
fire-and-forget: failures are logged and never reach the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, List
import logging

import requests

from .models import Login


logger = logging.getLogger("tardis_bank.notifications")


@dataclass
class MailMessage:
    """Outgoing email"""
    recipient: str
    subject: str
    body: str
    sender: str


class Mailer(ABC):
    """Abstract base class for mail delivery"""

    @abstractmethod
    def send(self, message: MailMessage) -> bool:
        """Send a message. Returns True if the relay accepted it."""
        pass


class LogMailer(Mailer):
    """Logs messages instead of sending them, for development"""

    def __init__(self):
        self.sent: List[MailMessage] = []

    def send(self, message: MailMessage) -> bool:
        self.sent.append(message)
        logger.info(f"EMAIL to {message.recipient}: {message.subject}")
        return True


class WebhookMailer(Mailer):
    """Posts messages to an HTTP mail relay"""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    def send(self, message: MailMessage) -> bool:
        payload = {
            "from": message.sender,
            "to": message.recipient,
            "subject": message.subject,
            "body": message.body,
        }
        response = requests.post(
            self.url,
            json=payload,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"}
        )
        return 200 <= response.status_code < 300


class VerificationNotifier:
    """Builds and dispatches verification mails"""

    def __init__(self, mailer: Mailer, base_url: str, sender: str):
        self.mailer = mailer
        self.base_url = base_url.rstrip("/")
        self.sender = sender

    def verification_url(self, token: str) -> str:
        return f"{self.base_url}/verify/{token}"

    def send_verification(self, login: Login, token: str) -> bool:
        message = MailMessage(
            recipient=login.email,
            subject="Verify your Tardis Bank email address",
            body=(
                "Welcome to Tardis Bank.\n\n"
                f"Confirm your email address by opening {self.verification_url(token)}\n"
            ),
            sender=self.sender,
        )
        try:
            delivered = self.mailer.send(message)
        except requests.RequestException as e:
            logger.warning(f"Verification mail to {login.email} failed: {e}")
            return False
        if not delivered:
            logger.warning(f"Verification mail to {login.email} was rejected by the relay")
        return delivered


def create_mailer(webhook_url: Optional[str], timeout: float = 5.0) -> Mailer:
    """Webhook delivery when a relay URL is configured, logging otherwise"""
    if webhook_url:
        return WebhookMailer(webhook_url, timeout=timeout)
    return LogMailer()
