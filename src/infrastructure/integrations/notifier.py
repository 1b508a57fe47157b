# src/infrastructure/integrations/notifier.py

import logging

import requests
import resend
from resend.exceptions import ResendError

from src.domain.exceptions import SendError

logger = logging.getLogger(__name__)


class ResendNotifier:
    """Transactional email through Resend."""

    def __init__(self, api_key: str | None, sender: str):
        self.api_key = api_key
        self.sender = sender

    def send(self, recipient: str, subject: str, body: str) -> None:
        if not self.api_key:
            raise SendError("Email sender not configured. Set RESEND_API_KEY.")
        if not recipient:
            raise SendError("Recipient address is missing")

        resend.api_key = self.api_key
        try:
            resend.Emails.send(
                {
                    "from": self.sender,
                    "to": [recipient],
                    "subject": subject,
                    "text": body,
                }
            )
        except (ResendError, requests.RequestException) as exc:
            raise SendError(f"Could not send '{subject}' to {recipient}") from exc

        logger.info("Sent '%s' to %s", subject, recipient)
