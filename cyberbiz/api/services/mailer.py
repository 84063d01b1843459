"""
Mailer
Outgoing email for newsletters and the contact form.

Backends:
- log: writes the message to the application log (default, development)
- ses: Amazon SES v2 via boto3
"""

import logging
from typing import Optional

import boto3

from ..config import get_settings

logger = logging.getLogger(__name__)


class MailError(Exception):
    """Raised when a message could not be handed to the mail backend."""


class Mailer:
    """
    Sends plain text (and optional HTML) email.
    """

    BACKENDS = ("log", "ses")

    def __init__(self, backend: str, from_email: str, aws_region: str = "us-east-1"):
        if backend not in self.BACKENDS:
            raise ValueError(f"Unknown mail backend: {backend}")
        self.backend = backend
        self.from_email = from_email
        self.aws_region = aws_region
        self._client = None
        logger.info(f"Mailer initialized with {backend} backend")

    def _ses_client(self):
        if self._client is None:
            self._client = boto3.client("sesv2", region_name=self.aws_region)
        return self._client

    def send(
        self,
        to_email: str,
        subject: str,
        text: str,
        html: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> Optional[str]:
        """
        Send a message.

        Returns:
            Backend message id (None for the log backend)

        Raises:
            MailError: if the backend rejected the message
        """
        if self.backend == "log":
            logger.info(
                f"Mail to {to_email}: {subject}",
                extra={"to": to_email, "subject": subject, "reply_to": reply_to},
            )
            return None

        body = {"Text": {"Data": text or "(empty)"}}
        if html:
            body["Html"] = {"Data": html}
        request = {
            "FromEmailAddress": self.from_email,
            "Destination": {"ToAddresses": [to_email]},
            "Content": {"Simple": {"Subject": {"Data": subject[:200]}, "Body": body}},
        }
        if reply_to:
            request["ReplyToAddresses"] = [reply_to]

        try:
            response = self._ses_client().send_email(**request)
        except Exception as e:
            logger.error(f"SES send to {to_email} failed: {e}")
            raise MailError(str(e)) from e

        return (response or {}).get("MessageId")


# Global mailer instance
_mailer: Optional[Mailer] = None


def get_mailer() -> Mailer:
    """Get global mailer (singleton)."""
    global _mailer
    if _mailer is None:
        settings = get_settings()
        _mailer = Mailer(settings.mail_backend, settings.mail_from, settings.aws_region)
    return _mailer
