"""Courier notification service for order emails and SMS."""

import logging

from courier.client import Courier

from shopfront.config import Settings

logger = logging.getLogger(__name__)


def normalize_phone_number(phone: str, country_code: str) -> str:
    """
    Strip spaces, dashes and ``+`` from a phone number and prefix the
    country code when it is missing.

    Example:
        >>> normalize_phone_number("0712-345 678", "254")
        '2540712345678'
        >>> normalize_phone_number("+254712345678", "254")
        '254712345678'
    """
    digits = phone.replace(" ", "").replace("-", "").replace("+", "")
    if not digits.startswith(country_code):
        digits = country_code + digits
    return digits


class CourierService:
    """
    Service for sending notifications via Courier API.

    Without an API key the service runs in development mode: messages are
    logged instead of sent.
    """

    def __init__(self, api_key: str | None, sms_country_code: str = "254") -> None:
        """Initialize Courier service."""
        self.sms_country_code = sms_country_code
        self.client = Courier(authorization_token=api_key) if api_key else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CourierService":
        return cls(api_key=settings.courier_api_key, sms_country_code=settings.sms_country_code)

    @property
    def dev_mode(self) -> bool:
        return self.client is None

    def send_email(self, email: str, subject: str, body: str) -> None:
        """
        Send an email notification.

        Args:
            email: Recipient email address
            subject: Email subject
            body: Email body (plain text)

        Raises:
            Exception: If email fails

        Example:
            >>> service = CourierService(api_key="pk_...")
            >>> service.send_email("admin@example.com", "New Order", "Order #1234 placed")
        """
        if self.dev_mode:
            logger.info(
                f"EMAIL (DEV MODE): To: {email}, Subject: {subject}",
                extra={"body": body},
            )
            return

        try:
            self.client.send(
                message={
                    "to": {"email": email},
                    "content": {"title": subject, "body": body},
                    "routing": {"method": "single", "channels": ["email"]},
                }
            )
        except Exception as e:
            raise Exception(f"Failed to send email: {str(e)}") from e

    def send_sms(self, phone_number: str, body: str) -> None:
        """
        Send an SMS notification.

        Args:
            phone_number: Recipient phone number in any common format
            body: Message text

        Raises:
            Exception: If the SMS fails
        """
        recipient = normalize_phone_number(phone_number, self.sms_country_code)

        if self.dev_mode:
            logger.info(f"SMS (DEV MODE): To: {recipient}", extra={"body": body})
            return

        try:
            self.client.send(
                message={
                    "to": {"phone_number": recipient},
                    "content": {"body": body},
                    "routing": {"method": "single", "channels": ["sms"]},
                }
            )
        except Exception as e:
            raise Exception(f"Failed to send SMS: {str(e)}") from e
