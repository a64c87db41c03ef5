"""Tests for the Courier notification service."""

import logging
from unittest.mock import patch

import pytest

from shopfront.notifications.courier import CourierService, normalize_phone_number


@pytest.mark.parametrize(
    ("phone", "expected"),
    [
        ("0712345678", "2540712345678"),
        ("0712-345 678", "2540712345678"),
        ("+254712345678", "254712345678"),
        ("254712345678", "254712345678"),
    ],
)
def test_normalize_phone_number(phone: str, expected: str) -> None:
    assert normalize_phone_number(phone, "254") == expected


class TestCourierService:
    """Tests for CourierService."""

    def test_dev_mode_logs_instead_of_sending(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that without an API key messages are only logged."""
        service = CourierService(api_key=None)

        with caplog.at_level(logging.INFO, logger="shopfront.notifications.courier"):
            service.send_email("admin@example.com", "New Order", "body")
            service.send_sms("0712345678", "Thanks")

        assert service.dev_mode
        assert "EMAIL (DEV MODE): To: admin@example.com" in caplog.text
        assert "SMS (DEV MODE): To: 2540712345678" in caplog.text

    def test_send_email_routes_to_email_channel(self) -> None:
        with patch("shopfront.notifications.courier.Courier") as mock_courier:
            service = CourierService(api_key="pk_test")
            service.send_email("admin@example.com", "New Order", "Order placed")

        mock_courier.assert_called_once_with(authorization_token="pk_test")
        message = mock_courier.return_value.send.call_args.kwargs["message"]
        assert message["to"] == {"email": "admin@example.com"}
        assert message["content"] == {"title": "New Order", "body": "Order placed"}
        assert message["routing"]["channels"] == ["email"]

    def test_send_sms_normalizes_recipient(self) -> None:
        with patch("shopfront.notifications.courier.Courier") as mock_courier:
            service = CourierService(api_key="pk_test", sms_country_code="254")
            service.send_sms("+254 712 345 678", "Thanks")

        message = mock_courier.return_value.send.call_args.kwargs["message"]
        assert message["to"] == {"phone_number": "254712345678"}
        assert message["routing"]["channels"] == ["sms"]

    def test_send_failure_raises(self) -> None:
        with patch("shopfront.notifications.courier.Courier") as mock_courier:
            mock_courier.return_value.send.side_effect = RuntimeError("401 Unauthorized")
            service = CourierService(api_key="pk_test")

            with pytest.raises(Exception, match="Failed to send email"):
                service.send_email("admin@example.com", "New Order", "Order placed")
