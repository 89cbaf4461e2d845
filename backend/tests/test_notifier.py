"""
Email Notifier Tests

SMTP is mocked; no network access.
"""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from herbal_garden.auth.notifier import EmailNotifier, generate_otp_email


class TestEmailNotifier:

    @pytest.fixture
    def email_notifier(self):
        return EmailNotifier(
            server="smtp.example.com",
            port=465,
            username="garden@example.com",
            password="app-password",
            ttl_minutes=10,
        )

    def test_build_message(self, email_notifier):
        msg = email_notifier.build_message("ann@x.com", "123456", "Ann")

        assert msg["To"] == "ann@x.com"
        assert "garden@example.com" in msg["From"]
        parts = msg.get_payload()
        assert [part.get_content_type() for part in parts] == ["text/plain", "text/html"]
        assert "123456" in parts[0].get_payload(decode=True).decode()

    def test_html_template(self):
        html = generate_otp_email("654321", "Ann", 10)

        assert "654321" in html
        assert "Hi Ann," in html
        assert "10 minutes" in html

    def test_send_over_ssl(self, email_notifier):
        server = MagicMock()
        with patch("herbal_garden.auth.notifier.smtplib.SMTP_SSL") as smtp_ssl:
            smtp_ssl.return_value.__enter__.return_value = server

            assert email_notifier.send("ann@x.com", "123456", "Ann") is True

        smtp_ssl.assert_called_once_with("smtp.example.com", 465, timeout=15)
        server.login.assert_called_once_with("garden@example.com", "app-password")
        server.send_message.assert_called_once()

    def test_send_with_starttls(self):
        email_notifier = EmailNotifier("smtp.example.com", 587, "garden@example.com", "pw",
                                       use_ssl=False, use_tls=True)
        with patch("herbal_garden.auth.notifier.smtplib.SMTP") as smtp:
            assert email_notifier.send("ann@x.com", "123456") is True

        smtp.return_value.starttls.assert_called_once()

    def test_smtp_failure_returns_false(self, email_notifier):
        with patch("herbal_garden.auth.notifier.smtplib.SMTP_SSL") as smtp_ssl:
            smtp_ssl.return_value.__enter__.return_value.login.side_effect = (
                smtplib.SMTPAuthenticationError(535, b"bad credentials")
            )

            assert email_notifier.send("ann@x.com", "123456") is False

    def test_connection_error_returns_false(self, email_notifier):
        with patch("herbal_garden.auth.notifier.smtplib.SMTP_SSL", side_effect=OSError("unreachable")):
            assert email_notifier.send("ann@x.com", "123456") is False

    def test_missing_credentials(self):
        email_notifier = EmailNotifier("smtp.example.com", 465, None, None)

        with patch("herbal_garden.auth.notifier.smtplib.SMTP_SSL") as smtp_ssl:
            assert email_notifier.send("ann@x.com", "123456") is False

        smtp_ssl.assert_not_called()

    def test_from_settings(self, test_settings):
        email_notifier = EmailNotifier.from_settings(test_settings)

        assert email_notifier.server == "smtp.gmail.com"
        assert email_notifier.port == 465
        assert email_notifier.ttl_minutes == 10
