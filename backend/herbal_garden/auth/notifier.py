from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional
import logging
import smtplib

from ..core.logger import mask_email

logger = logging.getLogger(__name__)

OTP_EMAIL_SUBJECT = "Virtual Herbal Garden - Password Reset OTP"


def generate_otp_email(code: str, full_name: Optional[str], ttl_minutes: int) -> str:
    """Generate the OTP email HTML"""

    year = datetime.now(timezone.utc).year
    greeting = f"Hi {full_name}," if full_name else "Hi,"

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <title>OTP Verification - Virtual Herbal Garden</title>
    </head>
    <body style="font-family: Arial, sans-serif; background-color: #f4f4f4; padding: 30px;">
        <div style="max-width: 600px; margin: auto; background: white; border-radius: 8px; overflow: hidden;">
            <div style="background-color: #4CAF50; padding: 20px; text-align: center;">
                <h1 style="color: white; margin: 0; font-size: 22px;">Virtual Herbal Garden</h1>
            </div>

            <div style="padding: 20px;">
                <p style="font-size: 16px; color: #333;">{greeting}</p>
                <p style="font-size: 16px; color: #333; text-align: center;">
                    Use the following One-Time Password to reset your password:
                </p>
                <div style="font-size: 28px; font-weight: bold; letter-spacing: 4px; margin: 20px auto; padding: 10px 20px; background: #e8f5e9; color: #2e7d32; border-radius: 5px; text-align: center; width: fit-content;">
                    {code}
                </div>
                <p style="text-align: center; font-size: 14px; color: #666;">
                    This code will expire in <strong>{ttl_minutes} minutes</strong>.
                </p>
                <p style="text-align: center; font-size: 14px; color: #999;">
                    If you did not request this, you can ignore this email.
                </p>
            </div>

            <div style="background-color: #f1f1f1; padding: 15px; text-align: center; font-size: 12px; color: #777;">
                &copy; {year} Virtual Herbal Garden. All rights reserved.
            </div>
        </div>
    </body>
    </html>
    """

    return html


class EmailNotifier:
    """Delivers OTP codes over SMTP. One attempt per call, no retries."""

    def __init__(
        self,
        server: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        use_ssl: bool = True,
        use_tls: bool = False,
        from_name: str = "Virtual Herbal Garden",
        timeout: int = 15,
        ttl_minutes: int = 10,
    ):
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.use_tls = use_tls
        self.from_name = from_name
        self.timeout = timeout
        self.ttl_minutes = ttl_minutes

    @classmethod
    def from_settings(cls, settings) -> "EmailNotifier":
        return cls(
            server=settings.smtp_server,
            port=settings.smtp_port,
            username=settings.email_user,
            password=settings.email_pass,
            use_ssl=settings.smtp_use_ssl,
            use_tls=settings.smtp_use_tls,
            from_name=settings.smtp_from_name,
            timeout=settings.smtp_timeout,
            ttl_minutes=settings.otp_ttl_minutes,
        )

    def build_message(self, destination: str, code: str, full_name: Optional[str] = None) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.from_name, self.username or ""))
        msg["To"] = destination
        msg["Subject"] = OTP_EMAIL_SUBJECT

        text = (
            f"Hi {full_name or ''},\n\n"
            f"Your OTP is: {code}\n"
            f"It is valid for {self.ttl_minutes} minutes.\n\n"
            "If you didn't request this, you can ignore this email."
        )
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(generate_otp_email(code, full_name, self.ttl_minutes), "html"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.server, self.port, timeout=self.timeout)

        server = smtplib.SMTP(self.server, self.port, timeout=self.timeout)
        if self.use_tls:
            server.starttls()
        return server

    def send(self, destination: str, code: str, full_name: Optional[str] = None) -> bool:
        """Send the OTP email; returns False instead of raising on failure"""

        if not self.username or not self.password:
            logger.error("SMTP credentials are not configured (EMAIL_USER / EMAIL_PASS)")
            return False

        try:
            msg = self.build_message(destination, code, full_name)
            with self._connect() as server:
                server.login(self.username, self.password)
                server.send_message(msg)

            logger.info(f"OTP email sent to {mask_email(destination)}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send OTP email to {mask_email(destination)}: {e}")
            return False
