"""
Notification Service
Deliver one-time codes to account holders by email
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from portal.config import Settings
import logging

logger = logging.getLogger(__name__)

OTP_PURPOSES = {
    "verification": "Verify your account",
    "password_reset": "Reset your password",
}


class NotificationService:
    """Service for sending one-time codes"""

    def __init__(self, settings: Settings):
        self.settings = settings

    async def send_otp(self, email: str, full_name: str, code: str, purpose: str = "verification") -> bool:
        """
        Send a one-time code

        Args:
            email: Recipient email
            full_name: Account holder name
            code: Six-digit code
            purpose: 'verification' or 'password_reset'

        Returns:
            True if the message was handed off, False otherwise
        """
        settings = self.settings
        subject = f"{OTP_PURPOSES.get(purpose, 'Your code')} - {settings.APP_NAME}"

        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = settings.EMAIL_FROM
        message["To"] = email

        text_body = f"""
Hi {full_name},

Your one-time code is: {code}

It expires in {settings.OTP_EXPIRY_MINUTES} minutes. If you did not request it, ignore this email.

{settings.APP_NAME}
        """
        html_body = f"""
        <html>
          <body style="font-family: Arial, sans-serif; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
              <p>Hi {full_name},</p>
              <p>Your one-time code is:</p>
              <p style="font-size: 24px; letter-spacing: 4px;"><strong>{code}</strong></p>
              <p>It expires in {settings.OTP_EXPIRY_MINUTES} minutes. If you did not request it, ignore this email.</p>
              <p><strong>{settings.APP_NAME}</strong></p>
            </div>
          </body>
        </html>
        """

        message.attach(MIMEText(text_body, "plain"))
        message.attach(MIMEText(html_body, "html"))

        if settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASSWORD:
            try:
                async with aiosmtplib.SMTP(hostname=settings.SMTP_HOST, port=settings.SMTP_PORT) as smtp:
                    await smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                    await smtp.sendmail(settings.EMAIL_FROM, email, message.as_string())
                logger.info("OTP email (%s) sent to %s", purpose, email)
                return True
            except aiosmtplib.SMTPException as e:
                logger.warning("OTP email to %s failed: %s", email, e)
                return False

        # Development mode - no SMTP configured
        if settings.is_production:
            logger.error("SMTP is not configured; OTP for %s was not delivered", email)
            return False
        logger.info("[DEV ONLY] %s OTP for %s: %s", purpose, email, code)
        return True
