import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from starlette.concurrency import run_in_threadpool
from ..configs import settings
from ..exceptions import InfrastructureError

logger = logging.getLogger(__name__)


class EmailService:

    @staticmethod
    def get_email_config():
        """Current SMTP configuration."""
        return {
            'smtp_server': settings.smtp_server,
            'smtp_port': settings.smtp_port,
            'smtp_username': settings.smtp_username,
            'smtp_password': settings.smtp_password,
            'from_email': settings.from_email
        }

    @staticmethod
    def _deliver(config: dict, message: MIMEMultipart):
        with smtplib.SMTP(config['smtp_server'], config['smtp_port']) as server:
            server.starttls()
            server.login(config['smtp_username'], config['smtp_password'])
            server.send_message(message)

    @staticmethod
    async def send_email(to_email: str, subject: str, text: str, html: Optional[str] = None):
        """
        Send a plain text (and optional HTML) email.

        Args:
            to_email: Recipient address
            subject: Subject line
            text: Plain text body
            html: Optional HTML alternative

        Raises:
            InfrastructureError: If SMTP is not configured or delivery fails
        """
        config = EmailService.get_email_config()

        if not all([config['smtp_username'], config['smtp_password'], config['from_email']]):
            raise InfrastructureError("Email service is not configured")

        message = MIMEMultipart('alternative')
        message['Subject'] = subject
        message['From'] = config['from_email']
        message['To'] = to_email
        message.attach(MIMEText(text, 'plain'))
        if html:
            message.attach(MIMEText(html, 'html'))

        try:
            # smtplib blocks, keep it off the event loop
            await run_in_threadpool(EmailService._deliver, config, message)
        except (smtplib.SMTPException, OSError) as e:
            raise InfrastructureError("Failed to send email", cause=e) from e
        logger.info(f"Sent '{subject}' to {to_email}")

    @staticmethod
    async def send_otp_email(to_email: str, otp_code: str, expire_minutes: int):
        text = f"""
        Hello,

        Your OTP is {otp_code}. It will expire in {expire_minutes} minutes.

        If you did not request this code, please ignore this email.

        The PETVERSE Team
        """

        html = f"""
        <html>
          <body>
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
              <h2 style="color: #333;">Confirm your PETVERSE payment</h2>
              <p>Your OTP is:</p>
              <div style="background-color: #f4f4f4; padding: 20px; text-align: center; font-size: 32px; font-weight: bold; letter-spacing: 5px; color: #007bff; margin: 20px 0;">
                {otp_code}
              </div>
              <p>It will expire in <strong>{expire_minutes} minutes</strong>.</p>
              <p style="color: #888;">If you did not request this code, please ignore this email.</p>
            </div>
          </body>
        </html>
        """
        await EmailService.send_email(to_email, "Your OTP for Payment", text, html)

    @staticmethod
    async def send_kyc_approval_email(to_email: str, full_name: str):
        text = (
            f"Dear {full_name},\n\n"
            "Congratulations! Your KYC verification has been approved.\n\n"
            "You can now fully access all service provider features on PETVERSE.\n\n"
            "Best regards,\nThe PETVERSE Team"
        )
        await EmailService.send_email(to_email, "KYC Approved - PETVERSE", text)

    @staticmethod
    async def send_kyc_rejection_email(to_email: str, full_name: str, reason: str):
        text = (
            f"Dear {full_name},\n\n"
            "We're sorry to inform you that your KYC verification has been rejected.\n\n"
            f"Reason: {reason}\n\n"
            "Please review the information you provided and resubmit your documents.\n\n"
            "Best regards,\nThe PETVERSE Team"
        )
        await EmailService.send_email(to_email, "KYC Rejected - PETVERSE", text)
