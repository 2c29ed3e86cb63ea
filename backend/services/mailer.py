"""
Notification emails (OTP codes and account confirmations) over SMTP.

Sending never raises: every failure is logged and reported as False so a
mail outage cannot break the request that triggered it.
"""
import asyncio
import html
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email.message import EmailMessage
from string import Template
from typing import Optional

from utils.logger import get_logger

logger = get_logger("services.mailer")

OTP = "OTP"
PASSWORD_RESET_CONFIRMATION = "PASSWORD_RESET_CONFIRMATION"
PASSWORD_CHANGE_CONFIRMATION = "PASSWORD_CHANGE_CONFIRMATION"
ACCOUNT_DELETION_CONFIRMATION = "ACCOUNT_DELETION_CONFIRMATION"

_HIGHLIGHT_BLOCK = Template(
    '<div class="center-text"><span class="highlight">$content</span></div>'
)

_EMAIL_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>$subject</title>
    <style>
        body, html { margin: 0; padding: 0; font-family: Arial, Helvetica, sans-serif; line-height: 1.6; background-color: #f4f7f6; }
        .container { max-width: 600px; margin: 20px auto; background-color: #ffffff; border-radius: 8px; overflow: hidden; border: 1px solid #e0e0e0; }
        .header { background-color: #4a90e2; color: #ffffff; padding: 25px 30px; text-align: center; }
        .header h1 { margin: 0; font-size: 28px; font-weight: bold; }
        .content { padding: 30px 40px; color: #333333; }
        .content p { margin-bottom: 20px; font-size: 16px; }
        .highlight { background-color: #e8f0fe; color: #1a73e8; font-size: 24px; font-weight: bold; padding: 10px 20px; display: inline-block; border-radius: 6px; margin: 10px 0; letter-spacing: 2px; border: 1px dashed #a8c7fa; }
        .instructions { font-size: 14px; color: #555555; }
        .footer { background-color: #f8f9fa; padding: 20px 30px; text-align: center; font-size: 12px; color: #888888; border-top: 1px solid #e9ecef; }
        .center-text { text-align: center; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>DocuLingua</h1></div>
        <div class="content">
            <p>$greeting</p>
            <p>$main_message</p>
            $highlight
            <p class="instructions">$secondary_message</p>
        </div>
        <div class="footer">
            <p>&copy; $year DocuLingua. All rights reserved.</p>
            <p>Please do not reply to this email.</p>
        </div>
    </div>
</body>
</html>
""")


@dataclass
class EmailContent:
    subject: str
    html: str
    text: str


@dataclass
class MailerConfig:
    host: Optional[str] = None
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    sender: Optional[str] = None

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.username and self.password)


def render_email(email_type: str, data: Optional[dict] = None, otp_expiry_minutes: int = 60) -> Optional[EmailContent]:
    """Build subject, HTML and text bodies; None for an unknown type."""
    data = data or {}
    name = data.get("name")
    greeting = f"Hello {name}," if name else "Hello,"
    highlight = ""
    secondary = "If you did not initiate this action, please contact our support team immediately."

    if email_type == OTP:
        subject = "Your DocuLingua Verification Code"
        main = "Thank you for using DocuLingua. Please use the following verification code to complete your action:"
        highlight = data.get("otp") or "******"
        secondary = (
            f"Enter this code in the app or on the website. This code is valid for {otp_expiry_minutes} minutes. "
            "If you did not request this code, you can safely ignore this email."
        )
    elif email_type == PASSWORD_RESET_CONFIRMATION:
        subject = "Your DocuLingua Password Has Been Reset"
        main = "Your password for your DocuLingua account has been successfully reset."
        secondary = "If you did not perform this action, please secure your account immediately and contact support."
    elif email_type == PASSWORD_CHANGE_CONFIRMATION:
        subject = "Your DocuLingua Password Has Been Changed"
        main = "Your password for your DocuLingua account has been successfully changed."
        secondary = "If you did not perform this action, please secure your account immediately and contact support."
    elif email_type == ACCOUNT_DELETION_CONFIRMATION:
        subject = "Your DocuLingua Account Has Been Deleted"
        greeting = f"Goodbye {name}," if name else "Goodbye,"
        main = "We confirm that your DocuLingua account and associated data have been permanently deleted as requested."
        secondary = (
            "We're sorry to see you go. If this was a mistake, please contact support, "
            "although account recovery may not be possible. Thank you for using DocuLingua."
        )
    else:
        logger.error("Invalid email type requested", extra={"email_type": email_type})
        return None

    html_body = _EMAIL_TEMPLATE.substitute(
        subject=subject,
        greeting=html.escape(greeting),
        main_message=main,
        highlight=_HIGHLIGHT_BLOCK.substitute(content=html.escape(highlight)) if highlight else "",
        secondary_message=secondary,
        year=datetime.now(timezone.utc).year,
    )
    body = [greeting, main]
    if highlight:
        body.append(highlight)
    body.extend([secondary, "Thanks,\nThe DocuLingua Team"])
    return EmailContent(subject=subject, html=html_body, text="\n\n".join(body))


class Mailer:
    def __init__(self, config: MailerConfig, otp_expiry_minutes: int = 60):
        self.config = config
        self.otp_expiry_minutes = otp_expiry_minutes
        if not config.enabled:
            logger.warning("SMTP host or credentials not set; email delivery disabled")

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host, self.config.port, timeout=30) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            smtp.login(self.config.username, self.config.password)
            smtp.send_message(message)

    async def send(self, recipient: Optional[str], email_type: str, data: Optional[dict] = None) -> bool:
        if not self.config.enabled:
            logger.error("Cannot send email: transport not configured", extra={"email_type": email_type})
            return False
        if not recipient or not email_type:
            logger.error("Recipient email or email type missing")
            return False

        content = render_email(email_type, data, self.otp_expiry_minutes)
        if content is None:
            return False

        sender = self.config.sender or self.config.username
        message = EmailMessage()
        message["From"] = f"DocuLingua <{sender}>"
        message["To"] = recipient
        message["Subject"] = content.subject
        message.set_content(content.text)
        message.add_alternative(content.html, subtype="html")

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending email", extra={"email_type": email_type, "recipient": recipient, "error": str(e)})
            return False

        logger.info("Email sent", extra={"email_type": email_type, "recipient": recipient})
        return True
