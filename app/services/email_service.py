"""
Email Service - transactional mail for verification codes.

Delivery is best effort: failures are logged and reported as False,
never raised, so the calling operation (signup, resend) still completes.
"""

import logging
import smtplib
from email.message import EmailMessage

from app.core.config import get_settings

logger = logging.getLogger(__name__)


def build_verification_message(to_email: str, code: str, display_name: str) -> EmailMessage:
    settings = get_settings()
    name = display_name or "there"

    msg = EmailMessage()
    msg["Subject"] = "Your verification code - Campus Placement Portal"
    msg["From"] = settings.smtp_from or settings.smtp_user
    msg["To"] = to_email
    msg.set_content(
        f"Hi {name},\n\n"
        f"Your verification code is: {code}\n\n"
        f"This code is valid for {settings.verification_code_ttl_minutes} minutes. "
        "If you did not create an account, you can ignore this email.\n\n"
        "- Placement Cell"
    )
    msg.add_alternative(
        f"""<html><body style="font-family: Arial, sans-serif;">
<p>Hi {name},</p>
<p>Your verification code is:</p>
<h2 style="letter-spacing: 4px;">{code}</h2>
<p>This code is valid for {settings.verification_code_ttl_minutes} minutes.</p>
<p>- Placement Cell</p>
</body></html>""",
        subtype="html"
    )
    return msg


def send_verification_email(to_email: str, code: str, display_name: str = "") -> bool:
    """Send a verification code. Returns True if the SMTP server accepted the message."""
    settings = get_settings()
    if not settings.smtp_configured:
        logger.warning("SMTP is not configured; verification email to %s not sent", to_email)
        return False

    msg = build_verification_message(to_email, code, display_name)
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_user and settings.smtp_password:
                server.login(settings.smtp_user, settings.smtp_password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError):
        logger.warning("Verification email to %s failed", to_email, exc_info=True)
        return False

    logger.info("Verification email sent to %s", to_email)
    return True
