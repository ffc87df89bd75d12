"""
Transactional email: MJML compiled to HTML, delivered over SMTP when a host
is configured, otherwise (or when SMTP fails) through Resend
"""

import logging
import smtplib
import ssl
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import Optional, Union

import resend
from fastapi.concurrency import run_in_threadpool
from mjml import mjml_to_html

from .config import (
    EMAIL_FROM_ADDRESS,
    EMAIL_PASSWORD,
    EMAIL_PORT,
    EMAIL_USER,
    OTP_EXPIRE_MINUTES,
    RESEND_API_KEY,
    SMTP_HOST,
)
from .email_templates import (
    email_verification_template,
    password_reset_template,
    welcome_email_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """No transport could deliver the message"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML to inline-styled HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {e}") from e

    if getattr(result, "errors", None):
        logger.warning(f"MJML compilation warnings: {result.errors}")
    html = getattr(result, "html", None)
    return html if html is not None else str(result)


def _smtp_send(recipients: list[str], subject: str, html: str, sender: str) -> dict:
    message = MIMEMultipart("alternative")
    message["Subject"] = subject
    message["From"] = sender
    message["To"] = ", ".join(recipients)
    message.attach(MIMEText(html, "html"))

    context = ssl.create_default_context()
    # 465 is implicit TLS, anything else upgrades with STARTTLS
    if EMAIL_PORT == 465:
        server = smtplib.SMTP_SSL(SMTP_HOST, EMAIL_PORT, context=context, timeout=30)
    else:
        server = smtplib.SMTP(SMTP_HOST, EMAIL_PORT, timeout=30)
        server.starttls(context=context)
    try:
        if EMAIL_USER and EMAIL_PASSWORD:
            server.login(EMAIL_USER, EMAIL_PASSWORD)
        server.sendmail(parseaddr(sender)[1], recipients, message.as_string())
    finally:
        server.quit()
    return {"id": f"smtp-{datetime.utcnow().timestamp()}"}


def _resend_send(recipients: list[str], subject: str, html: str, sender: str) -> dict:
    return resend.Emails.send({"from": sender, "to": recipients, "subject": subject, "html": html})


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Compile and deliver one email.

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML document
        from_address: Overrides EMAIL_FROM_ADDRESS

    Returns:
        Provider response with the message id

    Raises:
        EmailDeliveryError: When neither SMTP nor Resend delivered it
    """
    html = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else list(to)
    sender = from_address or EMAIL_FROM_ADDRESS

    if SMTP_HOST:
        try:
            response = await run_in_threadpool(_smtp_send, recipients, subject, html, sender)
            logger.info(f"📧 Email '{subject}' sent via SMTP ({SMTP_HOST}) to {recipients}")
            return response
        except Exception as e:
            logger.warning(f"⚠️ SMTP delivery failed, trying Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email transport configured (SMTP_HOST and RESEND_API_KEY unset)")
        raise EmailDeliveryError("Email service not configured")

    try:
        response = await run_in_threadpool(_resend_send, recipients, subject, html, sender)
    except Exception as e:
        logger.error(f"❌ Resend delivery to {recipients} failed: {e}")
        raise EmailDeliveryError(f"Failed to send email: {e}") from e
    logger.info(f"📧 Email '{subject}' sent via Resend to {recipients}")
    return response


# ============================================
# Account emails
# ============================================


async def send_email_verification_otp(to: str, otp: str) -> dict:
    return await send_email(
        to,
        "Email Verification - Skill Barter",
        email_verification_template(otp, OTP_EXPIRE_MINUTES),
    )


async def send_password_reset_otp(to: str, otp: str) -> dict:
    return await send_email(
        to,
        "Password Reset - Skill Barter",
        password_reset_template(otp, OTP_EXPIRE_MINUTES),
    )


async def send_welcome_email(to: str, first_name: str) -> dict:
    return await send_email(to, "Welcome to Skill Barter", welcome_email_template(first_name))
