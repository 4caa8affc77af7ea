"""
Transactional email over SMTP.

When SMTP is not configured (SMTP_HOST/SMTP_USER/SMTP_PASS), messages are not
sent; a log line is written instead so local development keeps working.
"""

import smtplib
from email.message import EmailMessage
from html import escape
from typing import Optional

from backend.config import settings
from backend.utils.logging import get_logger, mask_email

logger = get_logger(__name__)


def _deliver(to_email: str, subject: str, html: str, text: str) -> bool:
    """
    Send one message. Returns False when SMTP is unconfigured (nothing sent).

    Raises:
        smtplib.SMTPException / OSError on transport failures
    """
    if not settings.smtp_configured():
        logger.info(f"[Mail] No SMTP configured. Skipping '{subject}' to {mask_email(to_email)}")
        return False

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")

    port = int(settings.SMTP_PORT)

    if port == 465:
        with smtplib.SMTP_SSL(settings.SMTP_HOST, port, timeout=20) as smtp:
            smtp.login(settings.SMTP_USER, settings.SMTP_PASS)
            smtp.send_message(msg)
    else:
        with smtplib.SMTP(settings.SMTP_HOST, port, timeout=20) as smtp:
            smtp.ehlo()
            smtp.starttls()
            smtp.ehlo()
            smtp.login(settings.SMTP_USER, settings.SMTP_PASS)
            smtp.send_message(msg)

    logger.info(f"[Mail] Sent '{subject}' to {mask_email(to_email)}")
    return True


def send_document_notification_email(
    *,
    to_email: str,
    sender_name: str,
    document_label: str,
    document_number: str,
    amount: Optional[str] = None,
) -> bool:
    """
    Tell a recipient that someone sent them an invoice or quotation.

    Args:
        to_email: Recipient address (already validated by the caller)
        sender_name: Display name of the sender
        document_label: "Invoice" or "Quotation"
        document_number: Invoice number / quotation number
        amount: Pre-formatted total, omitted from the message when None
    """
    label = document_label.capitalize()
    subject = f"{label} {document_number} from {sender_name}"

    amount_html = f"<p><strong>Amount:</strong> {escape(amount)}</p>" if amount else ""
    html = f"""
      <div style="font-family: sans-serif; max-width: 500px; margin: 0 auto;">
        <h2 style="color: #0A192F;">You have received {'an' if label[:1] in 'AEIOU' else 'a'} {escape(label.lower())}</h2>
        <p><strong>{escape(sender_name)}</strong> has sent you {escape(label.lower())} {escape(document_number)}.</p>
        {amount_html}
        <p style="color: #6B7280; font-size: 14px;">Please check the InvoiceBill app or contact the sender for details.</p>
      </div>
    """
    text = f"{sender_name} has sent you {label.lower()} {document_number}."
    if amount:
        text += f" Amount: {amount}."

    return _deliver(to_email.strip().lower(), subject, html, text)


def send_otp_email(*, to_email: str, code: str, ttl_minutes: int) -> bool:
    subject = "Your verification code - InvoiceBill"
    html = f"""
      <div style="font-family: sans-serif; max-width: 400px; margin: 0 auto;">
        <h2 style="color: #0A192F;">Verification Code</h2>
        <p>Use the following 6-digit code to verify your email:</p>
        <p style="font-size: 28px; font-weight: bold; letter-spacing: 8px; color: #7C3AED;">{escape(code)}</p>
        <p style="color: #6B7280; font-size: 14px;">This code expires in {ttl_minutes} minutes.</p>
        <p style="color: #6B7280; font-size: 14px;">If you didn't request this, you can safely ignore this email.</p>
      </div>
    """
    text = f"Your verification code is {code}. It expires in {ttl_minutes} minutes."

    sent = _deliver(to_email, subject, html, text)
    if not sent and settings.is_development():
        logger.info(f"[OTP] Development code for {mask_email(to_email)}: {code}")
    return sent
