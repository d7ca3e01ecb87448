import smtplib
from email.message import EmailMessage

import requests

from app.core.config import settings


def send_email(to_email: str, subject: str, body: str):
    """Deliver one message. Raises on any transport failure.

    Order: serverless send-email function, SendGrid, then SMTP (MailHog recommended for local).
    """
    if settings.EMAIL_FUNCTION_URL:
        _send_via_function(to_email, subject, body)
        return
    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body)
        return

    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_function(to_email: str, subject: str, body: str):
    headers = {}
    if settings.EMAIL_FUNCTION_TOKEN:
        headers["Authorization"] = f"Bearer {settings.EMAIL_FUNCTION_TOKEN}"
    r = requests.post(
        settings.EMAIL_FUNCTION_URL,
        json={"to": to_email, "subject": subject, "content": body},
        headers=headers,
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"send-email function error {r.status_code}: {r.text}")


def _send_via_sendgrid(to_email: str, subject: str, body: str):
    from_email = settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM
    payload = {
        "personalizations": [{"to": [{"email": to_email}]}],
        "from": {"email": from_email},
        "subject": subject,
        "content": [{"type": "text/plain", "value": body}],
    }
    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json=payload,
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")
