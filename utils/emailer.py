import logging
import smtplib
from email.message import EmailMessage

from flask import current_app

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "Email not configured"
MISSING_RECIPIENT = "Missing recipient"


def send_email(to_email: str, subject: str, body: str):
    """Send a plain-text email over SMTP. Returns (sent, error)."""
    host = current_app.config.get("SMTP_HOST")
    port = current_app.config.get("SMTP_PORT", 587)
    username = current_app.config.get("SMTP_USERNAME")
    password = current_app.config.get("SMTP_PASSWORD")
    from_email = current_app.config.get("SMTP_FROM_EMAIL") or username
    use_tls = current_app.config.get("SMTP_USE_TLS", True)
    timeout = current_app.config.get("SMTP_TIMEOUT_SECONDS", 10)

    if not host or not from_email:
        return False, NOT_CONFIGURED
    if not to_email:
        return False, MISSING_RECIPIENT

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=timeout) as server:
            if use_tls:
                server.starttls()
            if username and password:
                server.login(username, password)
            server.send_message(msg)
        logger.info("Email %r sent to %s", subject, to_email)
        return True, None
    except (smtplib.SMTPException, OSError) as exc:
        return False, str(exc)
