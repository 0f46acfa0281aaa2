import logging
from datetime import datetime

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig

from core.config import (
    MAIL_ENABLED, MAIL_USERNAME, MAIL_PASSWORD, MAIL_FROM, MAIL_PORT, MAIL_SERVER, MAIL_STARTTLS, MAIL_SSL_TLS,
)

logger = logging.getLogger(__name__)


def _connection_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=MAIL_USERNAME,
        MAIL_PASSWORD=MAIL_PASSWORD,
        MAIL_FROM=MAIL_FROM,
        MAIL_PORT=MAIL_PORT,
        MAIL_SERVER=MAIL_SERVER,
        MAIL_STARTTLS=MAIL_STARTTLS,
        MAIL_SSL_TLS=MAIL_SSL_TLS,
        USE_CREDENTIALS=bool(MAIL_USERNAME),
    )


def build_login_message(email_to: str, first_name: str, last_name: str, ip_address: str) -> MessageSchema:
    now = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S UTC")
    body = f"""
Hello {first_name} {last_name},
A new sign-in to your Swasthya account was recorded.

Date and time: {now}
IP address: {ip_address}

If this wasn't you, please change your password immediately."""
    return MessageSchema(
        subject="New sign-in to your Swasthya account",
        recipients=[email_to],
        body=body,
        subtype="plain",
    )


async def send_login_notification(email_to: str, first_name: str, last_name: str, ip_address: str = "unknown"):
    if not MAIL_ENABLED:
        return
    message = build_login_message(email_to, first_name, last_name, ip_address)
    try:
        fm = FastMail(_connection_config())
        await fm.send_message(message)
    except Exception as e:
        # notification only; the login itself already succeeded
        logger.warning("Failed to send login notification to %s: %s", email_to, e)
