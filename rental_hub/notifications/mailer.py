"""
Transports email (NotificationDispatcher).
- SmtpMailer: envoi SMTP (STARTTLS si port 587), lève en cas d'échec (la file gère les retries).
- LogMailer: dev/local sans SMTP_HOST, journalise simplement l'email.
"""
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from rental_hub.config import (
    FROM_EMAIL,
    SMTP_HOST,
    SMTP_PASS,
    SMTP_PORT,
    SMTP_TIMEOUT,
    SMTP_USER,
)

logger = logging.getLogger(__name__)


class SmtpMailer:
    def __init__(
        self,
        host: str = SMTP_HOST,
        port: int = SMTP_PORT,
        user: str = SMTP_USER,
        password: str = SMTP_PASS,
        from_email: str = FROM_EMAIL,
        timeout: float = SMTP_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("Ce message est au format HTML.")
        msg.add_alternative(html, subtype="html")

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.port == 587:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(msg)


class LogMailer:
    def send(self, to: str, subject: str, html: str) -> None:
        logger.info("notifications.mail (log only) to=%s subject=%s size=%s", to, subject, len(html or ""))


def build_mailer(host: Optional[str] = None):
    """SMTP si SMTP_HOST est configuré, sinon journalisation seule."""
    if host if host is not None else SMTP_HOST:
        return SmtpMailer(host=host or SMTP_HOST)
    logger.warning("SMTP_HOST manquant: les emails seront seulement journalisés")
    return LogMailer()
