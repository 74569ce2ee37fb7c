from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage as MIMEMessage
import logging
import smtplib

from adventureconnect.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    to: str
    subject: str
    body: str
    template: str


class BaseSender(ABC):
    """Delivers one rendered message; raises on failure"""

    @abstractmethod
    def send(self, message: EmailMessage) -> None:
        pass


class SMTPSender(BaseSender):
    """Delivery through an SMTP relay"""

    def __init__(self, settings: Settings):
        self.host = settings.EMAIL_HOST
        self.port = settings.EMAIL_PORT
        self.user = settings.EMAIL_USER
        self.password = settings.EMAIL_PASSWORD
        self.from_address = settings.EMAIL_FROM
        self.use_tls = settings.EMAIL_USE_TLS

    def send(self, message: EmailMessage) -> None:
        mime = MIMEMessage()
        mime["From"] = f"AdventureConnect <{self.from_address}>"
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.body)

        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password or "")
            smtp.send_message(mime)


class LogSender(BaseSender):
    """Writes messages to the log; used when no SMTP host is configured"""

    def send(self, message: EmailMessage) -> None:
        logger.info("Email (%s) to %s: %s", message.template, message.to, message.subject)


def build_sender(settings: Settings) -> BaseSender:
    if settings.EMAIL_HOST:
        return SMTPSender(settings)
    return LogSender()
