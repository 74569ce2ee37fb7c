from .service import Notifier
from .senders import BaseSender, EmailMessage, LogSender, SMTPSender, build_sender

__all__ = [
    "Notifier",
    "BaseSender",
    "EmailMessage",
    "LogSender",
    "SMTPSender",
    "build_sender",
]
