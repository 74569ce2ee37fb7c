from typing import Optional
import logging
import time

from fastapi import BackgroundTasks

from adventureconnect.config import Settings
from adventureconnect.notifications.senders import BaseSender, EmailMessage
from adventureconnect.notifications.templates import TEMPLATES

logger = logging.getLogger(__name__)


class Notifier:
    """Best-effort transactional email.

    ``notify`` never raises: rendering and delivery failures are logged and
    delivery is retried up to ``NOTIFICATION_MAX_ATTEMPTS`` times. When a
    ``BackgroundTasks`` instance is given, delivery runs after the response
    has been sent.
    """

    def __init__(
        self,
        sender: BaseSender,
        settings: Settings,
        background_tasks: Optional[BackgroundTasks] = None,
    ):
        self.sender = sender
        self.settings = settings
        self.background_tasks = background_tasks

    def notify(self, to: str, template: str, context: dict) -> None:
        try:
            subject, body = TEMPLATES[template](context)
        except Exception:
            logger.exception("Failed to render email template %s for %s", template, to)
            return

        message = EmailMessage(to=to, subject=subject, body=body, template=template)
        if self.background_tasks is not None:
            self.background_tasks.add_task(self.deliver, message)
        else:
            self.deliver(message)

    def deliver(self, message: EmailMessage) -> bool:
        attempts = max(1, self.settings.NOTIFICATION_MAX_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                self.sender.send(message)
                return True
            except Exception as e:
                logger.warning(
                    "Email %s to %s failed (attempt %d/%d): %s",
                    message.template, message.to, attempt, attempts, e,
                )
                if attempt < attempts and self.settings.NOTIFICATION_RETRY_DELAY_SECONDS > 0:
                    time.sleep(self.settings.NOTIFICATION_RETRY_DELAY_SECONDS * attempt)

        log = logger.error if self.settings.is_production else logger.warning
        log("Giving up on email %s to %s after %d attempts", message.template, message.to, attempts)
        return False
