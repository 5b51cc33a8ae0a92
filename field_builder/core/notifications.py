"""Kurzlebige Benachrichtigungen fuer den Benutzer (Toasts)."""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT = "default"
DESTRUCTIVE = "destructive"

# Nur die juengsten Benachrichtigungen bleiben in der History
HISTORY_LIMIT = 100


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = DEFAULT


class Notifier:
    """Collects notifications and forwards them to an optional callback."""

    def __init__(
        self,
        callback: Callable[[Notification], None] | None = None,
        history_limit: int = HISTORY_LIMIT,
    ):
        self._callback = callback
        self.history: deque[Notification] = deque(maxlen=history_limit)

    def notify(self, title: str, description: str, variant: str = DEFAULT) -> Notification:
        notification = Notification(title=title, description=description, variant=variant)
        self.history.append(notification)
        if variant == DESTRUCTIVE:
            logger.warning(f"{title}: {description}")
        else:
            logger.info(f"{title}: {description}")
        if self._callback:
            self._callback(notification)
        return notification

    def error(self, title: str, description: str) -> Notification:
        return self.notify(title, description, variant=DESTRUCTIVE)

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None
