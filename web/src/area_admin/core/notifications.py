"""User-visible notifications raised by the views."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    content: str


class Notifier:
    """Collects the notifications raised while handling one browser request."""

    def __init__(self) -> None:
        self._pending: List[Notification] = []

    def _push(self, level: NotificationLevel, content: str) -> None:
        self._pending.append(Notification(level=level, content=content))

    def success(self, content: str) -> None:
        logger.info(content)
        self._push(NotificationLevel.SUCCESS, content)

    def info(self, content: str) -> None:
        logger.info(content)
        self._push(NotificationLevel.INFO, content)

    def warning(self, content: str) -> None:
        logger.warning(content)
        self._push(NotificationLevel.WARNING, content)

    def error(self, content: str) -> None:
        logger.error(content)
        self._push(NotificationLevel.ERROR, content)

    @property
    def pending(self) -> List[Notification]:
        return list(self._pending)

    def drain(self) -> List[Notification]:
        """Return and forget every pending notification."""
        drained, self._pending = self._pending, []
        return drained
