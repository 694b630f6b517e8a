"""
Notifications — Порт уведомлений о завершении обмена

Ядро отправляет пары (level, message) внешнему коллаборатору отображения.
Других взаимодействий с ним нет.
"""

import logging
from enum import Enum
from typing import List, Protocol

from pydantic import BaseModel, Field


class NotificationLevel(str, Enum):
    """Уровень уведомления."""

    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    """Одно уведомление для внешнего отображения."""

    level: NotificationLevel = Field(..., description="success | error")
    message: str = Field(..., min_length=1, description="Текст уведомления")

    model_config = {"frozen": True}


class NotificationSink(Protocol):
    """Внешний коллаборатор, отображающий уведомления."""

    def notify(self, notification: Notification) -> None:
        ...


class InMemoryNotificationSink:
    """Sink, накапливающий уведомления в памяти (для хостов без UI и тестов)."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def messages(self) -> List[str]:
        return [n.message for n in self.notifications]

    def clear(self) -> None:
        self.notifications.clear()


class LoggingNotificationSink:
    """Sink, пишущий уведомления в лог."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)

    def notify(self, notification: Notification) -> None:
        if notification.level == NotificationLevel.ERROR:
            self.logger.error(notification.message)
        else:
            self.logger.info(notification.message)
