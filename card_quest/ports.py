"""Collaborator interfaces the battle core talks to, plus a notification log."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Protocol, Tuple

from .enums import CardSource, GameView, NotificationLevel
from .models import Card

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """Fire-and-forget message describing something that happened."""

    level: NotificationLevel
    message: str
    description: str = ""

    @classmethod
    def info(cls, message: str, description: str = "") -> "Notification":
        return cls(NotificationLevel.INFO, message, description)

    @classmethod
    def success(cls, message: str, description: str = "") -> "Notification":
        return cls(NotificationLevel.SUCCESS, message, description)

    @classmethod
    def error(cls, message: str, description: str = "") -> "Notification":
        return cls(NotificationLevel.ERROR, message, description)

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level.value, "message": self.message, "description": self.description}


class CardGeneratorPort(Protocol):
    def generate(self, source: CardSource = ..., level: int = ...) -> Card:
        ...


class CollectionStore(Protocol):
    def get_battle_hand(self, count: int) -> List[Card]:
        ...

    def add_card(self, card: Card) -> None:
        ...


class ProgressionStore(Protocol):
    @property
    def level(self) -> int:
        ...

    def get_health(self) -> Tuple[int, int]:
        """Return ``(health, max_health)``."""
        ...

    def gain_experience(self, amount: int) -> None:
        ...


class ViewNavigator(Protocol):
    def set_view(self, view: GameView) -> None:
        ...


class NotificationSink(Protocol):
    def notify(self, notification: Notification) -> None:
        ...


class NotificationLog:
    """In-memory sink that keeps every notification and mirrors it to the log."""

    _LOG_LEVELS = {
        NotificationLevel.INFO: logging.DEBUG,
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.ERROR: logging.INFO,
    }

    def __init__(self) -> None:
        self.entries: List[Notification] = []
        self._subscribers: List[Callable[[Notification], None]] = []

    def notify(self, notification: Notification) -> None:
        self.entries.append(notification)
        logger.log(self._LOG_LEVELS[notification.level], "[%s] %s", notification.level.value, notification.message)
        for subscriber in self._subscribers:
            subscriber(notification)

    def subscribe(self, callback: Callable[[Notification], None]) -> None:
        self._subscribers.append(callback)

    def messages(self) -> List[str]:
        return [entry.message for entry in self.entries]

    def clear(self) -> None:
        self.entries.clear()
