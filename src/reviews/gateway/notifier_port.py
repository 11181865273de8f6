"""Notification dispatch port — fire-and-forget delivery owned by another context."""

from abc import ABC, abstractmethod


class Notifier(ABC):
    @abstractmethod
    def notify(self, event: str, payload: dict) -> None:
        """Hand a notification off for delivery. Must not block on delivery."""
        ...
