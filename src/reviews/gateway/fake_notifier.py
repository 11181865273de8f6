"""Fake notifier — records dispatched notifications for test assertions."""

from reviews.gateway.notifier_port import Notifier


class FakeNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Notification dispatch failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Notification dispatch failed") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def notify(self, event: str, payload: dict) -> None:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)
        self.sent.append({"event": event, "payload": dict(payload)})

    def events(self, event: str) -> list[dict]:
        """Payloads of every dispatched notification of the given type."""
        return [record["payload"] for record in self.sent if record["event"] == event]

    def reset(self) -> None:
        self.sent.clear()
        self.should_succeed = True
        self.failure_reason = "Notification dispatch failed"
