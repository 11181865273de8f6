"""Ports to the collaborators the review engine depends on.

Provides get_*/set_*/reset_* accessors so the booking directory and the
notifier can be swapped: in-memory fakes by default, real adapters wired in by
the hosting application.
"""

from reviews.gateway.booking_port import BookingDirectory, BookingRecord
from reviews.gateway.fake_bookings import FakeBookingDirectory
from reviews.gateway.fake_notifier import FakeNotifier
from reviews.gateway.notifier_port import Notifier

_booking_directory: BookingDirectory | None = None
_notifier: Notifier | None = None


def get_booking_directory() -> BookingDirectory:
    global _booking_directory
    if _booking_directory is None:
        _booking_directory = FakeBookingDirectory()
    return _booking_directory


def set_booking_directory(directory: BookingDirectory) -> None:
    global _booking_directory
    _booking_directory = directory


def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = FakeNotifier()
    return _notifier


def set_notifier(notifier: Notifier) -> None:
    global _notifier
    _notifier = notifier


def reset_gateways() -> None:
    """Drop configured adapters so the next access returns fresh fakes."""
    global _booking_directory, _notifier
    _booking_directory = None
    _notifier = None


__all__ = [
    "BookingDirectory",
    "BookingRecord",
    "Notifier",
    "get_booking_directory",
    "set_booking_directory",
    "get_notifier",
    "set_notifier",
    "reset_gateways",
]
