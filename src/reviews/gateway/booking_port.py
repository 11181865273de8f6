"""Booking directory port — read-only access to the booking subsystem."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class BookingRecord:
    """The booking fields the review engine reads once, at eligibility time."""

    booking_id: str
    hiker_id: str
    guide_id: str | None
    tour_id: str | None
    completed_at: datetime | None


class BookingDirectory(ABC):
    @abstractmethod
    def get_booking(self, booking_id: str) -> BookingRecord | None:
        """Return the booking, or None if it does not exist."""
        ...
