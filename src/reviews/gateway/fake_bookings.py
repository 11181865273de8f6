"""In-memory booking directory for development and tests."""

from reviews.gateway.booking_port import BookingDirectory, BookingRecord


class FakeBookingDirectory(BookingDirectory):
    def __init__(self) -> None:
        self.bookings: dict[str, BookingRecord] = {}
        self.lookups: list[str] = []

    def register(self, booking_id, hiker_id, guide_id, completed_at, tour_id=None) -> BookingRecord:
        record = BookingRecord(
            booking_id=str(booking_id),
            hiker_id=str(hiker_id),
            guide_id=str(guide_id) if guide_id else None,
            tour_id=str(tour_id) if tour_id else None,
            completed_at=completed_at,
        )
        self.bookings[record.booking_id] = record
        return record

    def get_booking(self, booking_id: str) -> BookingRecord | None:
        self.lookups.append(str(booking_id))
        return self.bookings.get(str(booking_id))

    def reset(self) -> None:
        self.bookings.clear()
        self.lookups.clear()
