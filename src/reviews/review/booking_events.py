"""Inbound cross-domain event handler — Reviews reacts to Bookings events.

Listens for BookingCompleted to open the review pair for the booking. The
event may be delivered more than once; OpenReviews is idempotent.
"""

from protean.utils.mixins import handle
from shared.events.bookings import BookingCompleted

from reviews.domain import reviews
from reviews.review.eligibility import OpenReviews
from reviews.review.errors import IneligibleBooking
from reviews.review.review_pair import ReviewPair
from reviews.utils.logging import get_logger
from reviews.utils.retry import process_with_retry

logger = get_logger(__name__)

reviews.register_external_event(BookingCompleted, "Bookings.BookingCompleted.v1")


@reviews.event_handler(part_of=ReviewPair, stream_category="bookings::booking")
class BookingEventsHandler:
    """Opens review pairs when bookings complete."""

    @handle(BookingCompleted)
    def on_booking_completed(self, event: BookingCompleted) -> None:
        try:
            process_with_retry(
                OpenReviews(
                    booking_id=str(event.booking_id),
                    hiker_id=str(event.hiker_id),
                    guide_id=str(event.guide_id) if event.guide_id else None,
                    tour_id=str(event.tour_id) if event.tour_id else None,
                    completed_at=event.completed_at,
                )
            )
        except IneligibleBooking as exc:
            # Nothing to retry: the booking itself does not qualify.
            logger.info(
                "Completed booking is not eligible for reviews",
                booking_id=str(event.booking_id),
                reason=exc.message,
            )
