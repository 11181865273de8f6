"""OpenReviews — create the draft review pair for a completed booking.

Idempotent: the completion trigger may fire more than once for the same
booking, and every call after the first returns the existing pair untouched.
When the command carries only a booking id, the booking is looked up through
the booking directory port.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.gateway import get_booking_directory
from reviews.review.review_pair import ReviewPair
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


@reviews.command(part_of="ReviewPair")
class OpenReviews:
    booking_id = Identifier(required=True)
    hiker_id = Identifier()
    guide_id = Identifier()
    tour_id = Identifier()
    completed_at = DateTime()


def _existing_pair(repo, booking_id):
    try:
        return repo.get(booking_id)
    except ObjectNotFoundError:
        return None


def _booking_details(command):
    """Use the details carried by the command, or fetch them from the booking directory."""
    if command.hiker_id:
        return command.hiker_id, command.guide_id, command.tour_id, command.completed_at

    booking = get_booking_directory().get_booking(str(command.booking_id))
    if booking is None:
        raise ObjectNotFoundError({"booking_id": [f"Booking {command.booking_id} does not exist"]})
    return booking.hiker_id, booking.guide_id, booking.tour_id, booking.completed_at


@reviews.command_handler(part_of=ReviewPair)
class OpenReviewsHandler:
    @handle(OpenReviews)
    def open_reviews(self, command):
        repo = current_domain.repository_for(ReviewPair)

        existing = _existing_pair(repo, command.booking_id)
        if existing is not None:
            logger.info("Reviews already open for booking", booking_id=str(command.booking_id))
            return str(existing.booking_id)

        hiker_id, guide_id, tour_id, completed_at = _booking_details(command)

        pair = ReviewPair.open(
            booking_id=command.booking_id,
            hiker_id=hiker_id,
            guide_id=guide_id,
            tour_id=tour_id,
            completed_at=completed_at,
        )
        try:
            repo.add(pair)
        except ValidationError as exc:
            # A concurrent trigger saved the pair between our lookup and this save
            if "booking_id" not in exc.messages:
                raise
            existing = _existing_pair(repo, command.booking_id)
            if existing is None:
                raise
            logger.info("Reviews opened concurrently for booking", booking_id=str(command.booking_id))
            return str(existing.booking_id)

        logger.info(
            "Review pair opened",
            booking_id=str(pair.booking_id),
            available_at=pair.available_at.isoformat(),
            expires_at=pair.expires_at.isoformat(),
        )
        return str(pair.booking_id)
