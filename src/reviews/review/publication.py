"""PublishReviewPair — re-run the publication check for a booking.

Submission already runs this check; the command exists so that a caller who
lost track of an outcome (timeout, transient storage failure) can safely
re-invoke it. Publishing an already-published pair is a no-op.
"""

from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review_pair import ReviewPair
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


@reviews.command(part_of="ReviewPair")
class PublishReviewPair:
    booking_id = Identifier(required=True)


@reviews.command_handler(part_of=ReviewPair)
class PublishReviewPairHandler:
    @handle(PublishReviewPair)
    def publish_review_pair(self, command):
        repo = current_domain.repository_for(ReviewPair)
        pair = repo.get(command.booking_id)

        if pair.try_publish():
            repo.add(pair)
            logger.info("Review pair published", booking_id=str(pair.booking_id))
            return True
        return False
