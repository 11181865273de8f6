"""SubmitReview — one party submits their review; the pair publishes if both are in.

Submission and the publication check run in the same unit of work, so the
write that moves the second review to SUBMITTED is the same write that
publishes the pair.
"""

import json

from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review_pair import ReviewPair
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


@reviews.command(part_of="ReviewPair")
class SubmitReview:
    review_id = Identifier(required=True)
    author_id = Identifier(required=True)
    comment = Text()
    overall_rating = Integer()
    category_ratings = Text()  # JSON object of five 1-5 scores
    quick_assessment = Text()  # JSON object of four booleans
    highlight_tags = Text()  # JSON array of strings
    private_notes = Text()


@reviews.command_handler(part_of=ReviewPair)
class SubmitReviewHandler:
    @handle(SubmitReview)
    def submit_review(self, command):
        repo = current_domain.repository_for(ReviewPair)
        pair = repo.get_by_review_id(command.review_id)

        review = pair.submit_review(
            review_id=command.review_id,
            author_id=command.author_id,
            comment=command.comment,
            overall_rating=command.overall_rating,
            category_ratings=json.loads(command.category_ratings) if command.category_ratings else None,
            quick_assessment=json.loads(command.quick_assessment) if command.quick_assessment else None,
            highlight_tags=json.loads(command.highlight_tags) if command.highlight_tags else None,
            private_notes=command.private_notes,
        )

        if pair.try_publish():
            logger.info("Review pair published", booking_id=str(pair.booking_id))

        repo.add(pair)
        return review.status
