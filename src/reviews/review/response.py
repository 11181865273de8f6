"""RespondToReview — the reviewed party answers a published review, once."""

from protean.fields import Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review_pair import ReviewPair


@reviews.command(part_of="ReviewPair")
class RespondToReview:
    review_id = Identifier(required=True)
    responder_id = Identifier(required=True)
    text = Text(required=True)


@reviews.command_handler(part_of=ReviewPair)
class RespondToReviewHandler:
    @handle(RespondToReview)
    def respond_to_review(self, command):
        repo = current_domain.repository_for(ReviewPair)
        pair = repo.get_by_review_id(command.review_id)

        response = pair.respond(
            review_id=command.review_id,
            responder_id=command.responder_id,
            text=command.text,
        )

        repo.add(pair)
        return str(response.id)
