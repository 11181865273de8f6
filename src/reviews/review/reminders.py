"""Review reminders — nudge authors who have not written their review yet.

Triggered by an external scheduler via the maintenance API endpoint. Each
draft receives at most three reminders (first, second, final) on the schedule
in ``reviews.review.policy``; a reminder is never sent for an overdue draft.
"""

from datetime import UTC, datetime

from protean.exceptions import ExpectedVersionError, InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review_pair import ReviewPair
from reviews.utils.logging import get_logger
from reviews.utils.retry import process_with_retry

logger = get_logger(__name__)


@reviews.command(part_of="ReviewPair")
class SendReviewReminders:
    as_of = DateTime()  # Optional: defaults to now


@reviews.command(part_of="ReviewPair")
class RemindReviewPair:
    booking_id = Identifier(required=True)
    as_of = DateTime(required=True)


@reviews.command_handler(part_of=ReviewPair)
class ReviewRemindersHandler:
    @handle(SendReviewReminders)
    def send_review_reminders(self, command):
        as_of = command.as_of or datetime.now(UTC)
        open_pairs = current_domain.repository_for(ReviewPair).find_open()

        sent_count = 0
        for pair in open_pairs:
            try:
                sent_count += process_with_retry(RemindReviewPair(booking_id=str(pair.booking_id), as_of=as_of))
            except (ValidationError, InvalidOperationError, ExpectedVersionError) as exc:
                logger.warning(
                    "Failed to send review reminders",
                    booking_id=str(pair.booking_id),
                    error=str(exc),
                )

        logger.info("Review reminder sweep complete", reminders_sent=sent_count)
        return sent_count

    @handle(RemindReviewPair)
    def remind_review_pair(self, command):
        repo = current_domain.repository_for(ReviewPair)
        pair = repo.get(command.booking_id)

        sent = pair.send_due_reminders(command.as_of)
        if sent:
            repo.add(pair)
        return sent
