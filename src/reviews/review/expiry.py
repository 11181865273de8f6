"""Review expiry — close drafts whose review window has passed.

Designed to be triggered periodically by an external scheduler (cron, K8s
CronJob) via the maintenance API endpoint. Safe to run repeatedly and
alongside submissions: each pair is expired in its own version-checked unit
of work, and a submission arriving after the deadline is rejected anyway.
"""

from datetime import UTC, datetime

from protean.exceptions import ExpectedVersionError, InvalidOperationError, ValidationError
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.review.review_pair import ReviewPair, ReviewStatus
from reviews.utils.logging import get_logger
from reviews.utils.retry import process_with_retry

logger = get_logger(__name__)


@reviews.command(part_of="ReviewPair")
class ExpireOverdueReviews:
    """Expire every overdue draft across all open pairs."""

    as_of = DateTime()  # Optional: defaults to now


@reviews.command(part_of="ReviewPair")
class ExpireReviewPair:
    """Expire the overdue drafts of one pair."""

    booking_id = Identifier(required=True)
    as_of = DateTime(required=True)


@reviews.command_handler(part_of=ReviewPair)
class ReviewExpiryHandler:
    @handle(ExpireOverdueReviews)
    def expire_overdue_reviews(self, command):
        as_of = command.as_of or datetime.now(UTC)
        open_pairs = current_domain.repository_for(ReviewPair).find_open()

        logger.info("Checking open review pairs for overdue drafts", open_pairs=len(open_pairs))

        expired_count = 0
        for pair in open_pairs:
            if not any(r.status == ReviewStatus.DRAFT.value and r.is_overdue(as_of) for r in pair.members):
                continue
            try:
                expired_count += process_with_retry(
                    ExpireReviewPair(booking_id=str(pair.booking_id), as_of=as_of)
                )
            except (ValidationError, InvalidOperationError, ExpectedVersionError) as exc:
                logger.warning(
                    "Failed to expire overdue reviews",
                    booking_id=str(pair.booking_id),
                    error=str(exc),
                )

        logger.info("Review expiry sweep complete", expired_count=expired_count)
        return expired_count

    @handle(ExpireReviewPair)
    def expire_review_pair(self, command):
        repo = current_domain.repository_for(ReviewPair)
        pair = repo.get(command.booking_id)

        expired = pair.expire_overdue(command.as_of)
        if expired:
            repo.add(pair)
            logger.info(
                "Expired overdue reviews",
                booking_id=str(pair.booking_id),
                review_ids=[str(r.id) for r in expired],
            )
        return len(expired)
