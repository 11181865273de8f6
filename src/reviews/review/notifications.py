"""Outbound notifications — hands review lifecycle moments to the notifier port.

Delivery is fire-and-forget: a failing notifier is logged and never undoes
or fails the review transition that triggered it. Publication is notified
once per booking because the pair raises a single ReviewPairPublished.
"""

from protean.utils.mixins import handle

from reviews.domain import reviews
from reviews.gateway import get_notifier
from reviews.review.events import (
    ReviewExpired,
    ReviewPairOpened,
    ReviewPairPublished,
    ReviewReminderSent,
    ReviewResponsePosted,
    ReviewSubmitted,
)
from reviews.review.review_pair import ReviewPair
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


def _dispatch(event_name: str, payload: dict) -> None:
    try:
        get_notifier().notify(event_name, payload)
    except Exception as exc:
        logger.warning(
            "Notification dispatch failed",
            notification=event_name,
            booking_id=payload.get("booking_id"),
            error=str(exc),
        )


@reviews.event_handler(part_of=ReviewPair)
class ReviewNotificationsHandler:
    @handle(ReviewPairOpened)
    def on_review_pair_opened(self, event: ReviewPairOpened) -> None:
        _dispatch(
            "review_available",
            {
                "booking_id": str(event.booking_id),
                "recipient_ids": [str(event.hiker_id), str(event.guide_id)],
                "hiker_review_id": str(event.hiker_review_id),
                "guide_review_id": str(event.guide_review_id),
                "available_at": event.available_at.isoformat(),
                "expires_at": event.expires_at.isoformat(),
            },
        )

    @handle(ReviewSubmitted)
    def on_review_submitted(self, event: ReviewSubmitted) -> None:
        # Nudge the other party only while the pair is still waiting on them.
        if event.counterpart_submitted:
            return
        _dispatch(
            "counterpart_review_submitted",
            {
                "booking_id": str(event.booking_id),
                "recipient_ids": [str(event.subject_id)],
                "review_id": str(event.review_id),
            },
        )

    @handle(ReviewPairPublished)
    def on_review_pair_published(self, event: ReviewPairPublished) -> None:
        _dispatch(
            "reviews_published",
            {
                "booking_id": str(event.booking_id),
                "recipient_ids": [str(event.hiker_id), str(event.guide_id)],
                "hiker_review_id": str(event.hiker_review_id),
                "guide_review_id": str(event.guide_review_id),
                "published_at": event.published_at.isoformat(),
            },
        )

    @handle(ReviewResponsePosted)
    def on_review_response_posted(self, event: ReviewResponsePosted) -> None:
        _dispatch(
            "review_response_received",
            {
                "booking_id": str(event.booking_id),
                "recipient_ids": [str(event.author_id)],
                "review_id": str(event.review_id),
                "responder_id": str(event.responder_id),
            },
        )

    @handle(ReviewExpired)
    def on_review_expired(self, event: ReviewExpired) -> None:
        _dispatch(
            "review_period_ended",
            {
                "booking_id": str(event.booking_id),
                "recipient_ids": [str(event.author_id)],
                "review_id": str(event.review_id),
            },
        )

    @handle(ReviewReminderSent)
    def on_review_reminder_sent(self, event: ReviewReminderSent) -> None:
        _dispatch(
            event.reminder_kind,
            {
                "booking_id": str(event.booking_id),
                "recipient_ids": [str(event.author_id)],
                "review_id": str(event.review_id),
                "reminder_number": event.reminder_number,
                "expires_at": event.expires_at.isoformat(),
            },
        )
