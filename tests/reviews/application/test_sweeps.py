"""Application tests for the expiry and reminder sweeps.

Covers:
- Overdue drafts are expired and their authors notified
- Running the expiry sweep again changes nothing
- Pairs with no overdue draft are left alone
- Reminders follow the first/second/final schedule and stop after three
"""

import json
from datetime import UTC, datetime, timedelta

from protean import current_domain
from reviews.review.eligibility import OpenReviews
from reviews.review.expiry import ExpireOverdueReviews
from reviews.review.reminders import SendReviewReminders
from reviews.review.review_pair import PairState, ReviewPair, ReviewStatus
from reviews.review.submission import SubmitReview


def _open_pair(booking_id, days_since_completion):
    current_domain.process(
        OpenReviews(
            booking_id=booking_id,
            hiker_id=f"hiker-{booking_id}",
            guide_id=f"guide-{booking_id}",
            completed_at=datetime.now(UTC) - timedelta(days=days_since_completion),
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(ReviewPair).get(booking_id)


def _expire(as_of=None):
    return current_domain.process(ExpireOverdueReviews(as_of=as_of or datetime.now(UTC)), asynchronous=False)


def _remind(as_of):
    return current_domain.process(SendReviewReminders(as_of=as_of), asynchronous=False)


class TestExpireOverdueReviews:
    def test_overdue_drafts_are_expired(self):
        _open_pair("old", days_since_completion=40)
        expired = _expire()

        assert expired == 2
        pair = current_domain.repository_for(ReviewPair).get("old")
        assert all(r.status == ReviewStatus.EXPIRED.value for r in pair.members)
        assert pair.state == PairState.CLOSED.value

    def test_fresh_pairs_are_untouched(self):
        _open_pair("fresh", days_since_completion=2)
        assert _expire() == 0
        pair = current_domain.repository_for(ReviewPair).get("fresh")
        assert all(r.status == ReviewStatus.DRAFT.value for r in pair.members)

    def test_sweep_is_idempotent(self, notifier):
        _open_pair("old", days_since_completion=40)
        assert _expire() == 2
        assert _expire() == 0
        assert len(notifier.events("review_period_ended")) == 2

    def test_submitted_sibling_survives_expiry(self):
        pair = _open_pair("half", days_since_completion=2)
        current_domain.process(
            SubmitReview(
                review_id=str(pair.guide_review_id),
                author_id="guide-half",
                comment="Good fitness, followed instructions well.",
                overall_rating=4,
                quick_assessment=json.dumps(
                    {"fitness_accurate": True, "well_prepared": True, "great_companion": True, "would_guide_again": True}
                ),
            ),
            asynchronous=False,
        )

        assert _expire(as_of=datetime.now(UTC) + timedelta(days=40)) == 1
        stored = current_domain.repository_for(ReviewPair).get("half")
        assert stored.hiker_review.status == ReviewStatus.EXPIRED.value
        assert stored.guide_review.status == ReviewStatus.SUBMITTED.value
        assert stored.published_at is None


class TestSendReviewReminders:
    def test_first_reminder_goes_to_both_authors(self, notifier):
        pair = _open_pair("remind", days_since_completion=2)
        sent = _remind(pair.available_at)

        assert sent == 2
        recipients = sorted(p["recipient_ids"][0] for p in notifier.events("first_reminder"))
        assert recipients == ["guide-remind", "hiker-remind"]

    def test_reminders_stop_after_the_final_one(self, notifier):
        pair = _open_pair("remind", days_since_completion=2)
        available_at = pair.available_at
        for offset_hours in (0, 24, 72, 300):
            _remind(available_at + timedelta(hours=offset_hours))

        assert len(notifier.events("first_reminder")) == 2
        assert len(notifier.events("second_reminder")) == 2
        assert len(notifier.events("final_reminder")) == 2
        stored = current_domain.repository_for(ReviewPair).get("remind")
        assert all(r.reminders_sent == 3 for r in stored.members)

    def test_running_twice_at_the_same_time_sends_once(self, notifier):
        pair = _open_pair("remind", days_since_completion=2)
        _remind(pair.available_at)
        assert _remind(pair.available_at) == 0
        assert len(notifier.events("first_reminder")) == 2

    def test_expired_pairs_get_no_reminders(self, notifier):
        _open_pair("old", days_since_completion=40)
        _expire()
        assert _remind(datetime.now(UTC)) == 0
        assert notifier.events("first_reminder") == []
