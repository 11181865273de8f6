"""Application tests for PublishReviewPair and RespondToReview."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from reviews.review.eligibility import OpenReviews
from reviews.review.errors import AlreadyResponded, NotPublished, NotSubject
from reviews.review.publication import PublishReviewPair
from reviews.review.response import RespondToReview
from reviews.review.review_pair import ReviewPair, ReviewStatus
from reviews.review.submission import SubmitReview

ALL_FOURS = {"expertise": 4, "safety": 4, "communication": 4, "leadership": 4, "value": 4}
ALL_TRUE = {"fitness_accurate": True, "well_prepared": True, "great_companion": True, "would_guide_again": True}
RESPONSE = "Thanks for the kind words, come back in winter!"


def _open_pair(booking_id="booking-pr"):
    current_domain.process(
        OpenReviews(
            booking_id=booking_id,
            hiker_id="hiker-pr",
            guide_id="guide-pr",
            completed_at=datetime.now(UTC) - timedelta(days=2),
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(ReviewPair).get(booking_id)


def _submit_hiker(pair):
    current_domain.process(
        SubmitReview(
            review_id=str(pair.hiker_review_id),
            author_id="hiker-pr",
            comment="Steady pace, excellent knowledge of the local flora and history.",
            category_ratings=json.dumps(ALL_FOURS),
        ),
        asynchronous=False,
    )


def _submit_guide(pair):
    current_domain.process(
        SubmitReview(
            review_id=str(pair.guide_review_id),
            author_id="guide-pr",
            comment="Asked good questions, well prepared.",
            overall_rating=4,
            quick_assessment=json.dumps(ALL_TRUE),
        ),
        asynchronous=False,
    )


def _published_pair():
    pair = _open_pair()
    _submit_hiker(pair)
    _submit_guide(pair)
    return current_domain.repository_for(ReviewPair).get("booking-pr")


def _respond(review_id, responder_id="guide-pr", text=RESPONSE):
    return current_domain.process(
        RespondToReview(review_id=str(review_id), responder_id=responder_id, text=text),
        asynchronous=False,
    )


class TestPublishReviewPair:
    def test_publish_with_draft_is_a_no_op(self):
        pair = _open_pair()
        _submit_hiker(pair)
        published = current_domain.process(PublishReviewPair(booking_id="booking-pr"), asynchronous=False)
        assert published is False
        stored = current_domain.repository_for(ReviewPair).get("booking-pr")
        assert stored.hiker_review.status == ReviewStatus.SUBMITTED.value

    def test_publish_on_published_pair_is_a_no_op(self, notifier):
        _published_pair()
        published = current_domain.process(PublishReviewPair(booking_id="booking-pr"), asynchronous=False)
        assert published is False
        assert len(notifier.events("reviews_published")) == 1


class TestRespondToReview:
    def test_response_is_persisted(self):
        pair = _published_pair()
        response_id = _respond(pair.hiker_review_id)

        stored = current_domain.repository_for(ReviewPair).get("booking-pr")
        response = stored.response_for(pair.hiker_review_id)
        assert str(response.id) == response_id
        assert response.text == RESPONSE

    def test_review_author_is_notified(self, notifier):
        pair = _published_pair()
        _respond(pair.hiker_review_id)
        received = notifier.events("review_response_received")
        assert len(received) == 1
        assert received[0]["recipient_ids"] == ["hiker-pr"]

    def test_second_response_rejected(self):
        pair = _published_pair()
        _respond(pair.hiker_review_id)
        with pytest.raises(AlreadyResponded):
            _respond(pair.hiker_review_id, text="A second, different reply.")

        stored = current_domain.repository_for(ReviewPair).get("booking-pr")
        assert stored.response_for(pair.hiker_review_id).text == RESPONSE

    def test_non_subject_rejected(self):
        pair = _published_pair()
        with pytest.raises(NotSubject):
            _respond(pair.hiker_review_id, responder_id="hiker-pr")

    def test_unpublished_review_rejected(self):
        pair = _open_pair()
        _submit_hiker(pair)
        with pytest.raises(NotPublished):
            _respond(pair.hiker_review_id)

    def test_text_bounds(self):
        pair = _published_pair()
        with pytest.raises(ValidationError):
            _respond(pair.hiker_review_id, text="Thanks")
