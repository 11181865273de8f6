"""Shared BDD fixtures and step definitions for the Reviews domain."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then, when
from reviews.review import errors
from reviews.review.events import (
    ReviewExpired,
    ReviewPairOpened,
    ReviewPairPublished,
    ReviewReminderSent,
    ReviewResponsePosted,
    ReviewSubmitted,
)
from reviews.review.review_pair import ReviewPair

_REVIEW_EVENT_CLASSES = {
    "ReviewPairOpened": ReviewPairOpened,
    "ReviewSubmitted": ReviewSubmitted,
    "ReviewPairPublished": ReviewPairPublished,
    "ReviewExpired": ReviewExpired,
    "ReviewReminderSent": ReviewReminderSent,
    "ReviewResponsePosted": ReviewResponsePosted,
}

HIKER = "hiker-bdd"
GUIDE = "guide-bdd"
CATEGORY_KEYS = ("expertise", "safety", "communication", "leadership", "value")
ALL_TRUE = {"fitness_accurate": True, "well_prepared": True, "great_companion": True, "would_guide_again": True}


@pytest.fixture()
def error():
    """Container for captured rejections."""
    return {"exc": None}


def review_of(pair, side):
    return pair.hiker_review if side == "hiker" else pair.guide_review


def submit_as_hiker(pair, comment_length=60, category=4):
    """Submit the hiker review and publish the pair if both sides are in, as SubmitReview does."""
    pair.submit_review(
        review_id=pair.hiker_review.id,
        author_id=HIKER,
        comment="h" * comment_length,
        category_ratings={key: category for key in CATEGORY_KEYS},
    )
    return pair.try_publish()


def submit_as_guide(pair, comment_length=40, rating=5):
    pair.submit_review(
        review_id=pair.guide_review.id,
        author_id=GUIDE,
        comment="g" * comment_length,
        overall_rating=rating,
        quick_assessment=dict(ALL_TRUE),
    )
    return pair.try_publish()


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a review pair for booking "{booking_id}"'), target_fixture="pair")
def open_review_pair(booking_id):
    pair = ReviewPair.open(
        booking_id=booking_id,
        hiker_id=HIKER,
        guide_id=GUIDE,
        completed_at=datetime.now(UTC) - timedelta(days=2),
    )
    pair._events.clear()
    return pair


@given(
    parsers.cfparse('a review pair for booking "{booking_id}" completed {days:d} days ago'),
    target_fixture="pair",
)
def open_old_review_pair(booking_id, days):
    pair = ReviewPair.open(
        booking_id=booking_id,
        hiker_id=HIKER,
        guide_id=GUIDE,
        completed_at=datetime.now(UTC) - timedelta(days=days),
    )
    pair._events.clear()
    return pair


@given("both parties have submitted their reviews")
def both_submitted(pair):
    submit_as_hiker(pair)
    submit_as_guide(pair)
    pair._events.clear()


@given("the guide has submitted their review")
def guide_has_submitted(pair):
    submit_as_guide(pair)
    pair._events.clear()


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse(
        "the hiker submits a review with a {length:d} character comment and all categories rated {rating:d}"
    )
)
def hiker_submits(pair, error, length, rating):
    try:
        submit_as_hiker(pair, comment_length=length, category=rating)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse("the guide submits a review with a {length:d} character comment and overall rating {rating:d}"))
def guide_submits(pair, error, length, rating):
    try:
        submit_as_guide(pair, comment_length=length, rating=rating)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the {side} review status is "{status}"'))
def review_status_is(pair, side, status):
    assert review_of(pair, side).status == status


@then(parsers.cfparse("the action is rejected with {error_name}"))
def action_rejected_with(error, error_name):
    assert error["exc"] is not None, "Expected a rejection but none was raised"
    expected = getattr(errors, error_name, None) or ValidationError
    assert isinstance(error["exc"], expected)


@then(parsers.cfparse("a {event_type} event is raised"))
def review_event_raised(pair, event_type):
    event_cls = _REVIEW_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in pair._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in pair._events]}"


@then(parsers.cfparse("no {event_type} event is raised"))
def review_event_not_raised(pair, event_type):
    event_cls = _REVIEW_EVENT_CLASSES[event_type]
    assert not any(isinstance(e, event_cls) for e in pair._events)
