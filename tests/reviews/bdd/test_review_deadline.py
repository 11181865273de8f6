"""BDD tests for the review deadline and the expiry sweep."""

from datetime import UTC, datetime, timedelta

from pytest_bdd import scenarios, when

scenarios("features/review_deadline.feature")


@when("the hiker's review window closes")
def hiker_window_closes(pair):
    pair.hiker_review.expires_at = datetime.now(UTC) - timedelta(minutes=5)


@when("overdue reviews are expired")
def expire_overdue(pair):
    pair.expire_overdue(datetime.now(UTC))
