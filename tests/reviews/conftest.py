import pytest
from protean.integrations.pytest import DomainFixture
from reviews.gateway import get_booking_directory, get_notifier


@pytest.fixture(scope="session")
def reviews_bed():
    from reviews.domain import reviews

    bed = DomainFixture(reviews)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(reviews_bed):
    with reviews_bed.domain_context():
        yield


@pytest.fixture()
def notifier():
    """The in-memory notifier that records every dispatched notification."""
    return get_notifier()


@pytest.fixture()
def bookings():
    """The in-memory booking directory."""
    return get_booking_directory()
