"""Cross-domain event contracts published by the Bookings domain.

Registered in the Reviews domain via domain.register_external_event() with a
matching __type__ string so Protean's stream deserialization works.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier


class BookingCompleted(BaseEvent):
    """A booked tour finished. Consumed by Reviews to open the review pair."""

    __version__ = 1

    booking_id = Identifier(required=True)
    tour_id = Identifier()
    hiker_id = Identifier(required=True)
    guide_id = Identifier()
    completed_at = DateTime()
