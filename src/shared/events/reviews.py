"""Cross-domain event contracts for Reviews domain events.

These classes define the event shape for consumption by other domains (for
example a notifications or guide-profile context). The source-of-truth events
are in src/reviews/review/events.py; private notes never leave the Reviews
domain.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, Integer, Text


class ReviewPairPublished(BaseEvent):
    """Both reviews of a booking became public together."""

    __version__ = 1

    booking_id = Identifier(required=True)
    hiker_id = Identifier(required=True)
    guide_id = Identifier(required=True)
    hiker_review_id = Identifier(required=True)
    guide_review_id = Identifier(required=True)
    guide_rating = Integer(required=True)
    guide_category_ratings = Text()
    hiker_rating = Integer(required=True)
    published_at = DateTime(required=True)


class ReviewResponsePosted(BaseEvent):
    """The reviewed party responded to a published review."""

    __version__ = 1

    booking_id = Identifier(required=True)
    review_id = Identifier(required=True)
    responder_id = Identifier(required=True)
    author_id = Identifier(required=True)
    text = Text(required=True)
    responded_at = DateTime(required=True)
