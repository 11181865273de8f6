"""Domain events for the ReviewPair aggregate.

Events drive the read projections and the outbound notifications. Private
notes never appear in any event payload.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from reviews.domain import reviews


@reviews.event(part_of="ReviewPair")
class ReviewPairOpened:
    """Both review shells were created for a completed booking."""

    __version__ = 1

    booking_id = Identifier(required=True)
    tour_id = Identifier()
    hiker_id = Identifier(required=True)
    guide_id = Identifier(required=True)
    hiker_review_id = Identifier(required=True)
    guide_review_id = Identifier(required=True)
    completed_at = DateTime(required=True)
    available_at = DateTime(required=True)
    expires_at = DateTime(required=True)
    opened_at = DateTime(required=True)


@reviews.event(part_of="ReviewPair")
class ReviewSubmitted:
    """One party submitted their review. It stays hidden until the pair publishes."""

    __version__ = 1

    booking_id = Identifier(required=True)
    review_id = Identifier(required=True)
    review_type = String(required=True)
    author_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    overall_rating = Integer(required=True)
    comment = Text(required=True)
    category_ratings = Text()  # JSON object, hiker_to_guide only
    quick_assessment = Text()  # JSON object, guide_to_hiker only
    highlight_tags = Text()  # JSON array, hiker_to_guide only
    counterpart_submitted = Boolean(default=False)
    submitted_at = DateTime(required=True)


@reviews.event(part_of="ReviewPair")
class ReviewPairPublished:
    """Both reviews of a booking became public together."""

    __version__ = 1

    booking_id = Identifier(required=True)
    hiker_id = Identifier(required=True)
    guide_id = Identifier(required=True)
    hiker_review_id = Identifier(required=True)
    guide_review_id = Identifier(required=True)
    guide_rating = Integer(required=True)  # from the hiker_to_guide review
    guide_category_ratings = Text()  # JSON object
    hiker_rating = Integer(required=True)  # from the guide_to_hiker review
    published_at = DateTime(required=True)


@reviews.event(part_of="ReviewPair")
class ReviewExpired:
    """A draft review passed its deadline without being submitted."""

    __version__ = 1

    booking_id = Identifier(required=True)
    review_id = Identifier(required=True)
    review_type = String(required=True)
    author_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    expired_at = DateTime(required=True)


@reviews.event(part_of="ReviewPair")
class ReviewReminderSent:
    """The author of a draft review was reminded to complete it."""

    __version__ = 1

    booking_id = Identifier(required=True)
    review_id = Identifier(required=True)
    author_id = Identifier(required=True)
    reminder_number = Integer(required=True)
    reminder_kind = String(required=True)
    expires_at = DateTime(required=True)
    sent_at = DateTime(required=True)


@reviews.event(part_of="ReviewPair")
class ReviewResponsePosted:
    """The reviewed party responded to a published review."""

    __version__ = 1

    booking_id = Identifier(required=True)
    review_id = Identifier(required=True)
    responder_id = Identifier(required=True)
    author_id = Identifier(required=True)
    text = Text(required=True)
    responded_at = DateTime(required=True)
