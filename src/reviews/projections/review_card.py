"""ReviewCard — one read-model row per review, as shown on review cards.

Private notes are never copied into this projection. Content of a submitted
but unpublished review is stored here so its author can see it; visibility
to everyone else is enforced by ``visible_to`` below.
"""

import json
from datetime import UTC, datetime

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from reviews.domain import reviews
from reviews.review.events import (
    ReviewExpired,
    ReviewPairOpened,
    ReviewPairPublished,
    ReviewResponsePosted,
    ReviewSubmitted,
)
from reviews.review.review_pair import ReviewPair, ReviewStatus, ReviewType


@reviews.projection
class ReviewCard:
    review_id = Identifier(identifier=True, required=True)
    booking_id = Identifier(required=True)
    tour_id = Identifier()
    review_type = String(required=True)
    author_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    status = String(required=True)
    overall_rating = Integer()
    comment = Text()
    category_ratings = Text()  # JSON object
    quick_assessment = Text()  # JSON object
    highlight_tags = Text()  # JSON array
    available_at = DateTime()
    expires_at = DateTime()
    submitted_at = DateTime()
    published_at = DateTime()
    response_text = Text()
    responder_id = Identifier()
    responded_at = DateTime()
    created_at = DateTime()


def _json_or_none(value):
    return json.loads(value) if value else None


def visible_to(card, viewer_id=None):
    """Published cards are public; anything else only to its author."""
    if card.status == ReviewStatus.PUBLISHED.value:
        return True
    return viewer_id is not None and str(card.author_id) == str(viewer_id)


def is_available(card, as_of=None):
    if card.available_at is None:
        return True
    available_at = card.available_at
    if available_at.tzinfo is None:
        available_at = available_at.replace(tzinfo=UTC)
    return (as_of or datetime.now(UTC)) >= available_at


def to_payload(card):
    payload = {
        "review_id": str(card.review_id),
        "booking_id": str(card.booking_id),
        "tour_id": str(card.tour_id) if card.tour_id else None,
        "review_type": card.review_type,
        "author_id": str(card.author_id),
        "subject_id": str(card.subject_id),
        "status": card.status,
        "is_available": is_available(card),
        "overall_rating": card.overall_rating,
        "comment": card.comment,
        "category_ratings": _json_or_none(card.category_ratings),
        "quick_assessment": _json_or_none(card.quick_assessment),
        "highlight_tags": _json_or_none(card.highlight_tags) or [],
        "available_at": card.available_at,
        "expires_at": card.expires_at,
        "submitted_at": card.submitted_at,
        "published_at": card.published_at,
        "response": None,
    }
    if card.response_text:
        payload["response"] = {
            "responder_id": str(card.responder_id),
            "text": card.response_text,
            "created_at": card.responded_at,
        }
    return payload


def find_cards(viewer_id=None, **filters):
    """Cards matching ``filters`` that ``viewer_id`` is allowed to see."""
    repo = current_domain.repository_for(ReviewCard)
    cards = repo._dao.query.filter(**filters).all().items
    return [card for card in cards if visible_to(card, viewer_id)]


@reviews.projector(projector_for=ReviewCard, aggregates=[ReviewPair])
class ReviewCardProjector:
    @on(ReviewPairOpened)
    def on_review_pair_opened(self, event):
        repo = current_domain.repository_for(ReviewCard)
        directions = (
            (event.hiker_review_id, ReviewType.HIKER_TO_GUIDE, event.hiker_id, event.guide_id),
            (event.guide_review_id, ReviewType.GUIDE_TO_HIKER, event.guide_id, event.hiker_id),
        )
        for review_id, review_type, author_id, subject_id in directions:
            repo.add(
                ReviewCard(
                    review_id=review_id,
                    booking_id=event.booking_id,
                    tour_id=event.tour_id,
                    review_type=review_type.value,
                    author_id=author_id,
                    subject_id=subject_id,
                    status=ReviewStatus.DRAFT.value,
                    available_at=event.available_at,
                    expires_at=event.expires_at,
                    created_at=event.opened_at,
                )
            )

    @on(ReviewSubmitted)
    def on_review_submitted(self, event):
        repo = current_domain.repository_for(ReviewCard)
        try:
            card = repo.get(event.review_id)
        except ObjectNotFoundError:
            return
        card.status = ReviewStatus.SUBMITTED.value
        card.overall_rating = event.overall_rating
        card.comment = event.comment
        card.category_ratings = event.category_ratings
        card.quick_assessment = event.quick_assessment
        card.highlight_tags = event.highlight_tags
        card.submitted_at = event.submitted_at
        repo.add(card)

    @on(ReviewPairPublished)
    def on_review_pair_published(self, event):
        repo = current_domain.repository_for(ReviewCard)
        for review_id in (event.hiker_review_id, event.guide_review_id):
            try:
                card = repo.get(review_id)
            except ObjectNotFoundError:
                continue
            card.status = ReviewStatus.PUBLISHED.value
            card.published_at = event.published_at
            repo.add(card)

    @on(ReviewExpired)
    def on_review_expired(self, event):
        repo = current_domain.repository_for(ReviewCard)
        try:
            card = repo.get(event.review_id)
        except ObjectNotFoundError:
            return
        card.status = ReviewStatus.EXPIRED.value
        repo.add(card)

    @on(ReviewResponsePosted)
    def on_review_response_posted(self, event):
        repo = current_domain.repository_for(ReviewCard)
        try:
            card = repo.get(event.review_id)
        except ObjectNotFoundError:
            return
        card.response_text = event.text
        card.responder_id = event.responder_id
        card.responded_at = event.responded_at
        repo.add(card)
