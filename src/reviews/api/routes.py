"""FastAPI routes for the mutual reviews bounded context.

Each route translates between Pydantic schemas (external contract) and
Protean commands (internal domain concepts). The caller's identity arrives in
the ``X-User-Id`` header set by the authentication layer in front of this
service.
"""

import json

from fastapi import APIRouter, Header, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from reviews.api.schemas import (
    BookingIdResponse,
    OpenReviewsRequest,
    PrivateNotesResponse,
    PublishResponse,
    RespondToReviewRequest,
    ResponseIdResponse,
    ReviewCardResponse,
    ReviewListResponse,
    ReviewStatusResponse,
    SubjectRatingResponse,
    SubmitReviewRequest,
    SweepRequest,
    SweepResponse,
)
from reviews.projections import review_card, subject_rating
from reviews.review.eligibility import OpenReviews
from reviews.review.expiry import ExpireOverdueReviews
from reviews.review.publication import PublishReviewPair
from reviews.review.reminders import SendReviewReminders
from reviews.review.response import RespondToReview
from reviews.review.review_pair import ReviewPair
from reviews.review.submission import SubmitReview
from reviews.utils.retry import process_with_retry

booking_router = APIRouter(prefix="/bookings", tags=["bookings"])
review_router = APIRouter(prefix="/reviews", tags=["reviews"])


def _require_user(x_user_id: str) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


# ---------------------------------------------------------------------------
# Eligibility
# ---------------------------------------------------------------------------
@booking_router.post("/{booking_id}/reviews", status_code=201, response_model=BookingIdResponse)
async def open_reviews(booking_id: str, body: OpenReviewsRequest | None = None) -> BookingIdResponse:
    """Create the review pair for a completed booking (idempotent)."""
    body = body or OpenReviewsRequest()
    command = OpenReviews(
        booking_id=booking_id,
        hiker_id=body.hiker_id,
        guide_id=body.guide_id,
        tour_id=body.tour_id,
        completed_at=body.completed_at,
    )
    result = process_with_retry(command)
    return BookingIdResponse(booking_id=result)


# ---------------------------------------------------------------------------
# Submission and publication
# ---------------------------------------------------------------------------
@review_router.post("/{review_id}/submit", response_model=ReviewStatusResponse)
async def submit_review(
    review_id: str,
    body: SubmitReviewRequest,
    x_user_id: str = Header(default=""),
) -> ReviewStatusResponse:
    """Submit one party's review; publishes the pair when both are in."""
    command = SubmitReview(
        review_id=review_id,
        author_id=_require_user(x_user_id),
        comment=body.comment,
        overall_rating=body.overall_rating,
        category_ratings=json.dumps(body.category_ratings.model_dump()) if body.category_ratings else None,
        quick_assessment=json.dumps(body.quick_assessment.model_dump()) if body.quick_assessment else None,
        highlight_tags=json.dumps(body.highlight_tags) if body.highlight_tags else None,
        private_notes=body.private_notes,
    )
    status = process_with_retry(command)
    return ReviewStatusResponse(review_id=review_id, status=status)


@review_router.post("/{booking_id}/publish", response_model=PublishResponse)
async def publish_review_pair(booking_id: str) -> PublishResponse:
    """Publish the pair if both reviews are submitted. No-op otherwise."""
    published = process_with_retry(PublishReviewPair(booking_id=booking_id))
    return PublishResponse(booking_id=booking_id, published=bool(published))


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------
@review_router.post("/{review_id}/response", status_code=201, response_model=ResponseIdResponse)
async def respond_to_review(
    review_id: str,
    body: RespondToReviewRequest,
    x_user_id: str = Header(default=""),
) -> ResponseIdResponse:
    """Post the reviewed party's one-time response."""
    command = RespondToReview(
        review_id=review_id,
        responder_id=_require_user(x_user_id),
        text=body.text,
    )
    response_id = process_with_retry(command)
    return ResponseIdResponse(response_id=response_id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
@review_router.get("", response_model=ReviewListResponse)
async def list_reviews(
    booking_id: str | None = None,
    subject_id: str | None = None,
    status: str | None = None,
    x_user_id: str = Header(default=""),
) -> ReviewListResponse:
    """List review cards for a booking or a reviewed party.

    Published reviews are public. Anything else is returned only to its author.
    """
    filters = {}
    if booking_id:
        filters["booking_id"] = booking_id
    if subject_id:
        filters["subject_id"] = subject_id
    if not filters:
        raise HTTPException(status_code=400, detail="booking_id or subject_id is required")
    if status:
        filters["status"] = status

    cards = review_card.find_cards(viewer_id=x_user_id or None, **filters)
    return ReviewListResponse(
        reviews=[ReviewCardResponse(**review_card.to_payload(card)) for card in cards],
    )


@review_router.get("/ratings/{subject_id}", response_model=SubjectRatingResponse)
async def get_subject_rating(subject_id: str) -> SubjectRatingResponse:
    """Simple average of the published ratings a party has received."""
    repo = current_domain.repository_for(subject_rating.SubjectRating)
    try:
        rating = repo.get(subject_id)
    except ObjectNotFoundError:
        return SubjectRatingResponse(subject_id=subject_id)
    return SubjectRatingResponse(**subject_rating.to_payload(rating))


@review_router.get("/{review_id}/private-notes", response_model=PrivateNotesResponse)
async def get_private_notes(review_id: str, x_user_role: str = Header(default="")) -> PrivateNotesResponse:
    """Administrators only: the guide's private notes, read straight from the aggregate."""
    if x_user_role != "admin":
        raise HTTPException(status_code=403, detail="Private notes are restricted to administrators")

    pair = current_domain.repository_for(ReviewPair).get_by_review_id(review_id)
    review = pair.review(review_id)
    return PrivateNotesResponse(
        review_id=str(review.id),
        booking_id=str(pair.booking_id),
        author_id=str(review.author_id),
        private_notes=review.private_notes,
    )


# ---------------------------------------------------------------------------
# Maintenance — triggered by an external scheduler
# ---------------------------------------------------------------------------
@review_router.post("/maintenance/expire", response_model=SweepResponse)
async def expire_overdue_reviews(body: SweepRequest | None = None) -> SweepResponse:
    """Expire drafts whose review window has closed."""
    as_of = body.as_of if body else None
    expired = current_domain.process(ExpireOverdueReviews(as_of=as_of), asynchronous=False)
    return SweepResponse(processed=expired or 0)


@review_router.post("/maintenance/remind", response_model=SweepResponse)
async def send_review_reminders(body: SweepRequest | None = None) -> SweepResponse:
    """Send the reminders that have come due."""
    as_of = body.as_of if body else None
    sent = current_domain.process(SendReviewReminders(as_of=as_of), asynchronous=False)
    return SweepResponse(processed=sent or 0)
