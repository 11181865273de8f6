"""Pydantic request/response schemas for the Reviews API.

These are separate from Protean commands (anti-corruption pattern).
The API layer is the external contract; commands are internal domain concepts.
Length and range rules live in the domain so they are enforced the same way
for API and event-driven callers; the schemas only check shape.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class OpenReviewsRequest(BaseModel):
    """Optional booking details; omitted fields are fetched from the booking directory."""

    hiker_id: str | None = None
    guide_id: str | None = None
    tour_id: str | None = None
    completed_at: datetime | None = None


class CategoryRatingsSchema(BaseModel):
    expertise: int
    safety: int
    communication: int
    leadership: int
    value: int


class QuickAssessmentSchema(BaseModel):
    fitness_accurate: bool
    well_prepared: bool
    great_companion: bool
    would_guide_again: bool


class SubmitReviewRequest(BaseModel):
    comment: str
    overall_rating: int | None = None
    category_ratings: CategoryRatingsSchema | None = None
    quick_assessment: QuickAssessmentSchema | None = None
    highlight_tags: list[str] | None = None
    private_notes: str | None = None


class RespondToReviewRequest(BaseModel):
    text: str


class SweepRequest(BaseModel):
    as_of: datetime | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class BookingIdResponse(BaseModel):
    booking_id: str


class ReviewStatusResponse(BaseModel):
    review_id: str
    status: str


class ResponseIdResponse(BaseModel):
    response_id: str


class PublishResponse(BaseModel):
    booking_id: str
    published: bool


class SweepResponse(BaseModel):
    processed: int


class ReviewResponseSchema(BaseModel):
    responder_id: str
    text: str
    created_at: datetime | None = None


class ReviewCardResponse(BaseModel):
    review_id: str
    booking_id: str
    tour_id: str | None = None
    review_type: str
    author_id: str
    subject_id: str
    status: str
    is_available: bool = True
    overall_rating: int | None = None
    comment: str | None = None
    category_ratings: dict[str, int] | None = None
    quick_assessment: dict[str, bool] | None = None
    highlight_tags: list[str] = Field(default_factory=list)
    available_at: datetime | None = None
    expires_at: datetime | None = None
    submitted_at: datetime | None = None
    published_at: datetime | None = None
    response: ReviewResponseSchema | None = None


class ReviewListResponse(BaseModel):
    reviews: list[ReviewCardResponse]


class SubjectRatingResponse(BaseModel):
    subject_id: str
    role: str | None = None
    average_rating: float = 0.0
    total_reviews: int = 0
    rating_distribution: dict[str, int] = Field(default_factory=dict)
    category_averages: dict[str, float] = Field(default_factory=dict)


class PrivateNotesResponse(BaseModel):
    review_id: str
    booking_id: str
    author_id: str
    private_notes: str | None = None
