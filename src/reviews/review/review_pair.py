"""ReviewPair aggregate (CQRS) — the core of the mutual review engine.

One ReviewPair exists per completed booking. It holds the two Reviews of the
booking (hiker → guide and guide → hiker) and any Responses attached to them.
Because both Reviews live in one aggregate, the "publish when both are in"
check and the publication itself are a single versioned write: two concurrent
submissions for the same booking cannot both succeed against the same
version, so exactly one of them observes the sibling as submitted and
publishes the pair.

Review state machine:
    DRAFT → SUBMITTED → PUBLISHED
    DRAFT → EXPIRED
    PUBLISHED, EXPIRED → (terminal)

Pair state (derived, used by the sweeps):
    OPEN       at least one review is still a draft
    PUBLISHED  both reviews are public
    CLOSED     no drafts left and the pair never published
"""

import json
import math
from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from reviews.domain import reviews
from reviews.review import policy
from reviews.review.errors import (
    AlreadyResponded,
    AlreadySubmitted,
    Expired,
    IneligibleBooking,
    NotAuthor,
    NotPublished,
    NotSubject,
)
from reviews.review.events import (
    ReviewExpired,
    ReviewPairOpened,
    ReviewPairPublished,
    ReviewReminderSent,
    ReviewResponsePosted,
    ReviewSubmitted,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ReviewType(Enum):
    HIKER_TO_GUIDE = "hiker_to_guide"
    GUIDE_TO_HIKER = "guide_to_hiker"


class ReviewStatus(Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    PUBLISHED = "published"
    EXPIRED = "expired"


class PairState(Enum):
    OPEN = "open"
    PUBLISHED = "published"
    CLOSED = "closed"


CATEGORY_KEYS = ("expertise", "safety", "communication", "leadership", "value")
ASSESSMENT_KEYS = ("fitness_accurate", "well_prepared", "great_companion", "would_guide_again")

COMMENT_BOUNDS = {
    ReviewType.HIKER_TO_GUIDE: (50, 1000),
    ReviewType.GUIDE_TO_HIKER: (30, 500),
}
RESPONSE_BOUNDS = (10, 300)
MAX_HIGHLIGHT_TAGS = 10
MAX_TAG_LENGTH = 30
MAX_PRIVATE_NOTES_LENGTH = 2000


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    ReviewStatus.DRAFT: {ReviewStatus.SUBMITTED, ReviewStatus.EXPIRED},
    ReviewStatus.SUBMITTED: {ReviewStatus.PUBLISHED},
    ReviewStatus.PUBLISHED: set(),
    ReviewStatus.EXPIRED: set(),
}


def _aware(value):
    """Treat naive datetimes (as returned by some providers) as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def derive_overall_rating(category_ratings):
    """Half-up rounded mean of the category ratings."""
    values = [category_ratings[key] for key in CATEGORY_KEYS]
    return math.floor(sum(values) / len(values) + 0.5)


# ---------------------------------------------------------------------------
# Value Objects — one rating payload per review direction
# ---------------------------------------------------------------------------
@reviews.value_object(part_of="ReviewPair")
class CategoryRatings:
    """The hiker's five category scores for a guide."""

    expertise = Integer(required=True)
    safety = Integer(required=True)
    communication = Integer(required=True)
    leadership = Integer(required=True)
    value = Integer(required=True)

    @invariant.post
    def scores_must_be_in_range(self):
        for key in CATEGORY_KEYS:
            score = getattr(self, key)
            if score is not None and (score < 1 or score > 5):
                raise ValidationError({key: ["Category rating must be between 1 and 5"]})

    def as_dict(self):
        return {key: getattr(self, key) for key in CATEGORY_KEYS}


@reviews.value_object(part_of="ReviewPair")
class QuickAssessment:
    """The guide's yes/no assessment of a hiker."""

    fitness_accurate = Boolean(required=True)
    well_prepared = Boolean(required=True)
    great_companion = Boolean(required=True)
    would_guide_again = Boolean(required=True)

    def as_dict(self):
        return {key: getattr(self, key) for key in ASSESSMENT_KEYS}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@reviews.entity(part_of="ReviewPair")
class Review:
    """One direction of the pair. Content is empty until submitted."""

    review_type = String(choices=ReviewType, required=True)
    author_id = Identifier(required=True)
    subject_id = Identifier(required=True)
    status = String(choices=ReviewStatus, default=ReviewStatus.DRAFT.value)

    overall_rating = Integer()
    comment = Text()
    category_ratings = ValueObject(CategoryRatings)
    quick_assessment = ValueObject(QuickAssessment)
    highlight_tags = Text()  # JSON array of strings
    private_notes = Text()  # Admin-only, never projected

    reminders_sent = Integer(default=0)
    last_reminder_at = DateTime()

    created_at = DateTime()
    available_at = DateTime()
    expires_at = DateTime(required=True)
    submitted_at = DateTime()
    published_at = DateTime()

    @property
    def type_(self):
        return ReviewType(self.review_type)

    @property
    def status_(self):
        return ReviewStatus(self.status)

    def is_overdue(self, as_of):
        return _aware(as_of) >= _aware(self.expires_at)

    @property
    def tags(self):
        return json.loads(self.highlight_tags) if self.highlight_tags else []


@reviews.entity(part_of="ReviewPair")
class ReviewResponse:
    """The reviewed party's one-time public answer to a published review."""

    review_id = Identifier(required=True)
    responder_id = Identifier(required=True)
    text = Text(required=True)
    created_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@reviews.aggregate
class ReviewPair:
    """The two reviews of one booking and the responses attached to them."""

    booking_id = Identifier(identifier=True)
    tour_id = Identifier()
    hiker_id = Identifier(required=True)
    guide_id = Identifier(required=True)

    hiker_review_id = Identifier(required=True)
    guide_review_id = Identifier(required=True)
    members = HasMany(Review)
    responses = HasMany(ReviewResponse)

    state = String(choices=PairState, default=PairState.OPEN.value)

    completed_at = DateTime(required=True)
    available_at = DateTime(required=True)
    expires_at = DateTime(required=True)
    published_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def one_review_per_direction(self):
        types = sorted(r.review_type for r in self.members)
        if types != sorted(t.value for t in ReviewType):
            raise ValidationError({"members": ["A review pair holds exactly one review per direction"]})

    @invariant.post
    def rating_payload_matches_direction(self):
        for review in self.members:
            if review.type_ == ReviewType.HIKER_TO_GUIDE and review.quick_assessment is not None:
                raise ValidationError({"quick_assessment": ["Only guide_to_hiker reviews carry a quick assessment"]})
            if review.type_ == ReviewType.GUIDE_TO_HIKER and review.category_ratings is not None:
                raise ValidationError({"category_ratings": ["Only hiker_to_guide reviews carry category ratings"]})

    @invariant.post
    def pair_publishes_together(self):
        published = [r for r in self.members if r.status == ReviewStatus.PUBLISHED.value]
        if not published:
            return
        if len(published) != len(self.members):
            raise ValidationError({"status": ["Both reviews of a pair must be published together"]})
        if any(r.published_at != self.published_at for r in published):
            raise ValidationError({"published_at": ["Both reviews of a pair share one publication time"]})

    @invariant.post
    def at_most_one_response_per_review(self):
        review_ids = [str(r.review_id) for r in self.responses]
        if len(review_ids) != len(set(review_ids)):
            raise ValidationError({"responses": ["A review can have at most one response"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def open(cls, booking_id, hiker_id, guide_id, completed_at, tour_id=None):
        """Create the draft review pair for a completed booking."""
        now = datetime.now(UTC)

        if not guide_id:
            raise IneligibleBooking(f"Booking {booking_id} has no guide assigned")
        if not hiker_id:
            raise IneligibleBooking(f"Booking {booking_id} has no hiker")
        if completed_at is None:
            raise IneligibleBooking(f"Booking {booking_id} has no completion timestamp")
        completed_at = _aware(completed_at)
        if completed_at > now:
            raise IneligibleBooking(f"Booking {booking_id} has not completed yet")
        if str(hiker_id) == str(guide_id):
            raise IneligibleBooking("A guide cannot review their own booking")

        available_at = policy.availability_for(completed_at)
        expires_at = policy.expiry_for(available_at)

        hiker_review = Review(
            review_type=ReviewType.HIKER_TO_GUIDE.value,
            author_id=hiker_id,
            subject_id=guide_id,
            status=ReviewStatus.DRAFT.value,
            reminders_sent=0,
            created_at=now,
            available_at=available_at,
            expires_at=expires_at,
        )
        guide_review = Review(
            review_type=ReviewType.GUIDE_TO_HIKER.value,
            author_id=guide_id,
            subject_id=hiker_id,
            status=ReviewStatus.DRAFT.value,
            reminders_sent=0,
            created_at=now,
            available_at=available_at,
            expires_at=expires_at,
        )

        pair = cls(
            booking_id=booking_id,
            tour_id=tour_id,
            hiker_id=hiker_id,
            guide_id=guide_id,
            hiker_review_id=hiker_review.id,
            guide_review_id=guide_review.id,
            members=[hiker_review, guide_review],
            state=PairState.OPEN.value,
            completed_at=completed_at,
            available_at=available_at,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )

        pair.raise_(
            ReviewPairOpened(
                booking_id=str(booking_id),
                tour_id=str(tour_id) if tour_id else None,
                hiker_id=str(hiker_id),
                guide_id=str(guide_id),
                hiker_review_id=str(hiker_review.id),
                guide_review_id=str(guide_review.id),
                completed_at=completed_at,
                available_at=available_at,
                expires_at=expires_at,
                opened_at=now,
            )
        )

        return pair

    # -------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------
    @property
    def hiker_review(self):
        return self._member_of_type(ReviewType.HIKER_TO_GUIDE)

    @property
    def guide_review(self):
        return self._member_of_type(ReviewType.GUIDE_TO_HIKER)

    def _member_of_type(self, review_type):
        return next(r for r in self.members if r.review_type == review_type.value)

    def review(self, review_id):
        review = next((r for r in self.members if str(r.id) == str(review_id)), None)
        if review is None:
            raise ObjectNotFoundError({"review_id": [f"Review {review_id} does not exist"]})
        return review

    def counterpart_of(self, review):
        return next(r for r in self.members if r.review_type != review.review_type)

    def response_for(self, review_id):
        return next((r for r in self.responses if str(r.review_id) == str(review_id)), None)

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, review, target_status):
        current = ReviewStatus(review.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def _refresh_state(self):
        statuses = {r.status for r in self.members}
        if ReviewStatus.DRAFT.value in statuses:
            self.state = PairState.OPEN.value
        elif statuses == {ReviewStatus.PUBLISHED.value}:
            self.state = PairState.PUBLISHED.value
        else:
            self.state = PairState.CLOSED.value

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def submit_review(
        self,
        review_id,
        author_id,
        comment,
        overall_rating=None,
        category_ratings=None,
        quick_assessment=None,
        highlight_tags=None,
        private_notes=None,
    ):
        """Validate and record one party's review, moving it to SUBMITTED.

        Nothing is written unless every check passes.
        """
        review = self.review(review_id)
        now = datetime.now(UTC)

        if str(author_id) != str(review.author_id):
            raise NotAuthor("Only the author of this review can submit it")
        if review.status_ == ReviewStatus.EXPIRED:
            raise Expired("The review window for this booking has closed")
        if review.status_ != ReviewStatus.DRAFT:
            raise AlreadySubmitted("This review has already been submitted")
        if review.is_overdue(now):
            raise Expired("The review window for this booking has closed")

        comment = self._validated_comment(review.type_, comment)

        if review.type_ == ReviewType.HIKER_TO_GUIDE:
            if quick_assessment is not None:
                raise ValidationError({"quick_assessment": ["Hiker reviews do not take a quick assessment"]})
            if private_notes:
                raise ValidationError({"private_notes": ["Private notes are only available to guides"]})
            ratings = self._validated_category_ratings(category_ratings)
            rating_payload = {"category_ratings": ratings}
            overall = derive_overall_rating(ratings.as_dict())
            tags = self._validated_tags(highlight_tags)
        else:
            if category_ratings is not None:
                raise ValidationError({"category_ratings": ["Guide reviews do not take category ratings"]})
            if highlight_tags:
                raise ValidationError({"highlight_tags": ["Highlight tags are only available to hikers"]})
            rating_payload = {"quick_assessment": self._validated_assessment(quick_assessment)}
            overall = self._validated_overall_rating(overall_rating)
            tags = []
            if private_notes is not None and len(private_notes) > MAX_PRIVATE_NOTES_LENGTH:
                raise ValidationError(
                    {"private_notes": [f"Private notes cannot exceed {MAX_PRIVATE_NOTES_LENGTH} characters"]}
                )

        counterpart = self.counterpart_of(review)
        self._assert_can_transition(review, ReviewStatus.SUBMITTED)

        with atomic_change(self):
            review.comment = comment
            review.overall_rating = overall
            for field_name, value in rating_payload.items():
                setattr(review, field_name, value)
            review.highlight_tags = json.dumps(tags) if tags else None
            if review.type_ == ReviewType.GUIDE_TO_HIKER:
                review.private_notes = private_notes or None
            review.submitted_at = now
            review.status = ReviewStatus.SUBMITTED.value
            self._refresh_state()
            self.updated_at = now

        category_json = None
        assessment_json = None
        if review.category_ratings is not None:
            category_json = json.dumps(review.category_ratings.as_dict())
        if review.quick_assessment is not None:
            assessment_json = json.dumps(review.quick_assessment.as_dict())

        self.raise_(
            ReviewSubmitted(
                booking_id=str(self.booking_id),
                review_id=str(review.id),
                review_type=review.review_type,
                author_id=str(review.author_id),
                subject_id=str(review.subject_id),
                overall_rating=overall,
                comment=comment,
                category_ratings=category_json,
                quick_assessment=assessment_json,
                highlight_tags=review.highlight_tags,
                counterpart_submitted=counterpart.status == ReviewStatus.SUBMITTED.value,
                submitted_at=now,
            )
        )

        return review

    @staticmethod
    def _validated_comment(review_type, comment):
        low, high = COMMENT_BOUNDS[review_type]
        text = (comment or "").strip()
        if not low <= len(text) <= high:
            raise ValidationError({"comment": [f"Comment must be between {low} and {high} characters"]})
        return text

    @staticmethod
    def _validated_category_ratings(category_ratings):
        if not isinstance(category_ratings, dict):
            raise ValidationError({"category_ratings": ["Category ratings are required"]})
        missing = [key for key in CATEGORY_KEYS if key not in category_ratings]
        unknown = sorted(set(category_ratings) - set(CATEGORY_KEYS))
        if missing:
            raise ValidationError({"category_ratings": [f"Missing category ratings: {', '.join(missing)}"]})
        if unknown:
            raise ValidationError({"category_ratings": [f"Unknown categories: {', '.join(unknown)}"]})
        for key in CATEGORY_KEYS:
            value = category_ratings[key]
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError({key: ["Category rating must be a whole number"]})
        return CategoryRatings(**{key: category_ratings[key] for key in CATEGORY_KEYS})

    @staticmethod
    def _validated_assessment(quick_assessment):
        if not isinstance(quick_assessment, dict):
            raise ValidationError({"quick_assessment": ["Quick assessment is required"]})
        missing = [key for key in ASSESSMENT_KEYS if key not in quick_assessment]
        unknown = sorted(set(quick_assessment) - set(ASSESSMENT_KEYS))
        if missing:
            raise ValidationError({"quick_assessment": [f"Missing assessment answers: {', '.join(missing)}"]})
        if unknown:
            raise ValidationError({"quick_assessment": [f"Unknown assessment keys: {', '.join(unknown)}"]})
        for key in ASSESSMENT_KEYS:
            if not isinstance(quick_assessment[key], bool):
                raise ValidationError({key: ["Assessment answers must be true or false"]})
        return QuickAssessment(**{key: quick_assessment[key] for key in ASSESSMENT_KEYS})

    @staticmethod
    def _validated_overall_rating(overall_rating):
        if isinstance(overall_rating, bool) or not isinstance(overall_rating, int):
            raise ValidationError({"overall_rating": ["Overall rating is required"]})
        if overall_rating < 1 or overall_rating > 5:
            raise ValidationError({"overall_rating": ["Overall rating must be between 1 and 5"]})
        return overall_rating

    @staticmethod
    def _validated_tags(highlight_tags):
        if not highlight_tags:
            return []
        tags = []
        for raw in highlight_tags:
            tag = str(raw).strip()
            if not 1 <= len(tag) <= MAX_TAG_LENGTH:
                raise ValidationError({"highlight_tags": [f"Tags must be between 1 and {MAX_TAG_LENGTH} characters"]})
            if tag not in tags:
                tags.append(tag)
        if len(tags) > MAX_HIGHLIGHT_TAGS:
            raise ValidationError({"highlight_tags": [f"At most {MAX_HIGHLIGHT_TAGS} highlight tags are allowed"]})
        return tags

    # -------------------------------------------------------------------
    # Publication
    # -------------------------------------------------------------------
    def try_publish(self):
        """Publish both reviews if both are submitted. Returns True if this call published.

        Already-published pairs and pairs still waiting on a draft (or holding
        an expired review) are left untouched.
        """
        hiker_review = self.hiker_review
        guide_review = self.guide_review
        if hiker_review.status_ != ReviewStatus.SUBMITTED or guide_review.status_ != ReviewStatus.SUBMITTED:
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            for review in (hiker_review, guide_review):
                self._assert_can_transition(review, ReviewStatus.PUBLISHED)
                review.status = ReviewStatus.PUBLISHED.value
                review.published_at = now
            self.published_at = now
            self._refresh_state()
            self.updated_at = now

        self.raise_(
            ReviewPairPublished(
                booking_id=str(self.booking_id),
                hiker_id=str(self.hiker_id),
                guide_id=str(self.guide_id),
                hiker_review_id=str(hiker_review.id),
                guide_review_id=str(guide_review.id),
                guide_rating=hiker_review.overall_rating,
                guide_category_ratings=json.dumps(hiker_review.category_ratings.as_dict()),
                hiker_rating=guide_review.overall_rating,
                published_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Expiration
    # -------------------------------------------------------------------
    def expire_overdue(self, as_of):
        """Move every draft past its deadline to EXPIRED. Returns the expired reviews."""
        overdue = [r for r in self.members if r.status_ == ReviewStatus.DRAFT and r.is_overdue(as_of)]
        if not overdue:
            return []

        now = datetime.now(UTC)
        with atomic_change(self):
            for review in overdue:
                self._assert_can_transition(review, ReviewStatus.EXPIRED)
                review.status = ReviewStatus.EXPIRED.value
            self._refresh_state()
            self.updated_at = now

        for review in overdue:
            self.raise_(
                ReviewExpired(
                    booking_id=str(self.booking_id),
                    review_id=str(review.id),
                    review_type=review.review_type,
                    author_id=str(review.author_id),
                    subject_id=str(review.subject_id),
                    expired_at=now,
                )
            )
        return overdue

    # -------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------
    def send_due_reminders(self, as_of):
        """Record the next due reminder for each draft. Returns how many were sent."""
        as_of = _aware(as_of)
        sent = 0
        for review in self.members:
            if review.status_ != ReviewStatus.DRAFT or review.is_overdue(as_of):
                continue
            number = review.reminders_sent or 0
            if number >= policy.MAX_REMINDERS:
                continue
            if as_of < _aware(review.available_at) + policy.REMINDER_OFFSETS[number]:
                continue

            kind = policy.REMINDER_KINDS[number]
            review.reminders_sent = number + 1
            review.last_reminder_at = as_of
            self.raise_(
                ReviewReminderSent(
                    booking_id=str(self.booking_id),
                    review_id=str(review.id),
                    author_id=str(review.author_id),
                    reminder_number=number + 1,
                    reminder_kind=kind,
                    expires_at=review.expires_at,
                    sent_at=as_of,
                )
            )
            sent += 1

        if sent:
            self.updated_at = datetime.now(UTC)
        return sent

    # -------------------------------------------------------------------
    # Response
    # -------------------------------------------------------------------
    def respond(self, review_id, responder_id, text):
        """Attach the reviewed party's single, permanent response."""
        review = self.review(review_id)

        if review.status_ != ReviewStatus.PUBLISHED:
            raise NotPublished("Responses are only possible once the review is published")
        if str(responder_id) != str(review.subject_id):
            raise NotSubject("Only the reviewed party can respond to this review")
        if self.response_for(review.id) is not None:
            raise AlreadyResponded("This review already has a response")

        low, high = RESPONSE_BOUNDS
        body = (text or "").strip()
        if not low <= len(body) <= high:
            raise ValidationError({"text": [f"Response must be between {low} and {high} characters"]})

        now = datetime.now(UTC)
        response = ReviewResponse(
            review_id=review.id,
            responder_id=responder_id,
            text=body,
            created_at=now,
        )
        self.add_responses(response)
        self.updated_at = now

        self.raise_(
            ReviewResponsePosted(
                booking_id=str(self.booking_id),
                review_id=str(review.id),
                responder_id=str(responder_id),
                author_id=str(review.author_id),
                text=body,
                responded_at=now,
            )
        )
        return response
