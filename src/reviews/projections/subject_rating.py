"""SubjectRating — simple published-rating averages per reviewed party."""

import json

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from reviews.domain import reviews
from reviews.review.events import ReviewPairPublished
from reviews.review.review_pair import CATEGORY_KEYS, ReviewPair


@reviews.projection
class SubjectRating:
    subject_id = Identifier(identifier=True, required=True)
    role = String(max_length=10)  # "guide" or "hiker"
    average_rating = Float(default=0.0)
    total_reviews = Integer(default=0)
    rating_sum = Integer(default=0)
    rating_distribution = Text()  # JSON: {"1": 0, ..., "5": 0}
    category_sums = Text()  # JSON: {"safety": 0, ...}, guides only
    updated_at = DateTime()


def _default_distribution():
    return json.dumps({"1": 0, "2": 0, "3": 0, "4": 0, "5": 0})


def category_averages(rating):
    if not rating.category_sums or not rating.total_reviews:
        return {}
    sums = json.loads(rating.category_sums)
    return {key: round(sums[key] / rating.total_reviews, 2) for key in CATEGORY_KEYS if key in sums}


def to_payload(rating):
    return {
        "subject_id": str(rating.subject_id),
        "role": rating.role,
        "average_rating": rating.average_rating,
        "total_reviews": rating.total_reviews,
        "rating_distribution": json.loads(rating.rating_distribution or _default_distribution()),
        "category_averages": category_averages(rating),
    }


def _record(subject_id, role, rating_value, published_at, categories=None):
    repo = current_domain.repository_for(SubjectRating)
    try:
        rating = repo.get(subject_id)
    except ObjectNotFoundError:
        rating = SubjectRating(
            subject_id=subject_id,
            role=role,
            rating_distribution=_default_distribution(),
        )

    distribution = json.loads(rating.rating_distribution or _default_distribution())
    key = str(rating_value)
    distribution[key] = distribution.get(key, 0) + 1

    rating.total_reviews = rating.total_reviews + 1
    rating.rating_sum = rating.rating_sum + rating_value
    rating.average_rating = round(rating.rating_sum / rating.total_reviews, 2)
    rating.rating_distribution = json.dumps(distribution)

    if categories:
        sums = json.loads(rating.category_sums) if rating.category_sums else {}
        for category in CATEGORY_KEYS:
            sums[category] = sums.get(category, 0) + int(categories.get(category, 0))
        rating.category_sums = json.dumps(sums)

    rating.updated_at = published_at
    repo.add(rating)


@reviews.projector(projector_for=SubjectRating, aggregates=[ReviewPair])
class SubjectRatingProjector:
    @on(ReviewPairPublished)
    def on_review_pair_published(self, event):
        categories = json.loads(event.guide_category_ratings) if event.guide_category_ratings else None
        _record(event.guide_id, "guide", event.guide_rating, event.published_at, categories)
        _record(event.hiker_id, "hiker", event.hiker_rating, event.published_at)
