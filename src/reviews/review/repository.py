"""Repository for the ReviewPair aggregate."""

from protean.exceptions import ObjectNotFoundError

from reviews.domain import reviews
from reviews.review.review_pair import PairState, ReviewPair


@reviews.repository(part_of=ReviewPair)
class ReviewPairRepository:
    """Adds lookups by review id and by pair state to the standard CRUD operations."""

    def get_by_review_id(self, review_id) -> ReviewPair:
        """Load the pair that holds the given review."""
        for field_name in ("hiker_review_id", "guide_review_id"):
            result = self._dao.query.filter(**{field_name: str(review_id)}).all()
            if result.items:
                return result.first
        raise ObjectNotFoundError({"review_id": [f"Review {review_id} does not exist"]})

    def find_open(self) -> list[ReviewPair]:
        """Pairs that still hold at least one draft review."""
        return self._dao.query.filter(state=PairState.OPEN.value).all().items
