"""Business-rule rejections raised by the review engine.

All of them are caller errors: they are returned synchronously with a 4xx
status and are not retryable without the caller changing its input. They
subclass Protean's ``ValidationError`` so that any layer already handling
validation failures treats them the same way.
"""

from protean.exceptions import ValidationError


class ReviewRuleViolation(ValidationError):
    """Base class for review business-rule rejections."""

    code = "review_rule_violation"
    status_code = 400
    field = "review"

    def __init__(self, message: str):
        super().__init__({self.field: [message]})
        self.message = message


class IneligibleBooking(ReviewRuleViolation):
    code = "ineligible_booking"
    status_code = 422
    field = "booking"


class NotAuthor(ReviewRuleViolation):
    code = "not_author"
    status_code = 403
    field = "author_id"


class NotSubject(ReviewRuleViolation):
    code = "not_subject"
    status_code = 403
    field = "responder_id"


class AlreadySubmitted(ReviewRuleViolation):
    code = "already_submitted"
    status_code = 409
    field = "status"


class AlreadyResponded(ReviewRuleViolation):
    code = "already_responded"
    status_code = 409
    field = "response"


class NotPublished(ReviewRuleViolation):
    code = "not_published"
    status_code = 409
    field = "status"


class Expired(ReviewRuleViolation):
    code = "expired"
    status_code = 410
    field = "status"
