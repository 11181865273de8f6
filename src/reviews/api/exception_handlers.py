"""HTTP mapping for review rule violations and exhausted version conflicts.

Field-level ``ValidationError`` and ``ObjectNotFoundError`` keep Protean's own
FastAPI handlers (400 and 404). Starlette resolves handlers along the
exception's MRO, so the more specific ``ReviewRuleViolation`` handler wins over
the generic ``ValidationError`` one.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError
from protean.integrations.fastapi import register_exception_handlers

from reviews.review.errors import ReviewRuleViolation
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


async def review_rule_violation_handler(request: Request, exc: ReviewRuleViolation) -> JSONResponse:
    logger.info(
        "Review request rejected",
        path=request.url.path,
        code=exc.code,
        reason=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.messages, "code": exc.code},
    )


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content={"error": "The review was modified concurrently, please retry", "code": "conflict"},
        headers={"Retry-After": "1"},
    )


def register_review_exception_handlers(app: FastAPI) -> None:
    """Install Protean's handlers plus the review-specific ones."""
    register_exception_handlers(app)
    app.add_exception_handler(ReviewRuleViolation, review_rule_violation_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
