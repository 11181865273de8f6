"""Retry-on-conflict wrapper for review commands.

Every write goes through a version-checked save of the ReviewPair aggregate.
When two commands race on the same pair, the loser fails with
``ExpectedVersionError``; re-processing the command reloads the pair at its
new version and applies the change again.
"""

from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from reviews.review import policy
from reviews.utils.logging import get_logger

logger = get_logger(__name__)


def process_with_retry(command, max_attempts: int | None = None):
    """Process ``command`` synchronously, retrying on version conflicts.

    Re-raises the last ``ExpectedVersionError`` once attempts are exhausted.
    """
    attempts = max_attempts or policy.COMMAND_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        try:
            return current_domain.process(command, asynchronous=False)
        except ExpectedVersionError:
            if attempt >= attempts:
                logger.warning(
                    "Giving up after repeated version conflicts",
                    command=command.__class__.__name__,
                    attempts=attempt,
                )
                raise
            logger.info(
                "Version conflict, retrying command",
                command=command.__class__.__name__,
                attempt=attempt,
            )
