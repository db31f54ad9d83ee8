"""
Infrastructure-specific decorators, providing cross-cutting concerns like
retry logic for network operations.
"""

import logging
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

from ..application.exceptions import RangeQueryError

logger = logging.getLogger(__name__)

# --- Defaults for Retry Logic ---
# Range queries are retried on the same prefix forever and without pause;
# both can be changed through settings.toml.
_RETRY_WAIT_SECONDS = 0
_RETRY_MAX_ATTEMPTS = None


def _log_before_retry(retry_state):
    """Log the retry attempt with details about the exception and wait time."""
    exception = retry_state.outcome.exception()
    next_attempt_in = retry_state.next_action.sleep
    logger.error(
        f"{exception} - retrying {retry_state.fn.__name__} "
        f"in {next_attempt_in:.2f}s (attempt {retry_state.attempt_number})..."
    )


def retry_on_range_error(
    wait_seconds: float = _RETRY_WAIT_SECONDS,
    max_attempts: Optional[int] = _RETRY_MAX_ATTEMPTS,
):
    """
    Builds a retry decorator for async range queries.

    Only RangeQueryError triggers a retry; anything else, FetchCancelled
    included, propagates on the first raise. With `max_attempts` set, the
    last RangeQueryError is re-raised once the attempts are used up.
    """
    return retry(
        stop=stop_after_attempt(max_attempts) if max_attempts else stop_never,
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception_type(RangeQueryError),
        before_sleep=_log_before_retry,
        reraise=True,
    )

