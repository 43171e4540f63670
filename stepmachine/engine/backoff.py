"""
Exponential backoff for transient step failures.
"""

from typing import Any, Callable, Optional
import logging
import time

from stepmachine.config import settings


logger = logging.getLogger(__name__)


def exponential_backoff(
    operation: Callable[[Any], None],
    data: Any,
    retries: Optional[int] = None,
    base_delay: Optional[float] = None,
) -> None:
    """
    Call ``operation(data)`` until it succeeds or the retry budget runs out.

    The delay before each retry starts at ``base_delay`` seconds and
    doubles after every failed attempt, without jitter or upper bound.
    Once ``retries`` attempts have failed, a last call is made and its
    exception, if any, propagates to the caller.

    Args:
        operation: Callable receiving the shared data, raising on failure
        data: The shared data
        retries: Retry budget (defaults to settings.DEFAULT_RETRIES)
        base_delay: First delay in seconds (defaults to settings.BACKOFF_BASE_DELAY)

    Raises:
        Exception: Whatever the final call raised
    """
    max_retries = settings.DEFAULT_RETRIES if retries is None else retries
    delay = settings.BACKOFF_BASE_DELAY if base_delay is None else base_delay

    if max_retries > settings.MAX_RETRIES:
        logger.warning(
            f"Retry budget {max_retries} exceeds the usual maximum of "
            f"{settings.MAX_RETRIES}, honouring it anyway"
        )

    attempt = 0
    while attempt < max_retries:
        try:
            operation(data)
            return
        except Exception as e:
            attempt += 1
            logger.info(
                f"Operation failed ({e}), retrying in {delay}s "
                f"(attempt {attempt}/{max_retries})"
            )
            time.sleep(delay)
            delay *= 2

    operation(data)
