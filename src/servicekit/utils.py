"""
=============================================================================
UTILITY FUNCTIONS
=============================================================================

Small helpers shared by the server, the CLI and applications built on
the template:

    current_timestamp()         Seconds since the Unix epoch
    format_timestamp()          ISO-8601 rendering of a timestamp
    validate_email()            Cheap sanity check for an address
    sanitize_string()           Strip markup-ish characters before logging
    generate_random_string()    Random alphanumeric token
    retry_with_backoff()        Retry a callable with exponential backoff
    retry_with_backoff_async()  Same, for asyncio code

=============================================================================
RETRY WITH EXPONENTIAL BACKOFF
=============================================================================

    attempt 1 ──fail──► sleep(d) ──► attempt 2 ──fail──► sleep(2d) ──► ...
                                                             │
                                              success ◄──────┘

    - Total attempts = max_retries + 1
    - Delay doubles after every failure (no cap, no jitter)
    - The last error is re-raised once attempts run out

The blocking variant sleeps in the calling thread. In the threaded server
every connection has its own thread, so only that connection waits.

=============================================================================
"""

import asyncio
import inspect
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

_RANDOM_ALPHABET = string.ascii_letters + string.digits
_SANITIZE_EXTRA = ".-_@"


def current_timestamp() -> int:
    """Get current timestamp in seconds since Unix epoch."""
    return int(time.time())


def format_timestamp(timestamp: int) -> str:
    """
    Format timestamp as an ISO 8601 string in UTC.

    >>> format_timestamp(0)
    '1970-01-01T00:00:00Z'
    """
    try:
        dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return "invalid-timestamp"
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def validate_email(email: str) -> bool:
    """
    Validate email format (basic validation).

    Requires an "@" with something on both sides, a "." somewhere, and
    more than five characters in total. Not RFC 5322.
    """
    if len(email) <= 5 or "." not in email:
        return False
    local, sep, domain = email.partition("@")
    return bool(sep and local and domain)


def sanitize_string(text: str) -> str:
    """Keep only alphanumerics, whitespace and . - _ @"""
    return "".join(
        c for c in text
        if c.isalnum() or c.isspace() or c in _SANITIZE_EXTRA
    )


def generate_random_string(length: int) -> str:
    """Generate a random alphanumeric string of the given length."""
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(length))


def retry_with_backoff(
    operation: Callable[[], T],
    max_retries: int,
    initial_delay: float,
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """
    Call operation until it succeeds or attempts run out.

    Args:
        operation: Zero-argument callable. Any exception counts as failure.
        max_retries: Retries after the first attempt.
        initial_delay: Seconds to wait before the first retry.
        sleep: Sleep function (injectable for tests).

    Returns:
        The first successful result.

    Raises:
        The exception from the last attempt.
    """
    delay = initial_delay

    for attempt in range(max_retries + 1):
        try:
            result = operation()
        except Exception as e:
            if attempt == max_retries:
                logger.error(f"Operation failed after {max_retries} retries: {e!r}")
                raise
            logger.warning(
                f"Operation failed (attempt {attempt + 1}), "
                f"retrying in {delay}s: {e!r}"
            )
            sleep(delay)
            delay *= 2
            continue

        if attempt > 0:
            logger.info(f"Operation succeeded after {attempt} retries")
        return result

    raise AssertionError("unreachable")


async def retry_with_backoff_async(
    operation: Callable[[], Any],
    max_retries: int,
    initial_delay: float,
) -> Any:
    """
    Asyncio variant of retry_with_backoff.

    The operation may be a plain callable or return an awaitable. Delays
    use asyncio.sleep, so other tasks on the loop keep running.
    """
    delay = initial_delay

    for attempt in range(max_retries + 1):
        try:
            result = operation()
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            if attempt == max_retries:
                logger.error(f"Operation failed after {max_retries} retries: {e!r}")
                raise
            logger.warning(
                f"Operation failed (attempt {attempt + 1}), "
                f"retrying in {delay}s: {e!r}"
            )
            await asyncio.sleep(delay)
            delay *= 2
            continue

        if attempt > 0:
            logger.info(f"Operation succeeded after {attempt} retries")
        return result

    raise AssertionError("unreachable")
