#!/usr/bin/env python3
# CUI // SP-CTI
"""ocidbtools Resilience — Bounded Polling.

OCI performs lifecycle transitions asynchronously: an accepted delete (HTTP
202) does not mean the connection is DELETED yet. poll_until() re-runs a
fetch with exponential backoff until a predicate holds or a deadline passes.

Usage:
    from ocidbtools.resilience.polling import poll_until

    state = poll_until(
        lambda: client.get(ocid).data.lifecycle_state,
        lambda s: s == "DELETED",
        max_wait_seconds=300,
        resource_id=ocid,
    )
"""

import logging
import random
import time
from typing import Callable, Optional, TypeVar

from ocidbtools.resilience.errors import WaitTimeoutError

logger = logging.getLogger("ocidbtools.resilience.polling")

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
) -> float:
    """Exponential backoff with full jitter.

    Algorithm: min(cap, base * 2^attempt) * random(0.5, 1.0)
    """
    delay = min(max_delay, base_delay * (2 ** attempt))
    return delay * random.uniform(0.5, 1.0)


def poll_until(
    fetch: Callable[[], T],
    is_done: Callable[[T], bool],
    max_wait_seconds: float = 300.0,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    resource_id: str = "",
    sleep: Optional[Callable[[float], None]] = None,
    clock: Optional[Callable[[], float]] = None,
) -> T:
    """Call fetch() until is_done(result) is true, then return that result.

    Args:
        fetch: Zero-argument callable; exceptions it raises propagate.
        is_done: Predicate over the fetch result.
        max_wait_seconds: Deadline measured from the first fetch.
        base_delay: Base delay in seconds for exponential backoff.
        max_delay: Maximum delay cap in seconds.
        resource_id: Identifier reported in the timeout error.
        sleep: Sleep function (default time.sleep).
        clock: Monotonic clock (default time.monotonic).

    Raises:
        WaitTimeoutError: is_done() never held before the deadline.
    """
    sleep = sleep or time.sleep
    clock = clock or time.monotonic
    start = clock()
    attempt = 0

    while True:
        result = fetch()
        if is_done(result):
            return result

        waited = clock() - start
        remaining = max_wait_seconds - waited
        if remaining <= 0:
            raise WaitTimeoutError(
                f"Timed out after {waited:.1f}s waiting on {resource_id or 'resource'} "
                f"(last observed: {result})",
                resource_id=resource_id,
                last_state=str(result),
                waited=waited,
            )

        delay = min(backoff_delay(attempt, base_delay, max_delay), remaining)
        logger.debug("Poll %d for %s: observed %s — waiting %.1fs",
                     attempt + 1, resource_id, result, delay)
        sleep(delay)
        attempt += 1
