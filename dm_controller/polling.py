"""
Bounded polling helpers used by the container wait primitives.

A wait samples a predicate at a fixed interval until it returns the expected
value or the sample budget is spent. Running out of time is not an error:
the caller gets the final outcome and decides what to do with it.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable


def sample_budget(max_wait_seconds: float, poll_interval: float) -> int:
    """Number of sleeps allowed within max_wait_seconds (100 for 10s at 0.1s)."""
    return max(0, int(round(max_wait_seconds / poll_interval)))


def wait_until(
    condition: Callable[[], bool],
    expected: bool,
    label: str,
    max_wait_seconds: float,
    poll_interval: float,
    logger: logging.Logger,
    log_level: int = logging.DEBUG,
) -> bool:
    """
    Block until condition() == expected or the budget runs out.

    Args:
        condition: Predicate to sample
        expected: Value that ends the wait
        label: Name used when logging the outcome
        max_wait_seconds: Upper bound on time spent sleeping
        poll_interval: Seconds between samples
        logger: Logger receiving the outcome
        log_level: Level of the outcome message

    Returns:
        True if the condition reached the expected value, False on timeout
    """
    budget = sample_budget(max_wait_seconds, poll_interval)
    count = 0
    satisfied = condition() == expected

    while not satisfied and count < budget:
        time.sleep(poll_interval)
        count += 1
        satisfied = condition() == expected

    logger.log(
        log_level,
        f"Wait {label}={expected}: {'satisfied' if satisfied else 'timed out'} "
        f"after {count} samples",
    )
    return satisfied


async def wait_until_async(
    condition: Callable[[], Awaitable[bool]],
    expected: bool,
    label: str,
    max_wait_seconds: float,
    poll_interval: float,
    logger: logging.Logger,
    log_level: int = logging.DEBUG,
) -> bool:
    """Async variant of wait_until(); sleeps with asyncio.sleep."""
    budget = sample_budget(max_wait_seconds, poll_interval)
    count = 0
    satisfied = await condition() == expected

    while not satisfied and count < budget:
        await asyncio.sleep(poll_interval)
        count += 1
        satisfied = await condition() == expected

    logger.log(
        log_level,
        f"Wait {label}={expected}: {'satisfied' if satisfied else 'timed out'} "
        f"after {count} samples",
    )
    return satisfied
