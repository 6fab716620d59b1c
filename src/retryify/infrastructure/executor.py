"""Retry execution loop built on tenacity.

One call to ``execute`` runs one invocation to completion: it makes the first
attempt, then keeps retrying with exponential backoff until the call
succeeds, the retry budget is spent, or the predicate rejects a failure.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_exponential,
)

from retryify.domain.config.options import RetryOptions
from retryify.domain.models.invocation import BoundInvocation

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


def backoff_delay(options: RetryOptions, attempts: int) -> float:
    """Milliseconds to wait after ``attempts`` retries have already been taken."""
    try:
        return options.timeout * options.factor ** attempts
    except OverflowError:
        return float("inf")


def format_delay(delay: float) -> str:
    if float(delay).is_integer():
        return str(int(delay))
    return str(delay)


def retry_message(name: str, delay: float, attempts: int) -> str:
    return f"retrying function {name} in {format_delay(delay)} ms : attempts: {attempts}"


def _retry_condition(options: RetryOptions) -> Callable[[RetryCallState], bool]:
    """Decide whether the attempt that just finished is followed by another."""

    def _should_retry(retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        # attempt_number counts the attempt that just failed, so it equals
        # the number of retries this attempt would consume
        if retry_state.attempt_number > options.retries:
            return False
        exception = outcome.exception()
        # cancellation and interpreter exits are never retried
        if not isinstance(exception, Exception):
            return False
        return bool(options.should_retry(exception))

    return _should_retry


def _announce_retry(options: RetryOptions, invocation: BoundInvocation) -> Callable[[RetryCallState], None]:
    def _before_sleep(retry_state: RetryCallState) -> None:
        attempts = retry_state.attempt_number
        delay = backoff_delay(options, attempts - 1)
        message = retry_message(invocation.name, delay, attempts)
        if retry_state.outcome is not None:
            logger.debug(f"{message} ({retry_state.outcome.exception()!r})")
        options.log(message)

    return _before_sleep


def create_retrying(options: RetryOptions, invocation: BoundInvocation, sleep: Sleep = asyncio.sleep) -> AsyncRetrying:
    """Create the tenacity controller for one invocation.

    Args:
        options: Retry options
        invocation: The call being retried, used for log messages
        sleep: Coroutine function suspending for a number of seconds

    Returns:
        AsyncRetrying instance that re-raises the last failure unchanged
    """
    # timeout * factor ^ (attempt_number - 1), converted from ms to seconds
    wait = wait_exponential(
        multiplier=options.timeout / 1000.0,
        exp_base=options.factor,
        min=0,
    )

    return AsyncRetrying(
        stop=stop_after_attempt(options.retries + 1),
        wait=wait,
        retry=_retry_condition(options),
        before_sleep=_announce_retry(options, invocation),
        sleep=sleep,
        reraise=True,
    )


async def execute(options: RetryOptions, invocation: BoundInvocation, sleep: Sleep = asyncio.sleep) -> Any:
    """Run ``invocation`` until it succeeds or fails for good.

    Args:
        options: Retry options
        invocation: Function, receiver and arguments replayed on every attempt
        sleep: Coroutine function suspending for a number of seconds

    Returns:
        The value returned (or awaited) from the first successful attempt

    Raises:
        Exception: The failure of the last attempt, unchanged
    """
    if options.initial_delay > 0:
        await sleep(options.initial_delay / 1000.0)

    try:
        async for attempt in create_retrying(options, invocation, sleep):
            with attempt:
                result = invocation.invoke()
                if inspect.isawaitable(result):
                    result = await result
    except Exception as e:
        logger.debug(f"function {invocation.name} failed: {e!r}")
        raise
    return result
