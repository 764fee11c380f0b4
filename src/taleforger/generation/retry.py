"""Bounded retry with exponential backoff for text generation calls.

A generation call is attempted up to ``RetryPolicy.max_attempts`` times.
Between a failed attempt ``i`` and the next one the loop waits
``base_delay * 2**i`` seconds (1, 2, 4, ... with the default policy).
Every failure is treated as retriable: an exception raised by the call,
an attempt that outlives ``attempt_timeout``, and a response that carries
no text all count the same way. Only exhaustion is surfaced to the caller.

Example:
    ```python
    text = await generate_with_retry(
        client.generate,
        GenerationRequest(system_instruction=system, user_prompt=prompt),
    )
    ```
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("taleforger.generation")

NO_TEXT_CONTENT_MESSAGE = "API returned no text content."


# =============================================================================
# Exceptions
# =============================================================================


class GenerationError(Exception):
    """Base exception for story generation errors."""

    pass


class EmptyGenerationError(GenerationError):
    """Raised for an attempt whose response carried no text."""

    def __init__(self, message: str = NO_TEXT_CONTENT_MESSAGE) -> None:
        super().__init__(message)


class AttemptTimeoutError(GenerationError):
    """Raised when a single attempt exceeds the policy's attempt timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Attempt timed out after {timeout:g} seconds.")
        self.timeout = timeout


class GenerationExhaustedError(GenerationError):
    """Terminal error raised once every attempt has failed.

    Args:
        attempts: Number of attempts made
        last_error: The failure recorded on the final attempt
    """

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Failed to generate content after {attempts} attempts. "
            f"Last error: {_describe(last_error)}"
        )


# =============================================================================
# Value types
# =============================================================================


@dataclass(frozen=True)
class GenerationRequest:
    """One story generation request, shared by every attempt."""

    system_instruction: str
    user_prompt: str
    temperature: float = 0.8
    max_output_tokens: int = 5000


class AttemptOutcome(str, Enum):
    """Result of a single attempt."""

    SUCCESS = "success"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass
class GenerationAttempt:
    """Record of one attempt within a retry loop."""

    index: int
    outcome: AttemptOutcome
    text: str | None = None
    error: BaseException | None = None

    @property
    def number(self) -> int:
        """1-based attempt number, as shown in logs."""
        return self.index + 1


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration.

    Attributes:
        max_attempts: Total number of attempts, including the first
        base_delay: Delay in seconds after the first failure; doubles after each
        attempt_timeout: Per-attempt deadline in seconds, or None for no deadline
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    attempt_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if self.attempt_timeout is not None and self.attempt_timeout <= 0:
            raise ValueError("attempt_timeout must be positive")

    def delay_for(self, index: int) -> float:
        """Backoff to wait after the failed attempt at ``index``."""
        return self.base_delay * (2**index)


GenerationCall = Callable[[GenerationRequest], Awaitable[str | None]]
Sleep = Callable[[float], Awaitable[None]]
AttemptHook = Callable[[GenerationAttempt], None]


# =============================================================================
# Retry loop
# =============================================================================


def _describe(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


async def _attempt(
    call: GenerationCall,
    request: GenerationRequest,
    timeout: float | None,
) -> str:
    if timeout is None:
        text = await call(request)
    else:
        try:
            async with asyncio.timeout(timeout) as deadline:
                text = await call(request)
        except TimeoutError as e:
            # A TimeoutError raised by the call itself keeps its own message
            if not deadline.expired():
                raise
            raise AttemptTimeoutError(timeout) from e

    if not text:
        raise EmptyGenerationError()
    return text


async def generate_with_retry(
    call: GenerationCall,
    request: GenerationRequest,
    policy: RetryPolicy | None = None,
    *,
    sleep: Sleep = asyncio.sleep,
    on_attempt: AttemptHook | None = None,
) -> str:
    """Run ``call`` until it yields text or the policy's attempts run out.

    Attempts run strictly one after another. Cancelling the awaiting task
    cancels the loop, including a pending backoff.

    Args:
        call: Async callable performing one generation attempt
        request: Prompts and generation parameters passed to every attempt
        policy: Retry configuration (defaults to 3 attempts, 1 second base delay)
        sleep: Awaitable used for backoff delays
        on_attempt: Optional callback receiving each attempt record

    Returns:
        Text from the first attempt that produced any

    Raises:
        GenerationExhaustedError: If every attempt failed
    """
    policy = policy or RetryPolicy()
    index = 0

    while True:
        logger.info(f"Attempting story generation (attempt {index + 1})")
        try:
            text = await _attempt(call, request, policy.attempt_timeout)
        except Exception as e:
            is_final = index == policy.max_attempts - 1
            record = GenerationAttempt(
                index=index,
                outcome=AttemptOutcome.EXHAUSTED if is_final else AttemptOutcome.FAILED,
                error=e,
            )
            logger.warning(
                f"Generation failed on attempt {record.number}: {_describe(e)}"
            )
            if on_attempt:
                on_attempt(record)
            if is_final:
                error = GenerationExhaustedError(policy.max_attempts, e)
                logger.error(str(error))
                raise error from e
            await sleep(policy.delay_for(index))
            index += 1
            continue

        if on_attempt:
            on_attempt(GenerationAttempt(index=index, outcome=AttemptOutcome.SUCCESS, text=text))
        return text
