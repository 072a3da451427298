"""Retry logic for LLM and network calls.

Two layers:

* ``with_retry`` re-invokes any fallible callable with exponential backoff.
  It is used for transport failures (LLM API errors, network fetches).
* ``generate_with_retry`` re-prompts the model when its output fails JSON
  parsing or schema validation, with each generation call wrapped in
  ``with_retry``.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from llm_synthesis.adapter import BaseLLMAdapter
from llm_synthesis.validator import LLMOutputValidationError, validate_llm_output

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_RETRYABLE_STAGES = frozenset({"json_parse", "schema"})


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters for ``with_retry``.

    Attributes:
        max_retries: Total number of invocations before giving up.
        base_delay: Delay in seconds before the first retry.
        max_delay: Upper bound for any single delay, in seconds.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0


def compute_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Return ``min(base_delay * 2**attempt, max_delay)`` for a zero-based attempt."""
    return min(base_delay * (2 ** attempt), max_delay)


def with_retry(
    operation: Callable[[], T],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Invoke ``operation`` until it succeeds or attempts run out.

    Args:
        operation: Zero-argument callable to invoke.
        max_retries: Total number of invocations. Must be at least 1.
        base_delay: Seconds to wait after the first failure.
        max_delay: Cap on any single wait, in seconds.
        sleep: Sleep function, injectable for tests.

    Returns:
        Whatever ``operation`` returns on its first successful invocation.

    Raises:
        ValueError: If ``max_retries`` is below 1.
        Exception: The exception raised by the final failed invocation,
            unchanged.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    for attempt in range(max_retries):
        try:
            return operation()
        except Exception as exc:
            if attempt + 1 >= max_retries:
                raise
            delay = compute_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Retry attempt %d/%d failed, next delay %.2fs: %s",
                attempt + 1,
                max_retries,
                delay,
                exc,
            )
            sleep(delay)

    raise AssertionError("unreachable")


class LLMRetryExhaustedError(Exception):
    """Raised when all retry attempts fail validation.

    Attributes:
        attempts: Total number of attempts made (initial + retries).
        last_error: The validation error from the final attempt.
        history: Validation errors from every failed attempt.
    """

    def __init__(
        self,
        attempts: int,
        last_error: LLMOutputValidationError,
        history: List[LLMOutputValidationError],
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        self.history = history
        super().__init__(
            f"LLM output validation failed after {attempts} attempt(s). "
            f"Last error: {last_error}"
        )


def generate_with_retry(
    adapter: BaseLLMAdapter,
    prompt: str,
    output_model: Type[M],
    *,
    model: Optional[str] = None,
    max_retries: int = 2,
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> M:
    """Generate structured LLM output with retry on formatting errors.

    Each ``adapter.generate()`` call goes through ``with_retry`` so transport
    failures back off and re-raise unchanged once exhausted. If the response
    fails JSON parsing or schema validation, the prompt is re-sent up to
    ``max_retries`` additional times.

    Args:
        adapter: An LLM adapter implementing ``generate(prompt, model)``.
        prompt: The fully formatted prompt string.
        output_model: Pydantic model the response must validate against.
        model: Optional model alias or identifier passed to the adapter.
        max_retries: Maximum number of *additional* attempts after the
            first formatting failure. Total attempts = 1 + max_retries.
        policy: Backoff policy for transport failures.
        sleep: Sleep function, injectable for tests.

    Returns:
        A validated ``output_model`` instance.

    Raises:
        LLMOutputValidationError: If a non-retryable validation error occurs.
        LLMRetryExhaustedError: If all attempts fail with retryable errors.
    """
    policy = policy or RetryPolicy()
    errors: List[LLMOutputValidationError] = []
    total_attempts = 1 + max_retries

    for attempt in range(1, total_attempts + 1):
        raw = with_retry(
            lambda: adapter.generate(prompt, model=model),
            max_retries=policy.max_retries,
            base_delay=policy.base_delay,
            max_delay=policy.max_delay,
            sleep=sleep,
        )

        try:
            result = validate_llm_output(raw, output_model)
            if attempt > 1:
                logger.info(
                    "LLM output validated on attempt %d/%d",
                    attempt,
                    total_attempts,
                )
            return result

        except LLMOutputValidationError as exc:
            if exc.stage not in _RETRYABLE_STAGES:
                raise

            errors.append(exc)
            logger.warning(
                "Attempt %d/%d failed at stage '%s': %s",
                attempt,
                total_attempts,
                exc.stage,
                "; ".join(exc.errors),
            )

    raise LLMRetryExhaustedError(
        attempts=total_attempts,
        last_error=errors[-1],
        history=errors,
    )
