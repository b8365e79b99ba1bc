"""Exceptions and retry handling for voice-scribe.

Only the network stages (Whisper transcription, grammar correction) are
retried. Problems the user has to fix, such as an unsupported recording,
a missing API key or a bad user id, fail on the first attempt.
"""

from __future__ import annotations

import functools
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, TypeVar

from voice_scribe.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ErrorCategory(str, Enum):
    """Kind of failure, shown as a prefix in CLI error output."""

    TRANSIENT = "transient"  # Network blip or timeout
    RATE_LIMIT = "rate_limit"  # Rate limit or quota
    VALIDATION = "validation"  # Bad input
    CONFIGURATION = "configuration"  # Missing or rejected API key
    RESOURCE = "resource"  # Missing or unreadable file
    EXTERNAL = "external"  # Provider reported an error
    INTERNAL = "internal"


def _describe_context(context: dict) -> str:
    return ", ".join(f"{k}={v}" for k, v in context.items())


class VoiceScribeError(Exception):
    """Base class for errors raised by voice-scribe.

    Attributes:
        message: Text shown to the user
        context: Extra details such as service, file or user id
        recoverable: Whether trying again later may succeed
    """

    category: ErrorCategory = ErrorCategory.INTERNAL
    recoverable_by_default: bool = False

    def __init__(
        self,
        message: str,
        context: dict | None = None,
        recoverable: bool | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})
        if recoverable is None:
            recoverable = self.recoverable_by_default
        self.recoverable = recoverable

    def __str__(self) -> str:
        if not self.context:
            return self.message
        return f"{self.message} ({_describe_context(self.context)})"


class TransientError(VoiceScribeError):
    """Network failure that usually goes away on its own."""

    category = ErrorCategory.TRANSIENT
    recoverable_by_default = True


class TimeoutExceededError(TransientError):
    """A network stage did not finish within its timeout."""

    def __init__(self, message: str, timeout: float, context: dict | None = None):
        super().__init__(message, context)
        self.timeout = timeout


class RateLimitError(VoiceScribeError):
    """Provider rate limit or quota was hit.

    Attributes:
        retry_after: Seconds the provider asked us to wait
    """

    category = ErrorCategory.RATE_LIMIT
    recoverable_by_default = True

    def __init__(
        self,
        message: str,
        retry_after: float = 60.0,
        context: dict | None = None,
    ):
        super().__init__(message, context)
        self.retry_after = retry_after


class ValidationError(VoiceScribeError):
    """Input the user has to fix.

    Examples: unsupported audio type, file too large, bad user id,
    malformed correction dictionary.
    """

    category = ErrorCategory.VALIDATION


class ConfigurationError(VoiceScribeError):
    """Missing or rejected API key."""

    category = ErrorCategory.CONFIGURATION


class ResourceError(VoiceScribeError):
    """File that should exist does not."""

    category = ErrorCategory.RESOURCE


class ExternalServiceError(VoiceScribeError):
    """Transcription or grammar service returned an error or an unusable reply."""

    category = ErrorCategory.EXTERNAL
    recoverable_by_default = True


@dataclass
class RetryConfig:
    """How often and how patiently to retry a network call.

    Attributes:
        max_attempts: Total calls, including the first
        initial_delay: Seconds to wait after the first failure
        max_delay: Upper bound on any single wait
        exponential_base: Growth factor between waits
        jitter: Spread each wait by up to 25% either way
        retryable_errors: Error classes worth another attempt
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_errors: tuple = (TransientError, RateLimitError, ExternalServiceError)


def calculate_delay(
    attempt: int,
    config: RetryConfig,
    rate_limit_delay: float | None = None,
) -> float:
    """Seconds to wait after a failed attempt.

    Args:
        attempt: Number of the attempt that failed, starting at 1
        config: Retry configuration
        rate_limit_delay: Provider's retry_after, replaces the exponential wait

    Returns:
        Delay in seconds, never above config.max_delay before jitter
    """
    if rate_limit_delay is None:
        delay = config.initial_delay * config.exponential_base ** (attempt - 1)
    else:
        delay = rate_limit_delay
    delay = min(delay, config.max_delay)

    if config.jitter:
        delay = max(0.1, delay * random.uniform(0.75, 1.25))
    return delay


# Message fragments of plain exceptions that point at a passing network fault
_TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "502",
    "503",
    "504",
)


def is_retryable(error: Exception, config: RetryConfig) -> bool:
    """Decide whether another attempt could succeed."""
    if isinstance(error, VoiceScribeError):
        return isinstance(error, config.retryable_errors) and error.recoverable
    if isinstance(error, config.retryable_errors):
        return True

    message = str(error).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def retry_with_backoff(
    config: RetryConfig | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Retry the decorated call on recoverable errors.

    Waits grow exponentially, except after a rate limit where the
    provider's retry_after is used. The last error is re-raised once
    attempts run out.

    Args:
        config: Retry configuration

    Returns:
        Decorator function
    """
    config = config or RetryConfig()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        name = getattr(func, "__name__", repr(func))

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                attempt += 1
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable(e, config):
                        logger.warning(
                            f"{name} failed, not retrying: {e}",
                            extra={"error_type": type(e).__name__},
                        )
                        raise
                    if attempt >= config.max_attempts:
                        logger.error(
                            f"{name} failed after {attempt} attempt(s)",
                            extra={"error": str(e)},
                        )
                        raise

                    retry_after = e.retry_after if isinstance(e, RateLimitError) else None
                    delay = calculate_delay(attempt, config, retry_after)
                    logger.info(
                        f"Retrying {name} in {delay:.1f}s ({attempt}/{config.max_attempts})",
                        extra={"error": str(e)},
                    )
                    time.sleep(delay)

        return wrapper

    return decorator


def _retry_after(error: Exception) -> float:
    value = getattr(error, "retry_after", None)
    return float(value) if value is not None else 60.0


def wrap_external_error(
    error: Exception,
    service: str,
    operation: str,
) -> VoiceScribeError:
    """Turn a provider exception into a VoiceScribeError.

    The category is read from the message text, which the OpenAI SDK
    fills with the HTTP status and the provider's error message.

    Args:
        error: Exception raised by the provider client
        service: Provider name, e.g. "openai"
        operation: What was being done, e.g. "transcription"

    Returns:
        The matching VoiceScribeError (error itself if it already is one)
    """
    if isinstance(error, VoiceScribeError):
        return error

    text = str(error).lower()
    context = {"service": service, "operation": operation}

    if "api key" in text or "401" in text or "authentication" in text:
        return ConfigurationError(f"{service} rejected the API key", context=context)

    if "quota" in text:
        return RateLimitError(
            f"{service} quota exceeded during {operation}",
            retry_after=_retry_after(error),
            context=context,
        )

    if "rate limit" in text or "rate_limit" in text or "429" in text:
        return RateLimitError(
            f"{service} rate limit hit during {operation}",
            retry_after=_retry_after(error),
            context=context,
        )

    if "timed out" in text or "timeout" in text:
        return TransientError(f"{service} timed out during {operation}", context=context)

    if any(marker in text for marker in ("connection", "temporary", "unavailable")):
        return TransientError(
            f"{service} unreachable during {operation}: {error}",
            context=context,
        )

    return ExternalServiceError(f"{service} failed during {operation}: {error}", context=context)


def format_error_for_display(error: Exception) -> str:
    """One-line description of an error for the terminal."""
    if not isinstance(error, VoiceScribeError):
        return f"[error] {type(error).__name__}: {error}"

    line = f"[{error.category.value}] {error.message}"
    if error.context:
        line += f" ({_describe_context(error.context)})"
    return line
