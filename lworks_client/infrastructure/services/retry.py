"""lworks_client.infrastructure.services.retry

Name: Retry policy for remote calls (tenacity)

CRC (Component Card)
--------------------
Component: retry policy
Responsibilities:
  - Split failures into "bail" (fail on the first answer) and "retry"
  - Build the tenacity decorator: exponential backoff with jitter
  - Log each retry with the attempt number and the wait
Collaborators:
  - tenacity (retry engine)
  - crosscutting.config.get_settings (attempt/delay defaults)
  - crosscutting.logger
Constraints:
  - Statuses in the bail set (default 400, 401, 404) are never retried
  - Any other HTTP status >= 400 is retried, like transport errors
  - Decode/parse/config errors are never retried
  - The decorator works on coroutine functions and plain ones alike
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...crosscutting.client_config import DEFAULT_BAIL_RETRY_STATUSES
from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger

T = TypeVar("T")

_TRANSPORT_ERRORS = (httpx.TransportError, TimeoutError, ConnectionError)


def get_http_status_code(exception: BaseException) -> int | None:
    """HTTP status carried by ``exception``, if any.

    Looks at, in order: ``status`` (MirrorResponseError),
    ``response.status_code`` (httpx.HTTPStatusError) and ``status_code``.
    """
    status = getattr(exception, "status", None)
    if isinstance(status, int):
        return status

    response = getattr(exception, "response", None)
    status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status

    status = getattr(exception, "status_code", None)
    return status if isinstance(status, int) else None


def should_retry(
    exception: BaseException,
    bail_statuses: Iterable[int] = DEFAULT_BAIL_RETRY_STATUSES,
) -> bool:
    """True when another attempt may succeed."""
    status = get_http_status_code(exception)
    if status is not None:
        return status not in frozenset(bail_statuses)
    return isinstance(exception, _TRANSPORT_ERRORS)


def _log_retry(retry_state: RetryCallState) -> None:
    """before_sleep hook."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait = retry_state.next_action.sleep if retry_state.next_action else 0.0
    logger.warning(
        "Retrying remote call",
        extra={
            "attempt": retry_state.attempt_number,
            "wait_seconds": round(wait, 3),
            "error_type": type(exc).__name__ if exc else None,
            "error": str(exc) if exc else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
    bail_statuses: Iterable[int] | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """tenacity ``retry`` configured for mirror calls.

    Unset arguments fall back to Settings. The last exception is re-raised
    unchanged once attempts are exhausted.
    """
    if max_attempts is None or base_delay is None or max_delay is None:
        settings = get_settings()
        if max_attempts is None:
            max_attempts = settings.retry_max_attempts
        if base_delay is None:
            base_delay = settings.retry_base_delay_seconds
        if max_delay is None:
            max_delay = settings.retry_max_delay_seconds

    if max_attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    if base_delay < 0:
        raise ValueError("base_delay must be >= 0")
    if max_delay <= 0:
        raise ValueError("max_delay must be > 0")

    bail = frozenset(DEFAULT_BAIL_RETRY_STATUSES if bail_statuses is None else bail_statuses)

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(initial=base_delay, max=max_delay, jitter=base_delay),
        retry=retry_if_exception(lambda exc: should_retry(exc, bail)),
        before_sleep=_log_retry,
        reraise=True,
    )
