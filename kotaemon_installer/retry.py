"""Bounded retry loop with an explicit outcome.

No backoff and no jitter: a failed attempt is logged and the next one starts
immediately. Running out of attempts is reported as ``succeeded=False``
rather than left for a later check to notice.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import httpx

from kotaemon_installer.logging import get_logger

log = get_logger(__name__)

RETRYABLE: tuple[type[BaseException], ...] = (httpx.HTTPError, OSError)


@dataclass(frozen=True)
class RetryOutcome:
    succeeded: bool
    attempts: int
    errors: tuple[str, ...] = ()


def with_retries(
    action: Callable[[], bool],
    *,
    attempts: int,
    label: str = "Operation",
) -> RetryOutcome:
    """Call *action* until it returns True, at most *attempts* times.

    *action* signals failure by returning False or raising one of
    ``RETRYABLE``; any other exception propagates.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")
    errors: list[str] = []
    for attempt in range(1, attempts + 1):
        try:
            ok = action()
            reason = "returned failure"
        except RETRYABLE as exc:
            ok = False
            reason = f"{type(exc).__name__}: {exc}"
        if ok:
            return RetryOutcome(succeeded=True, attempts=attempt, errors=tuple(errors))
        errors.append(reason)
        if attempt < attempts:
            log.warning("%s failed. Retrying (%d/%d)...", label, attempt, attempts)
        else:
            log.error("%s failed after %d attempts", label, attempts)
    return RetryOutcome(succeeded=False, attempts=attempts, errors=tuple(errors))
