"""Fixed-interval polling with an explicit attempt budget."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional


@dataclass
class PollResult:
    succeeded: bool
    attempts: int
    value: Any = None


def poll_until(
    probe: Callable[[], Any],
    attempts: int,
    interval: float,
    *,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int], None]] = None,
) -> PollResult:
    """Call ``probe`` until it returns a truthy value or ``attempts`` run out.

    ``sleep`` runs between attempts only, so an exhausted budget costs
    ``(attempts - 1) * interval`` seconds of waiting. ``on_retry`` receives
    the 1-based number of each failed attempt.
    """

    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    value: Any = None
    for attempt in range(1, attempts + 1):
        value = probe()
        if value:
            return PollResult(True, attempt, value)
        if on_retry is not None:
            on_retry(attempt)
        if attempt < attempts:
            sleep(interval)
    return PollResult(False, attempts, value)
