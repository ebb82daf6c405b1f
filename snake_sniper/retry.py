"""
Bounded retry for the game service calls.

A plain loop with an attempt counter and a fixed delay. The outcome comes
back as a RetryResult rather than an exception so the caller decides what
an exhausted retry means for the cycle.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Type


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    delay: float = 2.0

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("RetryPolicy needs at least one attempt")
        if self.delay < 0:
            raise ValueError("RetryPolicy delay can't be negative")


@dataclass
class RetryResult:
    ok: bool
    attempts: int
    value: Any = None
    error: Optional[BaseException] = None


def call_with_retry(fn: Callable[[], Any], policy: RetryPolicy,
                    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
                    sleep: Callable[[float], None] = time.sleep,
                    on_retry: Optional[Callable[[int, BaseException], None]] = None) -> RetryResult:
    """Call fn up to policy.attempts times, sleeping policy.delay in between.

    Only exceptions listed in retry_on are retried; anything else propagates.
    """
    last_error = None
    for attempt in range(1, policy.attempts + 1):
        try:
            return RetryResult(ok=True, attempts=attempt, value=fn())
        except retry_on as e:
            last_error = e
            if attempt < policy.attempts:
                if on_retry:
                    on_retry(attempt, e)
                sleep(policy.delay)

    return RetryResult(ok=False, attempts=policy.attempts, error=last_error)
