"""Bounded retry with a fixed delay between attempts."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from thermhub.errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

R = TypeVar("R")

RETRYABLE: tuple[type[BaseException], ...] = (TransportError, DecodeError)


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 5
    delay_seconds: float = 2.0

    def call(
        self,
        fn: Callable[..., R],
        *args: Any,
        retry_on: tuple[type[BaseException], ...] = RETRYABLE,
        label: str = "",
    ) -> R:
        """Call fn until it succeeds or attempts run out.

        Sleeps delay_seconds between attempts, never after the last one.
        Errors outside retry_on propagate immediately; the last retryable
        error is re-raised once attempts are exhausted.
        """
        name = label or getattr(fn, "__name__", "call")
        last_error: BaseException | None = None
        for attempt in range(1, self.attempts + 1):
            try:
                return fn(*args)
            except retry_on as e:
                last_error = e
                if attempt < self.attempts:
                    logger.warning(
                        "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                        name, attempt, self.attempts, self.delay_seconds, e,
                    )
                    time.sleep(self.delay_seconds)
                else:
                    logger.error(
                        "%s failed after %d attempts: %s", name, self.attempts, e
                    )

        assert last_error is not None
        raise last_error
