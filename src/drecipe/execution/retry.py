"""Bounded polling shared by every action.

A ``Retryable`` separates *how long and how often* to retry from *what one
attempt does*. The attempt is a zero-argument callable returning ``True``
when done; raising stops the loop at once, so an attempt decides for itself
which failures are worth another try.

Example:
    >>> from drecipe.execution.retry import Retryable
    >>>
    >>> retry = Retryable(interval=1.0, timeout=30.0)
    >>> retry.waitf(lambda: store_is_ready(), "waiting for %s", "pool-a")

Timeouts only take effect between attempts; an attempt in progress is never
interrupted.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from drecipe.core.errors import ConfigError, RetryTimeoutError
from drecipe.core.logging import get_logger

if TYPE_CHECKING:
    from drecipe.core.settings import RecipeSettings

logger = get_logger(__name__)

Condition = Callable[[], bool]


@dataclass
class Retryable:
    """Retry a condition at a fixed interval until it holds or time runs out.

    Attributes:
        interval: Seconds to sleep between attempts
        timeout: Total budget in seconds; 0 means a single attempt
        on_retry: Callback invoked before each sleep (attempt, elapsed)
        clock: Monotonic time source
        sleep: Sleep function
    """

    interval: float = 1.0
    timeout: float = 60.0
    on_retry: Callable[[int, float], None] | None = None
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self):
        if self.interval < 0 or self.timeout < 0:
            raise ConfigError(
                f"Invalid retry policy: interval={self.interval} timeout={self.timeout} "
                "must not be negative"
            )
        if self.timeout and self.interval > self.timeout:
            raise ConfigError(
                f"Invalid retry policy: interval {self.interval}s exceeds timeout {self.timeout}s"
            )

    @classmethod
    def from_settings(cls, settings: RecipeSettings, **kwargs: Any) -> Retryable:
        return cls(
            interval=settings.retry_interval_seconds,
            timeout=settings.retry_timeout_seconds,
            **kwargs,
        )

    def wait(self, condition: Condition, message: str) -> int:
        """Call ``condition`` until it returns True.

        Args:
            condition: One attempt; returns True when done
            message: Describes what is being waited for

        Returns:
            Number of attempts made

        Raises:
            RetryTimeoutError: the timeout elapsed before the condition held
            Exception: whatever ``condition`` raised, without further attempts
        """
        started = self.clock()
        attempt = 0
        while True:
            attempt += 1
            if condition():
                return attempt

            elapsed = self.clock() - started
            if elapsed >= self.timeout or elapsed + self.interval > self.timeout:
                logger.warning(
                    "retry_timed_out",
                    message=message,
                    attempts=attempt,
                    timeout=self.timeout,
                )
                raise RetryTimeoutError(message, timeout=self.timeout, attempts=attempt)

            if self.on_retry:
                self.on_retry(attempt, elapsed)
            logger.debug("retry_waiting", message=message, attempt=attempt, interval=self.interval)
            self.sleep(self.interval)

    def waitf(self, condition: Condition, fmt: str, *args: Any) -> int:
        """``wait`` with a printf-style message."""
        return self.wait(condition, fmt % args if args else fmt)
