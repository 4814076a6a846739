"""Shared plumbing for actions: store access and retry policy.

Each action supplies one attempt function and hands it to
``BaseRunner.wait``. Store errors flagged retryable turn the attempt into
"not done yet"; anything else propagates and ends the run. When the budget
runs out while the last attempt was failing on a store error, the timeout is
raised chained to that error. When the last attempt simply observed an unmet
condition, ``wait`` returns False and the caller reports a Failed phase.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from drecipe.core.document import ResourceIdentity
from drecipe.core.errors import ConfigError, RecipeError, RetryTimeoutError
from drecipe.core.logging import get_logger
from drecipe.execution.retry import Retryable
from drecipe.store.protocols import ResourceClient, ResourceStore

logger = get_logger(__name__)


class Attempt:
    """One retry unit; remembers the last retryable error it swallowed."""

    def __init__(self, fn: Callable[[], bool]):
        self.fn = fn
        self.count = 0
        self.last_error: RecipeError | None = None

    def __call__(self) -> bool:
        self.count += 1
        try:
            done = self.fn()
        except RecipeError as e:
            if not e.retryable:
                raise
            self.last_error = e
            logger.info(
                "attempt_failed",
                attempt=self.count,
                error_type=type(e).__name__,
                error=e.message,
            )
            return False
        self.last_error = None
        return done


@dataclass
class BaseRunner:
    """Binds a resource store, a retry policy and an action name.

    Every action receives one explicitly; there is no process-wide default.
    """

    store: ResourceStore
    name: str = ""
    retry: Retryable = field(default_factory=Retryable)

    def get_client_for(self, identity: ResourceIdentity) -> ResourceClient:
        if not identity.api_version or not identity.kind:
            raise ConfigError(
                f"Failed to get resource client for {self.name!r}: missing apiVersion or kind"
            )
        return self.store.get_client_for(identity.api_version, identity.kind)

    def wait(self, fn: Callable[[], bool], message: str) -> bool:
        """Run ``fn`` under the retry policy.

        Returns:
            True when ``fn`` reported done, False when time ran out on an
            unmet condition

        Raises:
            RetryTimeoutError: time ran out while ``fn`` kept failing with a
                retryable store error (chained to that error)
        """
        attempt = Attempt(fn)
        try:
            self.retry.wait(attempt, message)
        except RetryTimeoutError as e:
            if attempt.last_error is None:
                return False
            raise RetryTimeoutError(
                f"{message}: {attempt.last_error.message}",
                timeout=e.timeout,
                attempts=e.attempts,
                cause=attempt.last_error,
            ) from attempt.last_error
        return True
