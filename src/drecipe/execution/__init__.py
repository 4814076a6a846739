"""drecipe execution -- bounded retry and the runner every action shares.

::

    Retryable  (interval, timeout)
      └── BaseRunner.wait(attempt, message)
            ├── retryable StoreError  → next attempt
            ├── other error           → propagated
            └── budget exhausted      → False, or RetryTimeoutError on errors
"""

from drecipe.execution.base import BaseRunner
from drecipe.execution.retry import Retryable

__all__ = ["BaseRunner", "Retryable"]
