"""Assertable: match a desired state against the observed state.

An ``Assert`` may carry a path check or a state check, never both. With
neither, it defaults to a state check using Equals. The selected check runs
under the runner's retry policy and its status is returned verbatim.

Configuration problems (missing name, nil state, both checks set) fail
before the store is touched and are never retried.
"""

from __future__ import annotations

from drecipe.core.errors import ConfigError, InternalError, ValidationError
from drecipe.core.logging import LogContext, get_logger
from drecipe.core.types import (
    Assert,
    AssertCheck,
    AssertStatus,
    PathCheck,
    StateCheck,
    StateCheckOperator,
)
from drecipe.execution.base import BaseRunner
from drecipe.job.path_check import PathChecker
from drecipe.job.state_check import StateChecker

logger = get_logger(__name__)


def resolve_check(name: str, spec: Assert) -> AssertCheck:
    """Pick the single check kind of ``spec``.

    Raises:
        ValidationError: both a path check and a state check are set
    """
    checks = [c for c in (spec.path_check, spec.state_check) if c is not None]
    if len(checks) > 1:
        raise ValidationError(
            f"Failed to assert {name!r}: More than one assert checks found"
        )
    if not checks:
        return StateCheck(operator=StateCheckOperator.EQUALS)
    return checks[0]


class Assertable:
    """Runs one assertion.

    Example:
        >>> runner = BaseRunner(store=store, name="pool-online", retry=Retryable(1, 30))
        >>> status = Assertable(runner, Assert(
        ...     state=pool,
        ...     path_check=PathCheck("status.state", "Equals", "Online"),
        ... )).run()
        >>> status.phase
        <Phase.PASSED: 'Passed'>
    """

    def __init__(self, runner: BaseRunner, spec: Assert | None):
        self.runner = runner
        self.spec = spec

    @property
    def name(self) -> str:
        return self.runner.name

    def _dispatch(self, check: AssertCheck) -> AssertStatus:
        match check:
            case PathCheck():
                return PathChecker(self.runner, self.spec.state, check).run()
            case StateCheck():
                return StateChecker(self.runner, self.spec.state, check).run()
        raise InternalError(
            f"Failed to run assert {self.name!r}: Invalid check type {type(check).__name__!r}"
        )

    def run(self) -> AssertStatus:
        if not self.name:
            raise ConfigError("Failed to run assert: Missing assert name")
        if self.spec is None or self.spec.state is None:
            raise ConfigError(f"Failed to run assert {self.name!r}: Nil assert state")

        check = resolve_check(self.name, self.spec)
        with LogContext(action="assert", name=self.name):
            logger.info("assert_started", check=type(check).__name__)
            status = self._dispatch(check)
            logger.info("assert_finished", phase=status.phase.value, message=status.message)
        return status
