"""Assert the value at one field path of a resource.

Each attempt re-fetches the target and descends the path selector by
selector. A path that does not resolve is "absent": Exists fails, NotExists
holds, Equals fails and NotEquals holds. Ordering operators hold only when
both the observed and the expected value are numbers.
"""

from __future__ import annotations

import operator as op
from collections.abc import Mapping
from typing import Any

from drecipe.core.document import (
    Document,
    ResourceIdentity,
    deep_equal,
    format_path,
    is_number,
    lookup,
)
from drecipe.core.errors import ConfigError, ResourceNotFoundError
from drecipe.core.logging import get_logger
from drecipe.core.types import AssertStatus, PathCheck, PathCheckOperator, Phase
from drecipe.execution.base import BaseRunner

logger = get_logger(__name__)

_ABSENT = "<absent>"

_ORDERING = {
    PathCheckOperator.GREATER_THAN: op.gt,
    PathCheckOperator.GREATER_THAN_EQUAL_TO: op.ge,
    PathCheckOperator.LESS_THAN: op.lt,
    PathCheckOperator.LESS_THAN_EQUAL_TO: op.le,
}


def evaluate_path(document: Mapping[str, Any] | None, check: PathCheck) -> tuple[bool, bool, Any]:
    """Evaluate ``check`` against ``document``.

    Returns ``(holds, found, actual)``. A missing document counts as an
    unresolved path.
    """
    if document is None:
        found, actual = False, None
    else:
        found, actual = lookup(document, check.path)

    match check.operator:
        case PathCheckOperator.EXISTS:
            holds = found
        case PathCheckOperator.NOT_EXISTS:
            holds = not found
        case PathCheckOperator.EQUALS:
            holds = found and deep_equal(actual, check.value)
        case PathCheckOperator.NOT_EQUALS:
            holds = not (found and deep_equal(actual, check.value))
        case _:
            compare = _ORDERING[check.operator]
            holds = (
                found
                and is_number(actual)
                and is_number(check.value)
                and compare(actual, check.value)
            )
    return holds, found, actual


class PathChecker:
    """Checks one path of the resource named by ``state``."""

    def __init__(self, runner: BaseRunner, state: Document, path_check: PathCheck):
        self.runner = runner
        self.state = state
        self.path_check = path_check
        self.identity = ResourceIdentity.from_document(state)

    def _observe(self) -> Document | None:
        client = self.runner.get_client_for(self.identity)
        try:
            return client.get(self.identity.namespace, self.identity.name)
        except ResourceNotFoundError:
            return None

    def _describe(self, holds: bool, found: bool, actual: Any) -> AssertStatus:
        path = format_path(self.path_check.path)
        operator = self.path_check.operator.value
        got = repr(actual) if found else _ABSENT
        verbose = f"Resource {self.identity}: {path} = {got}"

        if self.path_check.operator in (PathCheckOperator.EXISTS, PathCheckOperator.NOT_EXISTS):
            detail = f"Assert path {path!r} {operator}"
        else:
            detail = f"Assert path {path!r} {operator} {self.path_check.value!r}"

        if holds:
            return AssertStatus(phase=Phase.PASSED, message=f"{detail}: passed", verbose=verbose)
        return AssertStatus(
            phase=Phase.FAILED,
            message=f"{detail}: failed: expected {self.path_check.value!r} got {got}",
            verbose=verbose,
        )

    def run(self) -> AssertStatus:
        if not self.identity.name:
            raise ConfigError(
                f"Failed to assert {self.runner.name!r}: state is missing metadata.name"
            )

        last: list[tuple[bool, bool, Any]] = []

        def attempt() -> bool:
            outcome = evaluate_path(self._observe(), self.path_check)
            last[:] = [outcome]
            return outcome[0]

        passed = self.runner.wait(
            attempt,
            f"Assert path {format_path(self.path_check.path)!r}: {self.identity}",
        )
        holds, found, actual = last[0]
        status = self._describe(holds, found, actual)
        if not passed:
            status = AssertStatus(
                phase=status.phase,
                message=status.message,
                verbose=status.verbose,
                warning=f"Timed out after {self.runner.retry.timeout}s",
            )
        logger.debug("path_check_done", phase=status.phase.value, path=format_path(self.path_check.path))
        return status
