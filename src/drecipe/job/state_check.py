"""Assert a whole desired state against what the store holds.

Equals is subset containment: every key/value of the assert state must be
present and equal in the observed document, maps compared recursively and
lists element-wise in order. Keys only the observed document has are
ignored. NotEquals negates Equals, so it also holds when the resource is
absent. NotFound holds when the resource is absent.

The ListCount* operators list resources of the state's type in its
namespace, selected by the state's labels, count the ones that contain the
state and compare that count with ``StateCheck.count``.
"""

from __future__ import annotations

import operator as op
from collections.abc import Mapping
from typing import Any

from drecipe.core.document import (
    Document,
    ResourceIdentity,
    contains,
    first_difference,
    format_path,
)
from drecipe.core.errors import ConfigError, ResourceNotFoundError
from drecipe.core.logging import get_logger
from drecipe.core.types import AssertStatus, Phase, StateCheck, StateCheckOperator
from drecipe.execution.base import BaseRunner

logger = get_logger(__name__)

_LIST_COUNT = {
    StateCheckOperator.LIST_COUNT_EQUALS: op.eq,
    StateCheckOperator.LIST_COUNT_NOT_EQUALS: op.ne,
    StateCheckOperator.LIST_COUNT_GREATER_THAN: op.gt,
    StateCheckOperator.LIST_COUNT_LESS_THAN: op.lt,
}


def evaluate_state(observed: Mapping[str, Any] | None, expected: Mapping[str, Any],
                   operator: StateCheckOperator) -> bool:
    """Evaluate a single-resource operator; ``observed`` is None when absent."""
    match operator:
        case StateCheckOperator.EQUALS:
            return observed is not None and contains(observed, expected)
        case StateCheckOperator.NOT_EQUALS:
            return observed is None or not contains(observed, expected)
        case StateCheckOperator.NOT_FOUND:
            return observed is None
    raise ValueError(f"{operator.value} is not a single-resource operator")


def count_matching(documents: list[Mapping[str, Any]], expected: Mapping[str, Any]) -> int:
    return sum(1 for document in documents if contains(document, expected))


class StateChecker:
    """Checks the resource(s) described by ``state``."""

    def __init__(self, runner: BaseRunner, state: Document, state_check: StateCheck):
        self.runner = runner
        self.state = state
        self.state_check = state_check
        self.identity = ResourceIdentity.from_document(state)

    def _validate(self) -> None:
        if self.state_check.operator.is_list_count:
            if self.state_check.count is None or self.state_check.count < 0:
                raise ConfigError(
                    f"Failed to assert {self.runner.name!r}: "
                    f"{self.state_check.operator.value} requires a non-negative count"
                )
        elif not self.identity.name:
            raise ConfigError(
                f"Failed to assert {self.runner.name!r}: state is missing metadata.name"
            )

    def _observe_one(self) -> Document | None:
        client = self.runner.get_client_for(self.identity)
        try:
            return client.get(self.identity.namespace, self.identity.name)
        except ResourceNotFoundError:
            return None

    def _mismatch(self, observed: Document | None) -> str:
        if observed is None:
            return "resource not found"
        diff = first_difference(observed, self.state)
        if diff is None:
            return "resource matches"
        path, found, got, want = diff
        got_text = repr(got) if found else "<absent>"
        return f"{format_path(path) or '<root>'}: expected {want!r} got {got_text}"

    def _run_single(self) -> AssertStatus:
        operator = self.state_check.operator
        last: list[Document | None] = []

        def attempt() -> bool:
            observed = self._observe_one()
            last[:] = [observed]
            return evaluate_state(observed, self.state, operator)

        passed = self.runner.wait(attempt, f"Assert state {operator.value}: {self.identity}")
        observed = last[0]
        holds = evaluate_state(observed, self.state, operator)
        message = f"Assert state {operator.value} {self.identity}: {'passed' if holds else 'failed'}"
        return AssertStatus(
            phase=Phase.PASSED if holds else Phase.FAILED,
            message=message,
            verbose=self._mismatch(observed),
            warning="" if passed else f"Timed out after {self.runner.retry.timeout}s",
        )

    def _run_list_count(self) -> AssertStatus:
        operator = self.state_check.operator
        want = self.state_check.count
        compare = _LIST_COUNT[operator]
        counts: list[tuple[int, int]] = []

        def attempt() -> bool:
            client = self.runner.get_client_for(self.identity)
            documents = client.list(self.identity.namespace, self.identity.labels)
            got = count_matching(documents, self.state)
            counts[:] = [(len(documents), got)]
            return compare(got, want)

        passed = self.runner.wait(
            attempt, f"Assert state {operator.value} {want}: {self.identity.gvk}"
        )
        listed, got = counts[0]
        holds = compare(got, want)
        return AssertStatus(
            phase=Phase.PASSED if holds else Phase.FAILED,
            message=(
                f"Assert state {operator.value} {want} {self.identity.gvk}: "
                f"{'passed' if holds else 'failed'}: got {got}"
            ),
            verbose=f"Listed {listed} with selector {self.identity.selector!r}: matched {got}",
            warning="" if passed else f"Timed out after {self.runner.retry.timeout}s",
        )

    def run(self) -> AssertStatus:
        self._validate()
        if self.state_check.operator.is_list_count:
            status = self._run_list_count()
        else:
            status = self._run_single()
        logger.debug("state_check_done", phase=status.phase.value, operator=self.state_check.operator.value)
        return status
