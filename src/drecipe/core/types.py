"""Action specs and result envelopes.

Specs are built once by the caller and read-only to the engine. Results are
frozen and produced exactly once per ``run()``.

ARCHITECTURE
────────────
::

    ActionResult {phase, message, verbose, warning}
      ├── AssertStatus
      ├── ApplyStatus   (+ operation)
      └── LabelResult   (+ found, labeled, unlabeled)

    Assert {state, path_check | state_check}
      └── resolved into  AssertCheck = PathCheck | StateCheck

    Label {state, apply_labels, include_by_names, auto_unset}
    Apply {state}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Union

from drecipe.core.document import Document, PathExpression, parse_path


class Phase(str, Enum):
    """Outcome of one action run."""

    PASSED = "Passed"
    FAILED = "Failed"
    WARNING = "Warning"


class PathCheckOperator(str, Enum):
    EXISTS = "Exists"
    NOT_EXISTS = "NotExists"
    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    GREATER_THAN = "GreaterThan"
    GREATER_THAN_EQUAL_TO = "GreaterThanEqualTo"
    LESS_THAN = "LessThan"
    LESS_THAN_EQUAL_TO = "LessThanEqualTo"


class StateCheckOperator(str, Enum):
    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    NOT_FOUND = "NotFound"
    LIST_COUNT_EQUALS = "ListCountEquals"
    LIST_COUNT_NOT_EQUALS = "ListCountNotEquals"
    LIST_COUNT_GREATER_THAN = "ListCountGreaterThan"
    LIST_COUNT_LESS_THAN = "ListCountLessThan"

    @property
    def is_list_count(self) -> bool:
        return self.value.startswith("ListCount")


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ActionResult:
    """Uniform result shape returned by every action."""

    phase: Phase
    message: str = ""
    verbose: str = ""
    warning: str = ""

    @property
    def passed(self) -> bool:
        return self.phase == Phase.PASSED

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["phase"] = self.phase.value
        return data


@dataclass(frozen=True)
class AssertStatus(ActionResult):
    pass


@dataclass(frozen=True)
class ApplyStatus(ActionResult):
    operation: str = ""


@dataclass(frozen=True)
class LabelResult(ActionResult):
    found: int = 0
    labeled: int = 0
    unlabeled: int = 0


# =============================================================================
# Assert specs
# =============================================================================


@dataclass(frozen=True)
class PathCheck:
    """Compare the value at ``path`` against ``value`` using ``operator``."""

    path: PathExpression
    operator: PathCheckOperator = PathCheckOperator.EXISTS
    value: Any = None

    def __post_init__(self):
        object.__setattr__(self, "path", parse_path(self.path))
        object.__setattr__(self, "operator", PathCheckOperator(self.operator))


@dataclass(frozen=True)
class StateCheck:
    """Compare the whole assert state against the observed document."""

    operator: StateCheckOperator = StateCheckOperator.EQUALS
    count: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "operator", StateCheckOperator(self.operator))


AssertCheck = Union[PathCheck, StateCheck]


@dataclass
class Assert:
    """Assertion input: a target state and at most one check kind."""

    state: Document | None
    path_check: PathCheck | None = None
    state_check: StateCheck | None = None


# =============================================================================
# Recipe action specs
# =============================================================================


@dataclass
class Label:
    """Apply ``apply_labels`` to every selected resource, optionally unsetting them
    from resources not included by name."""

    state: Document | None
    apply_labels: Mapping[str, str] = field(default_factory=dict)
    include_by_names: frozenset[str] = frozenset()
    auto_unset: bool = False

    def __post_init__(self):
        names = self.include_by_names or ()
        if isinstance(names, str):
            names = (names,)
        self.include_by_names = frozenset(names)


@dataclass
class Apply:
    """Reconcile ``state`` into the store via create-or-merge."""

    state: Document | None
