"""Recipe runner: execute a named list of tasks in order.

Each task is one action (assert, apply or label) with its own retry policy,
falling back to the recipe's. The runner stops at the first task that
fails, whether by a Failed phase or by a raised engine error; the remaining
tasks are reported as skipped.

ARCHITECTURE
────────────
::

    RecipeRunner.run()
      └── for task in recipe.tasks
            BaseRunner(store, task.name, task.retry or recipe.retry)
              ├── Assert → Assertable.run()
              ├── Apply  → Applier.run()
              └── Label  → Labeler.run()
            → TaskResult
      → RecipeResult {phase, tasks}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from drecipe.core.errors import InternalError, RecipeError
from drecipe.core.logging import LogContext, get_logger
from drecipe.core.types import ActionResult, Apply, Assert, Label, Phase
from drecipe.execution.base import BaseRunner
from drecipe.execution.retry import Retryable
from drecipe.job.assertion import Assertable
from drecipe.recipe.apply import Applier
from drecipe.recipe.labeling import Labeler
from drecipe.store.protocols import ResourceStore

logger = get_logger(__name__)

Action = Union[Assert, Apply, Label]


@dataclass
class Task:
    name: str
    action: Action
    retry: Retryable | None = None

    @property
    def kind(self) -> str:
        match self.action:
            case Assert():
                return "assert"
            case Apply():
                return "apply"
            case Label():
                return "label"
        raise InternalError(f"Task {self.name!r} has unknown action {type(self.action).__name__!r}")


@dataclass
class Recipe:
    name: str
    tasks: list[Task]
    retry: Retryable = field(default_factory=Retryable)
    description: str = ""


@dataclass(frozen=True)
class TaskResult:
    """Outcome of one task; ``result`` is None when the task errored or was skipped."""

    name: str
    action: str
    phase: Phase | None
    result: ActionResult | None = None
    error: str = ""
    skipped: bool = False

    @property
    def status(self) -> str:
        if self.skipped:
            return "Skipped"
        return self.phase.value if self.phase else ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "action": self.action,
            "status": self.status,
            "message": self.result.message if self.result else "",
            "verbose": self.result.verbose if self.result else "",
            "warning": self.result.warning if self.result else "",
            "error": self.error,
        }


@dataclass(frozen=True)
class RecipeResult:
    name: str
    phase: Phase
    tasks: list[TaskResult]

    @property
    def failed_task(self) -> TaskResult | None:
        for task in self.tasks:
            if task.phase == Phase.FAILED:
                return task
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phase": self.phase.value,
            "tasks": [t.to_dict() for t in self.tasks],
        }


def run_action(runner: BaseRunner, action: Action) -> ActionResult:
    """Build and run the action matching ``action``'s spec type."""
    match action:
        case Assert():
            return Assertable(runner, action).run()
        case Apply():
            return Applier(runner, action).run()
        case Label():
            return Labeler(runner, action).run()
    raise InternalError(f"Unknown action spec {type(action).__name__!r}")


class RecipeRunner:
    """Runs a ``Recipe`` against a resource store."""

    def __init__(self, store: ResourceStore, recipe: Recipe):
        self.store = store
        self.recipe = recipe

    def _run_task(self, task: Task) -> TaskResult:
        runner = BaseRunner(
            store=self.store,
            name=task.name,
            retry=task.retry or self.recipe.retry,
        )
        try:
            result = run_action(runner, task.action)
        except RecipeError as e:
            logger.error("task_errored", task=task.name, **e.to_dict())
            return TaskResult(
                name=task.name,
                action=task.kind,
                phase=Phase.FAILED,
                error=f"{type(e).__name__}: {e.message}",
            )
        return TaskResult(name=task.name, action=task.kind, phase=result.phase, result=result)

    def run(self) -> RecipeResult:
        results: list[TaskResult] = []
        failed = False
        with LogContext(recipe=self.recipe.name):
            logger.info("recipe_started", tasks=len(self.recipe.tasks))
            for task in self.recipe.tasks:
                if failed:
                    results.append(
                        TaskResult(name=task.name, action=task.kind, phase=None, skipped=True)
                    )
                    continue
                outcome = self._run_task(task)
                results.append(outcome)
                failed = outcome.phase == Phase.FAILED

            if failed:
                phase = Phase.FAILED
            elif any(r.phase == Phase.WARNING for r in results):
                phase = Phase.WARNING
            else:
                phase = Phase.PASSED
            logger.info("recipe_finished", phase=phase.value)
        return RecipeResult(name=self.recipe.name, phase=phase, tasks=results)
