"""Pydantic models for Recipe YAML validation.

Parses YAML recipe definitions into the ``Recipe`` model the runner
executes, so recipes can be written without Python.

Example YAML::

    apiVersion: drecipe.io/v1
    kind: Recipe
    metadata:
      name: pool-online
    spec:
      retry:
        intervalSeconds: 1
        timeoutSeconds: 30
      tasks:
        - name: create-pool
          apply:
            state:
              apiVersion: openebs.io/v1alpha1
              kind: CPool
              metadata: {name: pool-a, namespace: storage}
              spec: {node: node-1}
        - name: pool-is-online
          assert:
            state:
              apiVersion: openebs.io/v1alpha1
              kind: CPool
              metadata: {name: pool-a, namespace: storage}
            pathCheck:
              path: status.state
              operator: Equals
              value: Online
        - name: tag-pools
          label:
            state:
              apiVersion: openebs.io/v1alpha1
              kind: CPool
              metadata: {namespace: storage}
            applyLabels: {tier: gold}
            includeByNames: [pool-a]
            autoUnset: true

Usage::

    from drecipe.recipe.recipe_yaml import RecipeSpec

    recipe = RecipeSpec.from_yaml_file("recipes/pool.yaml").to_recipe()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import pydantic
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from drecipe.core.document import parse_path
from drecipe.core.errors import ValidationError
from drecipe.core.types import (
    Apply,
    Assert,
    Label,
    PathCheck,
    PathCheckOperator,
    StateCheck,
    StateCheckOperator,
)
from drecipe.execution.retry import Retryable
from drecipe.recipe.runner import Recipe, Task


class _Spec(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RetrySpec(_Spec):
    """Retry policy section."""

    interval_seconds: float = Field(default=1.0, ge=0, alias="intervalSeconds")
    timeout_seconds: float = Field(default=60.0, ge=0, alias="timeoutSeconds")

    @model_validator(mode="after")
    def validate_interval(self) -> RetrySpec:
        if self.timeout_seconds and self.interval_seconds > self.timeout_seconds:
            raise ValueError("intervalSeconds must not exceed timeoutSeconds")
        return self

    def to_retryable(self) -> Retryable:
        return Retryable(interval=self.interval_seconds, timeout=self.timeout_seconds)


class PathCheckSpec(_Spec):
    path: str | list[str | int] = Field(..., description="Dotted path or list of selectors")
    operator: PathCheckOperator = PathCheckOperator.EXISTS
    value: Any = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str | list[str | int]) -> str | list[str | int]:
        try:
            parse_path(v)
        except ValidationError as e:
            raise ValueError(e.message) from e
        return v

    def to_check(self) -> PathCheck:
        return PathCheck(path=self.path, operator=self.operator, value=self.value)


class StateCheckSpec(_Spec):
    operator: StateCheckOperator = StateCheckOperator.EQUALS
    count: int | None = Field(default=None, ge=0)

    def to_check(self) -> StateCheck:
        return StateCheck(operator=self.operator, count=self.count)


class AssertSpec(_Spec):
    state: dict[str, Any]
    path_check: PathCheckSpec | None = Field(default=None, alias="pathCheck")
    state_check: StateCheckSpec | None = Field(default=None, alias="stateCheck")

    def to_action(self) -> Assert:
        return Assert(
            state=self.state,
            path_check=self.path_check.to_check() if self.path_check else None,
            state_check=self.state_check.to_check() if self.state_check else None,
        )


class LabelSpec(_Spec):
    state: dict[str, Any]
    apply_labels: dict[str, str] = Field(..., min_length=1, alias="applyLabels")
    include_by_names: list[str] = Field(default_factory=list, alias="includeByNames")
    auto_unset: bool = Field(default=False, alias="autoUnset")

    def to_action(self) -> Label:
        return Label(
            state=self.state,
            apply_labels=self.apply_labels,
            include_by_names=frozenset(self.include_by_names),
            auto_unset=self.auto_unset,
        )


class ApplySpec(_Spec):
    state: dict[str, Any]

    def to_action(self) -> Apply:
        return Apply(state=self.state)


class TaskSpec(_Spec):
    """One recipe task: a name and exactly one action."""

    name: str = Field(..., min_length=1)
    assert_: AssertSpec | None = Field(default=None, alias="assert")
    apply: ApplySpec | None = None
    label: LabelSpec | None = None
    retry: RetrySpec | None = None

    @model_validator(mode="after")
    def validate_single_action(self) -> TaskSpec:
        actions = [a for a in (self.assert_, self.apply, self.label) if a is not None]
        if len(actions) != 1:
            raise ValueError(
                f"Task '{self.name}' must set exactly one of assert, apply, label "
                f"(found {len(actions)})"
            )
        return self

    def to_task(self) -> Task:
        action = (self.assert_ or self.apply or self.label).to_action()
        return Task(
            name=self.name,
            action=action,
            retry=self.retry.to_retryable() if self.retry else None,
        )


class RecipeMetadataSpec(_Spec):
    name: str = Field(..., min_length=1)
    description: str = ""


class RecipeSpecSection(_Spec):
    retry: RetrySpec | None = None
    tasks: list[TaskSpec] = Field(..., min_length=1)

    @field_validator("tasks")
    @classmethod
    def validate_unique_names(cls, v: list[TaskSpec]) -> list[TaskSpec]:
        names = [t.name for t in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate task names: {duplicates}")
        return v


class RecipeSpec(_Spec):
    """Root model of a recipe document."""

    apiVersion: Literal["drecipe.io/v1"] = "drecipe.io/v1"
    kind: Literal["Recipe"] = "Recipe"
    metadata: RecipeMetadataSpec
    spec: RecipeSpecSection

    def to_recipe(self, default_retry: Retryable | None = None) -> Recipe:
        """Build the runtime recipe.

        ``default_retry`` applies when the document has no ``spec.retry``.
        """
        if self.spec.retry is not None:
            retry = self.spec.retry.to_retryable()
        else:
            retry = default_retry or Retryable()
        return Recipe(
            name=self.metadata.name,
            tasks=[task.to_task() for task in self.spec.tasks],
            retry=retry,
            description=self.metadata.description,
        )

    @classmethod
    def from_dict(cls, data: Any) -> RecipeSpec:
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid recipe: {e}", cause=e) from e

    @classmethod
    def from_yaml(cls, yaml_content: str) -> RecipeSpec:
        """Parse and validate YAML content.

        Raises:
            ValidationError: malformed YAML or a document that does not match
                the schema
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML: {e}", cause=e) from e
        return cls.from_dict(data)

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> RecipeSpec:
        return cls.from_yaml(Path(path).read_text(encoding="utf-8"))


def load_documents(path: str | Path) -> list[dict[str, Any]]:
    """Load every non-empty document of a multi-document YAML file."""
    try:
        documents = list(yaml.safe_load_all(Path(path).read_text(encoding="utf-8")))
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {path}: {e}", cause=e) from e
    result = []
    for document in documents:
        if document is None:
            continue
        if not isinstance(document, dict):
            raise ValidationError(f"Invalid document in {path}: expected a mapping", value=document)
        result.append(document)
    return result
