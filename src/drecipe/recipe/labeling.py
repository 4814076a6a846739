"""Labeling applies desired labels to resources, or unsets them.

The resource set is every resource of the state's type in its namespace
whose labels match the state's labels. For each resource:

- included (``include_by_names`` empty, or the name is listed): the desired
  labels are merged over the existing ones and the resource is written back
- excluded with ``auto_unset``: when the resource carries every desired key
  with exactly the desired value, those keys are removed and the resource
  is written back; otherwise it is left alone
- excluded without ``auto_unset``: left alone

List and mutation form a single attempt. If any write fails with a
retryable error the attempt is abandoned and the next one re-lists and
re-evaluates from scratch, so counts always describe one complete pass.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from drecipe.core.document import Document, ResourceIdentity, get_labels, with_labels
from drecipe.core.errors import ConfigError
from drecipe.core.logging import LogContext, get_logger
from drecipe.core.types import Label, LabelResult, Phase
from drecipe.execution.base import BaseRunner
from drecipe.store.protocols import ResourceClient

logger = get_logger(__name__)


def is_included(label: Label, name: str) -> bool:
    return not label.include_by_names or name in label.include_by_names


def merged_labels(current: Mapping[str, str], desired: Mapping[str, str]) -> dict[str, str]:
    """Existing labels with ``desired`` written over them."""
    return {**current, **desired}


def unset_labels(current: Mapping[str, str], desired: Mapping[str, str]) -> dict[str, str] | None:
    """Existing labels without the desired keys.

    Returns None when the resource is not eligible, i.e. it does not carry
    every desired key with exactly the desired value.
    """
    for key, value in desired.items():
        if key not in current or current[key] != value:
            return None
    return {k: v for k, v in current.items() if k not in desired}


@dataclass
class _Counts:
    found: int = 0
    labeled: int = 0
    unlabeled: int = 0


class Labeler:
    """Applies ``Label`` to the selected resources."""

    def __init__(self, runner: BaseRunner, label: Label):
        self.runner = runner
        self.label = label

    def _write(self, client: ResourceClient, obj: Document, labels: dict[str, str]) -> None:
        if labels == get_labels(obj):
            return
        client.update(with_labels(obj, labels))

    def _label_or_unset(self, client: ResourceClient, obj: Document, counts: _Counts) -> None:
        name = (obj.get("metadata") or {}).get("name", "")
        current = get_labels(obj)
        if is_included(self.label, name):
            self._write(client, obj, merged_labels(current, self.label.apply_labels))
            counts.labeled += 1
            logger.debug("resource_labeled", resource=name)
            return
        if not self.label.auto_unset:
            return
        remaining = unset_labels(current, self.label.apply_labels)
        if remaining is None:
            return
        self._write(client, obj, remaining)
        counts.unlabeled += 1
        logger.debug("resource_unlabeled", resource=name)

    def _validate(self) -> ResourceIdentity:
        if not self.label.apply_labels:
            raise ConfigError("Invalid label operation: Missing ApplyLabels")
        if self.label.state is None:
            raise ConfigError(f"Invalid label operation {self.runner.name!r}: Nil label state")
        return ResourceIdentity.from_document(self.label.state)

    def run(self) -> LabelResult:
        identity = self._validate()
        message = f"Label resource {identity.namespace} {identity.name}: GVK {identity.gvk}"
        counts = _Counts()

        def attempt() -> bool:
            nonlocal counts
            counts = _Counts()
            client = self.runner.get_client_for(identity)
            items = client.list(identity.namespace, identity.labels)
            counts.found = len(items)
            for obj in items:
                self._label_or_unset(client, obj, counts)
            return True

        with LogContext(action="label", name=self.runner.name):
            logger.info("label_started", selector=identity.selector, namespace=identity.namespace)
            self.runner.wait(attempt, message)
            result = LabelResult(
                phase=Phase.PASSED,
                message=message,
                verbose=(
                    f"Resource labeling: Found {counts.found}: "
                    f"Labeled {counts.labeled}: UnLabeled {counts.unlabeled}"
                ),
                found=counts.found,
                labeled=counts.labeled,
                unlabeled=counts.unlabeled,
            )
            logger.info("label_finished", **_summary(result))
        return result


def _summary(result: LabelResult) -> dict[str, Any]:
    return {"found": result.found, "labeled": result.labeled, "unlabeled": result.unlabeled}
