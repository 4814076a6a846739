"""Resource document helpers.

A resource document is a plain ``dict`` tree (maps, ordered lists, scalars)
in the shape of a Kubernetes object: ``apiVersion``, ``kind``,
``metadata.{name,namespace,labels,resourceVersion}`` and free-form content.
This module holds the pure functions the actions use to navigate and
compare such trees; nothing here talks to a store.

Path expressions:

    "status.state"                 -> ("status", "state")
    "status.conditions[0].type"    -> ("status", "conditions", 0, "type")
    ["metadata", "labels", "a.b"]  -> ("metadata", "labels", "a.b")

A ``str`` selector indexes a map, an ``int`` selector indexes a list.

Comparison is type-aware: ``True`` never equals ``1``, ``"1"`` never equals
``1``; ``1`` equals ``1.0``.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from drecipe.core.errors import ValidationError

Document = dict[str, Any]
Selector = str | int
PathExpression = tuple[Selector, ...]

_SEGMENT = re.compile(r"^(?P<key>[^\[\]]*)(?P<indexes>(?:\[\d+\])*)$")
_INDEX = re.compile(r"\[(\d+)\]")


# =============================================================================
# Paths
# =============================================================================


def parse_path(path: str | Sequence[Selector]) -> PathExpression:
    """Parse a dotted path string, or normalize a list of selectors.

    Raises:
        ValidationError: empty path, empty segment or bad selector type
    """
    if isinstance(path, str):
        if not path.strip():
            raise ValidationError("Invalid path: empty path", field="path", value=path)
        selectors: list[Selector] = []
        for segment in path.split("."):
            match = _SEGMENT.match(segment)
            if match is None or (not match.group("key") and not match.group("indexes")):
                raise ValidationError(
                    f"Invalid path {path!r}: bad segment {segment!r}",
                    field="path",
                    value=path,
                )
            if match.group("key"):
                selectors.append(match.group("key"))
            selectors.extend(int(i) for i in _INDEX.findall(match.group("indexes")))
        return tuple(selectors)

    selectors = list(path)
    if not selectors:
        raise ValidationError("Invalid path: empty path", field="path", value=path)
    for selector in selectors:
        # bool is an int subclass but never a list index
        if isinstance(selector, bool) or not isinstance(selector, (str, int)):
            raise ValidationError(
                f"Invalid path selector {selector!r}: expected str or int",
                field="path",
                value=path,
            )
    return tuple(selectors)


def format_path(path: Sequence[Selector]) -> str:
    """Render selectors back into dotted form."""
    out = ""
    for selector in path:
        if isinstance(selector, int):
            out += f"[{selector}]"
        else:
            out += f".{selector}" if out else selector
    return out


def lookup(document: Any, path: Sequence[Selector]) -> tuple[bool, Any]:
    """Descend ``document`` along ``path``.

    Returns ``(found, value)``. A missing key, an out-of-range index or a
    scalar where a container is expected all yield ``(False, None)``.
    """
    current = document
    for selector in path:
        if isinstance(selector, int) and not isinstance(selector, bool):
            if not isinstance(current, list) or not 0 <= selector < len(current):
                return False, None
            current = current[selector]
        else:
            if not isinstance(current, Mapping) or selector not in current:
                return False, None
            current = current[selector]
    return True, current


# =============================================================================
# Comparison
# =============================================================================


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def deep_equal(left: Any, right: Any) -> bool:
    """Structural equality that keeps booleans, numbers and strings apart."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if is_number(left) or is_number(right):
        return is_number(left) and is_number(right) and left == right
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if left.keys() != right.keys():
            return False
        return all(deep_equal(left[k], right[k]) for k in left)
    if isinstance(left, list) or isinstance(right, list):
        if not (isinstance(left, list) and isinstance(right, list)):
            return False
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    return type(left) is type(right) and left == right


def contains(observed: Any, expected: Any) -> bool:
    """Subset containment of ``expected`` within ``observed``.

    Maps: every expected key must be present in observed and contained
    recursively; extra observed keys are ignored. Lists: same length,
    element-wise containment in order. Scalars: ``deep_equal``.
    """
    if isinstance(expected, Mapping):
        if not isinstance(observed, Mapping):
            return False
        for key, value in expected.items():
            if key not in observed:
                return False
            if not contains(observed[key], value):
                return False
        return True
    if isinstance(expected, list):
        if not isinstance(observed, list) or len(observed) != len(expected):
            return False
        return all(contains(o, e) for o, e in zip(observed, expected))
    return deep_equal(observed, expected)


def first_difference(
    observed: Any, expected: Any, path: PathExpression = ()
) -> tuple[PathExpression, bool, Any, Any] | None:
    """Locate the first place where ``contains`` fails.

    Returns ``(path, found, observed_value, expected_value)`` or ``None``
    when ``observed`` contains ``expected``.
    """
    if isinstance(expected, Mapping) and isinstance(observed, Mapping):
        for key, value in expected.items():
            if key not in observed:
                return path + (key,), False, None, value
            diff = first_difference(observed[key], value, path + (key,))
            if diff is not None:
                return diff
        return None
    if (
        isinstance(expected, list)
        and isinstance(observed, list)
        and len(observed) == len(expected)
    ):
        for index, (o, e) in enumerate(zip(observed, expected)):
            diff = first_difference(o, e, path + (index,))
            if diff is not None:
                return diff
        return None
    if contains(observed, expected):
        return None
    return path, True, observed, expected


# =============================================================================
# Metadata
# =============================================================================


def get_labels(document: Mapping[str, Any]) -> dict[str, str]:
    """Copy of ``metadata.labels`` (empty when absent)."""
    found, labels = lookup(document, ("metadata", "labels"))
    if not found or not isinstance(labels, Mapping):
        return {}
    return dict(labels)


def with_labels(document: Mapping[str, Any], labels: Mapping[str, str]) -> Document:
    """Deep copy of ``document`` with ``metadata.labels`` replaced."""
    updated = copy.deepcopy(dict(document))
    metadata = updated.setdefault("metadata", {})
    metadata["labels"] = dict(labels)
    return updated


def label_selector(labels: Mapping[str, str] | None) -> str:
    """Render an equality-based selector, e.g. ``app=pool,tier=gold``."""
    if not labels:
        return ""
    return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))


def matches_selector(document: Mapping[str, Any], selector: Mapping[str, str] | None) -> bool:
    labels = get_labels(document)
    return all(labels.get(k) == v for k, v in (selector or {}).items())


def require_fields(document: Any, *paths: str) -> None:
    """Raise ValidationError unless every dotted path resolves to a non-empty string."""
    if not isinstance(document, Mapping):
        raise ValidationError("Invalid resource: document must be a mapping", value=document)
    for path in paths:
        found, value = lookup(document, parse_path(path))
        if not found or not isinstance(value, str) or not value:
            raise ValidationError(f"Invalid resource: missing {path}", field=path)


@dataclass(frozen=True)
class ResourceIdentity:
    """Identifies a target in the resource store.

    Labels double as the list selector for actions that fan out over a set
    of resources.
    """

    api_version: str
    kind: str
    namespace: str = ""
    name: str = ""
    labels: dict[str, str] = field(default_factory=dict, compare=False)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> ResourceIdentity:
        metadata = document.get("metadata") or {}
        return cls(
            api_version=document.get("apiVersion", ""),
            kind=document.get("kind", ""),
            namespace=metadata.get("namespace", "") or "",
            name=metadata.get("name", "") or "",
            labels=get_labels(document),
        )

    @property
    def gvk(self) -> str:
        return f"{self.api_version}, Kind={self.kind}"

    @property
    def selector(self) -> str:
        return label_selector(self.labels)

    def __str__(self) -> str:
        return f"{self.gvk} {self.namespace}/{self.name}"
