"""In-memory resource store.

Implements the ``ResourceStore`` contract against a dict, with the
semantics a real API server gives the engine:

- ``metadata.resourceVersion`` bumps on every write; ``update`` with a stale
  version raises ``ConflictError``.
- ``create_or_merge`` performs a JSON merge (maps merged recursively, lists
  and scalars replaced, ``None`` deletes a key) over the stored document and
  creates it when absent.
- Unregistered apiVersion/kind pairs raise ``UnknownResourceTypeError``.

Faults can be queued per operation to exercise retry paths:

    store.inject_fault("update", ConflictError("simulated"), times=2)

Thread-safe for single-process use.
"""

from __future__ import annotations

import copy
import threading
from collections import defaultdict, deque
from collections.abc import Iterable, Mapping
from typing import Any

from drecipe.core.document import matches_selector, require_fields
from drecipe.core.errors import (
    AlreadyExistsError,
    ConflictError,
    InvalidResourceError,
    ResourceNotFoundError,
    UnknownResourceTypeError,
    ValidationError,
)
from drecipe.core.logging import get_logger

logger = get_logger(__name__)

_Key = tuple[str, str, str, str]


def merge_documents(current: Any, patch: Any) -> Any:
    """JSON merge ``patch`` onto ``current`` (RFC 7386 semantics)."""
    if not isinstance(patch, Mapping):
        return copy.deepcopy(patch)
    merged = copy.deepcopy(dict(current)) if isinstance(current, Mapping) else {}
    for key, value in patch.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = merge_documents(merged.get(key), value)
    return merged


class InMemoryResourceStore:
    """Dict-backed store holding documents of registered types.

    Attributes:
        allow_any_type: Accept any apiVersion/kind without registration
    """

    def __init__(
        self,
        types: Iterable[tuple[str, str]] = (),
        *,
        allow_any_type: bool = False,
    ):
        self.allow_any_type = allow_any_type
        self._types: set[tuple[str, str]] = set(types)
        self._objects: dict[_Key, dict[str, Any]] = {}
        self._faults: dict[str, deque[Exception]] = defaultdict(deque)
        self._version = 0
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str, str]] = []

    def register_type(self, api_version: str, kind: str) -> None:
        self._types.add((api_version, kind))

    def get_client_for(self, api_version: str, kind: str) -> InMemoryResourceClient:
        self._record("get_client_for", "", kind)
        if not self.allow_any_type and (api_version, kind) not in self._types:
            raise UnknownResourceTypeError(api_version, kind)
        return InMemoryResourceClient(self, api_version, kind)

    def load(self, documents: Iterable[Mapping[str, Any]]) -> None:
        """Seed the store, registering each document's type.

        Raises:
            InvalidResourceError: a document lacks apiVersion, kind or metadata.name
        """
        for document in documents:
            try:
                require_fields(document, "apiVersion", "kind", "metadata.name")
            except ValidationError as e:
                raise InvalidResourceError(f"Invalid seed document: {e.message}", cause=e) from e
            self.register_type(document["apiVersion"], document["kind"])
            self.get_client_for(document["apiVersion"], document["kind"]).create(document)

    def inject_fault(self, operation: str, error: Exception, times: int = 1) -> None:
        """Raise ``error`` on the next ``times`` calls of ``operation``."""
        with self._lock:
            for _ in range(times):
                self._faults[operation].append(error)

    def objects(self) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(o) for _, o in sorted(self._objects.items())]

    # ------------------------------------------------------------------ #
    # Internal helpers, called with the lock held unless noted
    # ------------------------------------------------------------------ #

    def _record(self, operation: str, namespace: str, name: str) -> None:
        with self._lock:
            self.calls.append((operation, namespace, name))
            faults = self._faults.get(operation)
            error = faults.popleft() if faults else None
        if error is not None:
            logger.debug("store_fault_injected", operation=operation, error=str(error))
            raise error

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _store(self, key: _Key, document: dict[str, Any]) -> dict[str, Any]:
        document.setdefault("metadata", {})["resourceVersion"] = self._next_version()
        self._objects[key] = document
        return copy.deepcopy(document)


class InMemoryResourceClient:
    """Per-type view over an ``InMemoryResourceStore``."""

    def __init__(self, store: InMemoryResourceStore, api_version: str, kind: str):
        self._store = store
        self.api_version = api_version
        self.kind = kind

    def _key(self, namespace: str, name: str) -> _Key:
        return (self.api_version, self.kind, namespace or "", name)

    def _key_of(self, document: Mapping[str, Any]) -> _Key:
        try:
            require_fields(document, "apiVersion", "kind", "metadata.name")
        except ValidationError as e:
            raise InvalidResourceError(e.message, cause=e) from e
        if (document["apiVersion"], document["kind"]) != (self.api_version, self.kind):
            raise InvalidResourceError(
                f"Document type {document['apiVersion']}/{document['kind']} "
                f"does not match client type {self.api_version}/{self.kind}"
            )
        metadata = document["metadata"]
        return self._key(metadata.get("namespace", ""), metadata["name"])

    def get(self, namespace: str, name: str) -> dict[str, Any]:
        self._store._record("get", namespace, name)
        with self._store._lock:
            found = self._store._objects.get(self._key(namespace, name))
            if found is None:
                raise ResourceNotFoundError(namespace, name)
            return copy.deepcopy(found)

    def list(
        self, namespace: str, label_selector: Mapping[str, str] | None = None
    ) -> list[dict[str, Any]]:
        self._store._record("list", namespace, "")
        with self._store._lock:
            return [
                copy.deepcopy(obj)
                for (api_version, kind, ns, _), obj in sorted(self._store._objects.items())
                if (api_version, kind) == (self.api_version, self.kind)
                and (not namespace or ns == namespace)
                and matches_selector(obj, label_selector)
            ]

    def create(self, document: Mapping[str, Any]) -> dict[str, Any]:
        key = self._key_of(document)
        self._store._record("create", key[2], key[3])
        with self._store._lock:
            if key in self._store._objects:
                raise AlreadyExistsError(f"Resource already exists: {key[2]}/{key[3]}")
            stored = copy.deepcopy(dict(document))
            return self._store._store(key, stored)

    def update(self, document: Mapping[str, Any]) -> dict[str, Any]:
        key = self._key_of(document)
        self._store._record("update", key[2], key[3])
        with self._store._lock:
            current = self._store._objects.get(key)
            if current is None:
                raise ResourceNotFoundError(key[2], key[3])
            wanted = (document.get("metadata") or {}).get("resourceVersion")
            actual = current["metadata"]["resourceVersion"]
            if wanted and wanted != actual:
                raise ConflictError(
                    f"Conflict updating {key[2]}/{key[3]}: "
                    f"resourceVersion {wanted} is stale (current {actual})"
                )
            return self._store._store(key, copy.deepcopy(dict(document)))

    def create_or_merge(self, document: Mapping[str, Any]) -> dict[str, Any]:
        key = self._key_of(document)
        self._store._record("create_or_merge", key[2], key[3])
        with self._store._lock:
            current = self._store._objects.get(key)
            if current is None:
                return self._store._store(key, copy.deepcopy(dict(document)))
            patch = copy.deepcopy(dict(document))
            patch.get("metadata", {}).pop("resourceVersion", None)
            return self._store._store(key, merge_documents(current, patch))
