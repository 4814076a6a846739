"""
Resource store contracts.

The engine never talks to a networked backend directly. Actions resolve a
``ResourceClient`` per apiVersion/kind through a ``ResourceStore`` and use
the handful of calls below. Any object matching the shape satisfies the
protocol; ``drecipe.store.memory`` ships an in-memory implementation.

Error contract:
    Implementations raise the ``StoreError`` family from
    ``drecipe.core.errors`` and set ``retryable`` to say whether the same
    call may succeed later. ``ConflictError`` and ``AlreadyExistsError`` are
    retryable; ``ResourceNotFoundError``, ``InvalidResourceError`` and
    ``UnknownResourceTypeError`` are not.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ResourceClient(Protocol):
    """Typed access to one resource type."""

    def get(self, namespace: str, name: str) -> dict[str, Any]:
        """Fetch one document. Raises ResourceNotFoundError when absent."""
        ...

    def list(
        self, namespace: str, label_selector: Mapping[str, str] | None = None
    ) -> list[dict[str, Any]]:
        """List documents in ``namespace`` ("" for all) matching every selector label."""
        ...

    def create(self, document: Mapping[str, Any]) -> dict[str, Any]:
        """Create a document. Raises AlreadyExistsError when present."""
        ...

    def update(self, document: Mapping[str, Any]) -> dict[str, Any]:
        """Replace a document. Raises ConflictError on a stale resourceVersion."""
        ...

    def create_or_merge(self, document: Mapping[str, Any]) -> dict[str, Any]:
        """Merge ``document`` into the stored one, creating it when absent."""
        ...


@runtime_checkable
class ResourceStore(Protocol):
    """Resolves per-type clients."""

    def get_client_for(self, api_version: str, kind: str) -> ResourceClient:
        """Raises UnknownResourceTypeError for unregistered types."""
        ...


__all__ = ["ResourceClient", "ResourceStore"]
