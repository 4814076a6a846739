"""Resource store contracts and the in-memory implementation."""

from drecipe.store.memory import InMemoryResourceStore
from drecipe.store.protocols import ResourceClient, ResourceStore

__all__ = ["InMemoryResourceStore", "ResourceClient", "ResourceStore"]
