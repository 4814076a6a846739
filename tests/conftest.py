"""
Shared pytest fixtures and configuration for drecipe tests.

This module provides:
- A fake clock so retry loops run without sleeping
- Retry policy and runner factories bound to that clock
- An in-memory store seeded with a small pool inventory
- Logging reset between tests

Usage:
    def test_something(make_runner, pool_store):
        runner = make_runner(pool_store, timeout=3)
        ...
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest
import structlog

from drecipe.execution.base import BaseRunner
from drecipe.execution.retry import Retryable
from drecipe.store.memory import InMemoryResourceStore

API_VERSION = "openebs.io/v1alpha1"
KIND = "CPool"
NAMESPACE = "storage"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if test_path.parts[0] == "cli" or test_path.name == "test_runner.py":
            item.add_marker(pytest.mark.integration)
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_retry(clock):
    """Factory for a ``Retryable`` driven by the fake clock."""

    def _make(interval: float = 1.0, timeout: float = 5.0, **kwargs: Any) -> Retryable:
        return Retryable(interval=interval, timeout=timeout, clock=clock, sleep=clock.sleep, **kwargs)

    return _make


@pytest.fixture
def make_runner(make_retry):
    """Factory for a ``BaseRunner`` with a fake-clock retry policy."""

    def _make(store, name: str = "test-action", interval: float = 1.0, timeout: float = 5.0) -> BaseRunner:
        return BaseRunner(store=store, name=name, retry=make_retry(interval=interval, timeout=timeout))

    return _make


# =============================================================================
# Documents
# =============================================================================


def pool(name: str, *, labels: dict[str, str] | None = None, state: str = "Online",
         namespace: str = NAMESPACE, **spec: Any) -> dict[str, Any]:
    """Build a CPool document."""
    metadata: dict[str, Any] = {"name": name, "namespace": namespace}
    if labels is not None:
        metadata["labels"] = dict(labels)
    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": metadata,
        "spec": {"node": "node-1", **spec},
        "status": {"state": state, "capacity": 100},
    }


def target(name: str = "", *, namespace: str = NAMESPACE, **extra: Any) -> dict[str, Any]:
    """A state that only identifies a pool (plus any extra top-level content)."""
    metadata: dict[str, Any] = {"namespace": namespace}
    if name:
        metadata["name"] = name
    return {"apiVersion": API_VERSION, "kind": KIND, "metadata": metadata, **copy.deepcopy(extra)}


@pytest.fixture
def pool_store() -> InMemoryResourceStore:
    """Store holding pool-a (Online), pool-b (Offline) and pool-c (Online, labeled)."""
    store = InMemoryResourceStore()
    store.load([
        pool("pool-a"),
        pool("pool-b", state="Offline"),
        pool("pool-c", labels={"tier": "gold"}),
    ])
    store.calls.clear()
    return store


@pytest.fixture
def empty_store() -> InMemoryResourceStore:
    return InMemoryResourceStore([(API_VERSION, KIND)])


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop any structlog configuration a test installed."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
