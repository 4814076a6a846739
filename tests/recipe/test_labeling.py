"""Tests for the Labeler."""

import pytest

from conftest import API_VERSION, KIND, NAMESPACE, pool, target

from drecipe.core.errors import ConfigError, ConflictError, RetryTimeoutError
from drecipe.core.types import Label, Phase
from drecipe.recipe.labeling import Labeler, is_included, merged_labels, unset_labels
from drecipe.store.memory import InMemoryResourceStore


def labels_of(store, name):
    client = store.get_client_for(API_VERSION, KIND)
    return client.get(NAMESPACE, name)["metadata"].get("labels", {})


@pytest.fixture
def label_store():
    """p1 unlabeled, p2 carrying the desired label plus another, p3 with a different value."""
    store = InMemoryResourceStore()
    store.load([
        pool("p1"),
        pool("p2", labels={"a": "1", "b": "2"}),
        pool("p3", labels={"a": "9"}),
    ])
    store.calls.clear()
    return store


class TestLabelHelpers:
    def test_is_included(self):
        assert is_included(Label(state={}, apply_labels={"a": "1"}), "anything")
        label = Label(state={}, apply_labels={"a": "1"}, include_by_names={"p1"})
        assert is_included(label, "p1")
        assert not is_included(label, "p2")

    def test_merged_labels(self):
        assert merged_labels({"a": "0", "b": "2"}, {"a": "1"}) == {"a": "1", "b": "2"}

    def test_unset_labels(self):
        assert unset_labels({"a": "1", "b": "2"}, {"a": "1"}) == {"b": "2"}

    def test_unset_requires_exact_values(self):
        assert unset_labels({"a": "9"}, {"a": "1"}) is None

    def test_unset_requires_every_key(self):
        assert unset_labels({"a": "1"}, {"a": "1", "c": "3"}) is None

    def test_include_by_names_normalized(self):
        assert Label(state={}, include_by_names=["x", "x"]).include_by_names == frozenset({"x"})

    def test_include_by_names_single_string(self):
        assert Label(state={}, include_by_names="pool-a").include_by_names == frozenset({"pool-a"})


class TestLabeler:
    """Tests for Labeler.run."""

    def test_labels_every_resource(self, make_runner, label_store):
        result = Labeler(make_runner(label_store), Label(state=target(), apply_labels={"a": "1"})).run()
        assert result.phase == Phase.PASSED
        assert (result.found, result.labeled, result.unlabeled) == (3, 3, 0)
        assert labels_of(label_store, "p1") == {"a": "1"}
        assert labels_of(label_store, "p2") == {"a": "1", "b": "2"}
        assert labels_of(label_store, "p3") == {"a": "1"}

    def test_include_and_auto_unset(self, make_runner, label_store):
        label = Label(
            state=target(),
            apply_labels={"a": "1"},
            include_by_names={"p1"},
            auto_unset=True,
        )
        result = Labeler(make_runner(label_store), label).run()
        assert labels_of(label_store, "p1") == {"a": "1"}
        assert labels_of(label_store, "p2") == {"b": "2"}
        assert labels_of(label_store, "p3") == {"a": "9"}
        assert result.verbose == "Resource labeling: Found 3: Labeled 1: UnLabeled 1"
        assert result.message == f"Label resource {NAMESPACE} : GVK {API_VERSION}, Kind={KIND}"

    def test_excluded_left_alone_without_auto_unset(self, make_runner, label_store):
        label = Label(state=target(), apply_labels={"a": "1"}, include_by_names={"p1"})
        result = Labeler(make_runner(label_store), label).run()
        assert labels_of(label_store, "p2") == {"a": "1", "b": "2"}
        assert (result.labeled, result.unlabeled) == (1, 0)

    def test_no_op_write_skipped(self, make_runner, label_store):
        label = Label(state=target(), apply_labels={"a": "1"}, include_by_names={"p2"})
        result = Labeler(make_runner(label_store), label).run()
        assert result.labeled == 1
        assert not [c for c in label_store.calls if c[0] == "update"]

    def test_state_labels_select(self, make_runner, pool_store):
        state = target()
        state["metadata"]["labels"] = {"tier": "gold"}
        result = Labeler(make_runner(pool_store), Label(state=state, apply_labels={"zone": "a"})).run()
        assert result.found == 1
        assert labels_of(pool_store, "pool-c") == {"tier": "gold", "zone": "a"}
        assert labels_of(pool_store, "pool-a") == {}

    def test_counts_reset_after_conflict(self, make_runner, label_store, clock):
        label_store.inject_fault("update", ConflictError("stale resourceVersion"))
        label = Label(state=target(), apply_labels={"a": "1"}, include_by_names={"p1"}, auto_unset=True)
        result = Labeler(make_runner(label_store), label).run()
        assert (result.found, result.labeled, result.unlabeled) == (3, 1, 1)
        assert len(clock.sleeps) == 1
        assert [c[0] for c in label_store.calls].count("list") == 2

    def test_persistent_conflict_times_out(self, make_runner, label_store):
        label_store.inject_fault("update", ConflictError("stale resourceVersion"), times=100)
        with pytest.raises(RetryTimeoutError) as exc_info:
            Labeler(make_runner(label_store, timeout=2), Label(state=target(), apply_labels={"a": "1"})).run()
        assert isinstance(exc_info.value.__cause__, ConflictError)

    def test_empty_selection(self, make_runner, empty_store):
        result = Labeler(make_runner(empty_store), Label(state=target(), apply_labels={"a": "1"})).run()
        assert result.phase == Phase.PASSED
        assert result.found == 0

    def test_missing_apply_labels(self, make_runner, label_store):
        with pytest.raises(ConfigError, match="Missing ApplyLabels"):
            Labeler(make_runner(label_store), Label(state=target())).run()
        assert label_store.calls == []

    def test_nil_state(self, make_runner, label_store):
        with pytest.raises(ConfigError, match="Nil label state"):
            Labeler(make_runner(label_store), Label(state=None, apply_labels={"a": "1"})).run()
        assert label_store.calls == []
