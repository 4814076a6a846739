"""Tests for the recipe runner."""

import pytest

from conftest import API_VERSION, KIND, NAMESPACE, pool, target

from drecipe.core.errors import InternalError
from drecipe.core.types import Apply, Assert, Label, PathCheck, Phase
from drecipe.recipe.runner import Recipe, RecipeRunner, Task, TaskResult


@pytest.fixture
def recipe_retry(make_retry):
    return make_retry(interval=1, timeout=2)


class TestTask:
    @pytest.mark.parametrize("action,kind", [
        (Assert(state={}), "assert"),
        (Apply(state={}), "apply"),
        (Label(state={}), "label"),
    ])
    def test_kind(self, action, kind):
        assert Task("t", action).kind == kind

    def test_unknown_action(self):
        with pytest.raises(InternalError):
            Task("t", object()).kind


class TestTaskResult:
    def test_skipped_status(self):
        result = TaskResult(name="t", action="apply", phase=None, skipped=True)
        assert result.status == "Skipped"
        assert result.to_dict()["message"] == ""


class TestRecipeRunner:
    """End-to-end runs against the in-memory store."""

    def test_all_tasks_pass(self, empty_store, recipe_retry):
        recipe = Recipe(
            name="provision",
            retry=recipe_retry,
            tasks=[
                Task("create", Apply(state=pool("pool-a"))),
                Task("online", Assert(
                    state=target("pool-a"),
                    path_check=PathCheck("status.state", "Equals", "Online"),
                )),
                Task("tag", Label(state=target(), apply_labels={"tier": "gold"})),
            ],
        )
        result = RecipeRunner(empty_store, recipe).run()
        assert result.phase == Phase.PASSED
        assert [t.status for t in result.tasks] == ["Passed", "Passed", "Passed"]
        assert result.failed_task is None
        labels = empty_store.get_client_for(API_VERSION, KIND).get(NAMESPACE, "pool-a")["metadata"]["labels"]
        assert labels == {"tier": "gold"}

    def test_failure_skips_remaining_tasks(self, pool_store, recipe_retry):
        recipe = Recipe(
            name="check",
            retry=recipe_retry,
            tasks=[
                Task("offline", Assert(
                    state=target("pool-a"),
                    path_check=PathCheck("status.state", "Equals", "Offline"),
                )),
                Task("tag", Label(state=target(), apply_labels={"tier": "gold"})),
            ],
        )
        result = RecipeRunner(pool_store, recipe).run()
        assert result.phase == Phase.FAILED
        assert result.failed_task.name == "offline"
        assert result.tasks[1].skipped
        assert not [c for c in pool_store.calls if c[0] == "list"]

    def test_engine_error_becomes_failed_task(self, empty_store, recipe_retry):
        recipe = Recipe(name="broken", retry=recipe_retry, tasks=[Task("apply", Apply(state=None))])
        result = RecipeRunner(empty_store, recipe).run()
        assert result.phase == Phase.FAILED
        assert result.tasks[0].error.startswith("ConfigError: ")
        assert result.tasks[0].result is None

    def test_task_retry_overrides_recipe(self, pool_store, make_retry, clock):
        recipe = Recipe(
            name="quick",
            retry=make_retry(interval=1, timeout=30),
            tasks=[Task(
                "offline",
                Assert(state=target("pool-a"), path_check=PathCheck("status.state", "Equals", "Offline")),
                retry=make_retry(interval=1, timeout=1),
            )],
        )
        RecipeRunner(pool_store, recipe).run()
        assert clock.now == 1

    def test_to_dict(self, pool_store, recipe_retry):
        recipe = Recipe(
            name="check",
            retry=recipe_retry,
            tasks=[Task("online", Assert(state=target("pool-a", status={"state": "Online"})))],
        )
        data = RecipeRunner(pool_store, recipe).run().to_dict()
        assert data["name"] == "check"
        assert data["phase"] == "Passed"
        assert data["tasks"][0]["action"] == "assert"
        assert data["tasks"][0]["status"] == "Passed"
