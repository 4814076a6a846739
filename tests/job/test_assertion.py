"""Tests for Assertable and check resolution."""

import pytest

from conftest import target

from drecipe.core.errors import ConfigError, InternalError, ValidationError
from drecipe.core.types import Assert, PathCheck, Phase, StateCheck, StateCheckOperator
from drecipe.job.assertion import Assertable, resolve_check


class TestResolveCheck:
    def test_defaults_to_state_equals(self):
        check = resolve_check("a", Assert(state={}))
        assert check == StateCheck(operator=StateCheckOperator.EQUALS)

    def test_path_check(self):
        path_check = PathCheck("status.state")
        assert resolve_check("a", Assert(state={}, path_check=path_check)) is path_check

    def test_both_rejected(self):
        spec = Assert(state={}, path_check=PathCheck("status.state"), state_check=StateCheck())
        with pytest.raises(ValidationError, match="More than one assert checks found"):
            resolve_check("a", spec)


class TestAssertable:
    """Tests for Assertable.run."""

    def test_path_check_online(self, make_runner, pool_store):
        spec = Assert(
            state=target("pool-a"),
            path_check=PathCheck(["status", "state"], "Equals", "Online"),
        )
        status = Assertable(make_runner(pool_store, name="pool-online"), spec).run()
        assert status.phase == Phase.PASSED

    def test_path_check_offline_expected(self, make_runner, pool_store):
        spec = Assert(
            state=target("pool-a"),
            path_check=PathCheck("status.state", "Equals", "Offline"),
        )
        status = Assertable(make_runner(pool_store, timeout=2), spec).run()
        assert status.phase == Phase.FAILED
        assert "expected 'Offline' got 'Online'" in status.message

    def test_default_state_check(self, make_runner, pool_store):
        spec = Assert(state=target("pool-b", status={"state": "Offline"}))
        status = Assertable(make_runner(pool_store), spec).run()
        assert status.phase == Phase.PASSED

    def test_both_checks_touch_no_store(self, make_runner, pool_store):
        spec = Assert(
            state=target("pool-a"),
            path_check=PathCheck("status.state"),
            state_check=StateCheck(),
        )
        with pytest.raises(ValidationError):
            Assertable(make_runner(pool_store), spec).run()
        assert pool_store.calls == []

    def test_missing_name(self, make_runner, pool_store):
        with pytest.raises(ConfigError, match="Missing assert name"):
            Assertable(make_runner(pool_store, name=""), Assert(state=target("pool-a"))).run()
        assert pool_store.calls == []

    @pytest.mark.parametrize("spec", [None, Assert(state=None)])
    def test_nil_state(self, make_runner, pool_store, spec):
        with pytest.raises(ConfigError, match="Nil assert state"):
            Assertable(make_runner(pool_store), spec).run()
        assert pool_store.calls == []

    def test_unknown_check_type(self, make_runner, pool_store):
        spec = Assert(state=target("pool-a"), path_check="status.state")
        with pytest.raises(InternalError):
            Assertable(make_runner(pool_store), spec).run()
