"""Tests for BaseRunner: store access and error-aware waiting."""

import pytest

from drecipe.core.document import ResourceIdentity
from drecipe.core.errors import (
    ConfigError,
    ConflictError,
    InvalidResourceError,
    RetryTimeoutError,
    UnknownResourceTypeError,
)
from drecipe.execution.base import Attempt


def scripted(*outcomes):
    """Attempt function replaying ``outcomes``: bools are returned, exceptions raised."""
    remaining = list(outcomes)
    calls = []

    def fn():
        calls.append(1)
        outcome = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    fn.calls = calls
    return fn


class TestAttempt:
    def test_retryable_error_becomes_not_done(self):
        attempt = Attempt(scripted(ConflictError("stale")))
        assert attempt() is False
        assert isinstance(attempt.last_error, ConflictError)

    def test_success_clears_last_error(self):
        attempt = Attempt(scripted(ConflictError("stale"), True))
        attempt()
        assert attempt() is True
        assert attempt.last_error is None
        assert attempt.count == 2

    def test_non_retryable_error_propagates(self):
        attempt = Attempt(scripted(InvalidResourceError("bad")))
        with pytest.raises(InvalidResourceError):
            attempt()


class TestBaseRunnerWait:
    """Tests for BaseRunner.wait."""

    def test_done_first_time(self, make_runner, empty_store, clock):
        fn = scripted(True)
        assert make_runner(empty_store).wait(fn, "x") is True
        assert len(fn.calls) == 1

    def test_retryable_error_is_retried(self, make_runner, empty_store):
        fn = scripted(ConflictError("stale"), ConflictError("stale"), True)
        assert make_runner(empty_store).wait(fn, "x") is True
        assert len(fn.calls) == 3

    def test_non_retryable_error_stops_at_once(self, make_runner, empty_store, clock):
        fn = scripted(InvalidResourceError("bad"))
        with pytest.raises(InvalidResourceError):
            make_runner(empty_store).wait(fn, "x")
        assert len(fn.calls) == 1
        assert clock.sleeps == []

    def test_unmet_condition_returns_false(self, make_runner, empty_store):
        fn = scripted(False)
        assert make_runner(empty_store, timeout=3).wait(fn, "x") is False
        assert len(fn.calls) == 4

    def test_persistent_store_error_raises_chained_timeout(self, make_runner, empty_store):
        conflict = ConflictError("stale resourceVersion")
        with pytest.raises(RetryTimeoutError) as exc_info:
            make_runner(empty_store, timeout=2).wait(scripted(conflict), "label pools")
        error = exc_info.value
        assert error.__cause__ is conflict
        assert error.cause is conflict
        assert "stale resourceVersion" in error.message

    def test_error_then_unmet_condition_returns_false(self, make_runner, empty_store):
        fn = scripted(ConflictError("stale"), False)
        assert make_runner(empty_store, timeout=2).wait(fn, "x") is False


class TestGetClientFor:
    def test_missing_kind(self, make_runner, empty_store):
        identity = ResourceIdentity(api_version="openebs.io/v1alpha1", kind="")
        with pytest.raises(ConfigError):
            make_runner(empty_store).get_client_for(identity)
        assert empty_store.calls == []

    def test_unknown_type(self, make_runner, empty_store):
        identity = ResourceIdentity(api_version="v1", kind="Nope")
        with pytest.raises(UnknownResourceTypeError):
            make_runner(empty_store).get_client_for(identity)

    def test_registered_type(self, make_runner, empty_store):
        identity = ResourceIdentity(api_version="openebs.io/v1alpha1", kind="CPool")
        client = make_runner(empty_store).get_client_for(identity)
        assert client.kind == "CPool"
