"""
Tests for the exponential backoff primitive.
"""

import logging

import pytest

from stepmachine.engine.backoff import exponential_backoff
from stepmachine.engine.errors import StateMachineError


@pytest.fixture
def sleeps(monkeypatch):
    """Record backoff delays instead of sleeping."""
    delays = []
    monkeypatch.setattr("stepmachine.engine.backoff.time.sleep", delays.append)
    return delays


def make_flaky(failures, message="TRANSIENT"):
    """Operation failing `failures` times before succeeding."""
    calls = []

    def operation(data):
        calls.append(data)
        if len(calls) <= failures:
            raise StateMachineError(message)

    return operation, calls


class TestExponentialBackoff:
    """Tests for exponential_backoff."""

    def test_success_on_first_attempt(self, sleeps):
        """Test that a succeeding operation is called once."""
        operation, calls = make_flaky(0)

        exponential_backoff(operation, {"x": 1}, retries=3, base_delay=1.0)

        assert len(calls) == 1
        assert calls[0] == {"x": 1}
        assert sleeps == []

    def test_fails_twice_then_succeeds(self, sleeps):
        """Test recovery after two failures within the budget."""
        operation, calls = make_flaky(2)

        exponential_backoff(operation, None, retries=3, base_delay=1.0)

        assert len(calls) == 3
        assert sleeps == [1.0, 2.0]

    def test_always_failing_raises_after_final_call(self, sleeps):
        """Test that N retries are followed by one last call."""
        operation, calls = make_flaky(100, message="DOWN")

        with pytest.raises(StateMachineError, match="DOWN"):
            exponential_backoff(operation, None, retries=3, base_delay=1.0)

        assert len(calls) == 4
        assert sleeps == [1.0, 2.0, 4.0]

    def test_final_call_may_succeed(self, sleeps):
        """Test that the last call's success is returned normally."""
        operation, calls = make_flaky(2)

        exponential_backoff(operation, None, retries=2, base_delay=1.0)

        assert len(calls) == 3
        assert sleeps == [1.0, 2.0]

    def test_default_budget_is_five(self, sleeps):
        """Test the default retry budget."""
        operation, calls = make_flaky(100)

        with pytest.raises(StateMachineError):
            exponential_backoff(operation, None, base_delay=1.0)

        assert len(calls) == 6
        assert sleeps == [1.0, 2.0, 4.0, 8.0, 16.0]

    def test_budget_above_maximum_warns_and_is_honoured(self, sleeps, caplog):
        """Test that a large budget only produces a warning."""
        operation, calls = make_flaky(100)

        with caplog.at_level(logging.WARNING, logger="stepmachine.engine.backoff"):
            with pytest.raises(StateMachineError):
                exponential_backoff(operation, None, retries=7, base_delay=1.0)

        assert len(calls) == 8
        assert sleeps[-1] == 64.0
        assert any("exceeds" in r.getMessage() for r in caplog.records)

    def test_no_warning_within_maximum(self, sleeps, caplog):
        """Test that budgets up to the maximum do not warn."""
        operation, _ = make_flaky(0)

        with caplog.at_level(logging.WARNING, logger="stepmachine.engine.backoff"):
            exponential_backoff(operation, None, retries=5, base_delay=1.0)

        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_custom_base_delay(self, sleeps):
        """Test that the delay doubles from the given base."""
        operation, _ = make_flaky(3)

        exponential_backoff(operation, None, retries=3, base_delay=0.5)

        assert sleeps == [0.5, 1.0, 2.0]

    def test_zero_budget_calls_once(self, sleeps):
        """Test that a zero budget still makes the final call."""
        operation, calls = make_flaky(1)

        with pytest.raises(StateMachineError):
            exponential_backoff(operation, None, retries=0)

        assert len(calls) == 1
        assert sleeps == []
