"""Tests for ordered parsing strategies and the degraded-listing policy."""

import pytest

from snapdeck.errors import SnapperError
from snapdeck.runner import CommandResult
from snapdeck.strategy import Strategy, run_strategies, tolerant


def _raise(stderr="boom"):
    def run():
        raise SnapperError(CommandResult(1, "", stderr), ["list"])
    return run


def test_first_non_empty_wins():
    calls = []

    def first():
        calls.append("first")
        return ["a"]

    def second():
        calls.append("second")
        return ["b"]

    assert run_strategies([Strategy("one", first), Strategy("two", second)]) == ("one", ["a"])
    assert calls == ["first"]


def test_empty_result_moves_on():
    result = run_strategies([Strategy("one", lambda: []), Strategy("two", lambda: {"k": "v"})])
    assert result == ("two", {"k": "v"})


def test_failure_moves_on():
    result = run_strategies([Strategy("one", _raise()), Strategy("two", lambda: [1])])
    assert result == ("two", [1])


def test_all_empty_is_not_an_error():
    assert run_strategies([Strategy("one", lambda: []), Strategy("two", _raise())]) == (None, None)


def test_all_failing_raises_last():
    with pytest.raises(SnapperError, match="second"):
        run_strategies([Strategy("one", _raise("first")), Strategy("two", _raise("second"))])


def test_tolerant_success():
    assert tolerant(CommandResult(0, "x\n", ""), str.split) == ["x"]


def test_tolerant_success_with_empty_output():
    assert tolerant(CommandResult(0, "", ""), str.split) == []


def test_tolerant_accepts_partial_output():
    assert tolerant(CommandResult(1, "a b", "warning"), str.split) == ["a", "b"]


def test_tolerant_raises_without_output():
    with pytest.raises(SnapperError) as excinfo:
        tolerant(CommandResult(3, "", "Unknown config."), str.split, ["-c", "x", "list"])
    assert excinfo.value.result.exit_code == 3
    assert str(excinfo.value) == "snapper list failed (exit 3): Unknown config."


def test_missing_source_does_not_count_as_success():
    with pytest.raises(SnapperError, match="Unknown config"):
        run_strategies([Strategy("one", _raise("Unknown config.")), Strategy("two", lambda: None)])


def test_missing_source_alone_is_empty():
    assert run_strategies([Strategy("one", lambda: None)]) == (None, None)
