"""Tests for explicit Result values."""

import pytest

from rln_toolkit.protocol.exceptions import NotFoundError, ValidationError
from rln_toolkit.protocol.registry import Registry
from rln_toolkit.protocol.result import Result, capture


def test_capture_success():
    registry = Registry(16)
    result = capture(registry.add_member, 5)
    assert result.ok
    assert result.value == 0
    assert result.unwrap() == 0


def test_capture_protocol_error():
    registry = Registry(16)
    result = capture(registry.remove_member, 5)
    assert not result.ok
    assert isinstance(result.error, NotFoundError)
    with pytest.raises(NotFoundError):
        result.unwrap()


def test_capture_propagates_other_errors():
    def broken():
        raise KeyError("bug")

    with pytest.raises(KeyError):
        capture(broken)


def test_result_invariants():
    with pytest.raises(ValueError):
        Result(ok=True, error=ValidationError("x"))
    with pytest.raises(ValueError):
        Result(ok=False)
    assert Result.failure(ValidationError("x")).value is None
