"""Tests for handler results."""
import pytest

from command_handlers import HandlerError, Result
from command_handlers.domain.exceptions import ResultUnwrapError


class TestResult:
    """Test discriminated result values."""

    def test_success_carries_value(self):
        result = Result.success(3)

        assert result.is_success
        assert not result.is_failure
        assert result.unwrap() == 3

    def test_success_without_value(self):
        result = Result.success()

        assert result.is_success
        assert result.value is None

    def test_failure_from_exception(self):
        """Test that an exception is converted into a structured error."""
        error = ValueError("bad input")

        result = Result.failure(error)

        assert result.is_failure
        assert result.error.message == "bad input"
        assert result.error.code == "ValueError"
        assert result.error.exception is error

    def test_failure_from_message(self):
        result = Result.failure("not allowed")

        assert result.error == HandlerError(message="not allowed")

    def test_unwrap_failure_raises(self):
        result = Result.failure(HandlerError(message="boom", code="E1"))

        with pytest.raises(ResultUnwrapError, match="boom"):
            result.unwrap()

    def test_inconsistent_results_are_rejected(self):
        with pytest.raises(ValueError, match="cannot carry an error"):
            Result(is_success=True, error=HandlerError(message="x"))
        with pytest.raises(ValueError, match="must carry an error"):
            Result(is_success=False)
