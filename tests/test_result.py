"""Tests for Result pattern implementation."""

from __future__ import annotations

import pytest

from core.result import Failure, Success, failure, success
from services.orders.errors import OrderCalculationError, ValidationError


class TestSuccess:
    """Tests for Success class."""

    def test_is_success_returns_true(self) -> None:
        """Success.is_success() should return True."""
        result = Success(1_050_000)

        assert result.is_success() is True
        assert result.is_failure() is False

    def test_unwrap_returns_value(self) -> None:
        """Success.unwrap() should return the contained value."""
        assert Success("10500.00").unwrap() == "10500.00"

    def test_unwrap_or_ignores_default(self) -> None:
        """Success.unwrap_or() should return value, ignoring default."""
        assert Success(100).unwrap_or(0) == 100

    def test_map_transforms_value(self) -> None:
        """Success.map() should transform the contained value."""
        mapped = Success(1_050_000).map(lambda minor: minor // 100)

        assert mapped.unwrap() == 10_500


class TestFailure:
    """Tests for Failure class."""

    @pytest.fixture()
    def error(self) -> OrderCalculationError:
        """A wrapped validation error."""
        return OrderCalculationError(ValidationError("items[0].quantity", "must be positive"))

    def test_is_failure_returns_true(self, error: OrderCalculationError) -> None:
        """Failure.is_failure() should return True."""
        result = Failure(error)

        assert result.is_failure() is True
        assert result.is_success() is False

    def test_unwrap_raises(self, error: OrderCalculationError) -> None:
        """Failure.unwrap() should raise with the error message."""
        with pytest.raises(ValueError, match="Cannot unwrap Failure"):
            Failure(error).unwrap()

    def test_unwrap_or_returns_default(self, error: OrderCalculationError) -> None:
        """Failure.unwrap_or() should return the default."""
        assert Failure(error).unwrap_or(0) == 0

    def test_map_returns_self(self, error: OrderCalculationError) -> None:
        """Failure.map() should not call the function."""
        result: Failure[OrderCalculationError] = Failure(error)

        assert result.map(lambda x: x * 2) is result


class TestHelpers:
    """Tests for success() and failure() helpers."""

    def test_success_helper(self) -> None:
        """success() should create a Success."""
        assert isinstance(success(42), Success)

    def test_failure_helper(self) -> None:
        """failure() should create a Failure."""
        result = failure("remote unavailable")

        assert isinstance(result, Failure)
        assert result.error == "remote unavailable"

    def test_pattern_matching(self) -> None:
        """Results should work with structural pattern matching."""
        match success(7):
            case Success(value):
                assert value == 7
            case Failure():
                pytest.fail("Expected Success")
