"""Tests for caller-supplied range strings."""

import pytest

from src.wd_common.errors import ValidationError
from src.wd_planning.domain.ranges import IntRange, Range, parse_range, parse_stake_range


class TestParseRange:
    def test_min_max(self) -> None:
        assert parse_range("10000-14000") == Range(10000, 14000)

    def test_spaces_and_decimals(self) -> None:
        assert parse_range(" 1.5 - 3 ") == Range(1.5, 3)

    def test_single_value(self) -> None:
        assert parse_range("500") == Range(500, 500)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_is_none(self, value: str | None) -> None:
        assert parse_range(value) is None

    @pytest.mark.parametrize("value", ["abc", "5-", "-5", "1-2-3", "3-1", "0-5", "0"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValidationError):
            parse_range(value, "interval range")

    def test_error_names_field(self) -> None:
        with pytest.raises(ValidationError, match="interval range"):
            parse_range("x", "interval range")


class TestParseStakeRange:
    def test_whole_units(self) -> None:
        assert parse_stake_range("100-500") == IntRange(100, 500)

    def test_fractional_rejected(self) -> None:
        with pytest.raises(ValidationError, match="whole units"):
            parse_stake_range("100.5-200")

    def test_none(self) -> None:
        assert parse_stake_range(None) is None
