"""Tests for stake planning (平均 / 优选) and delay scheduling."""

import random

import pytest

from src.wd_common.enums import DistributionMode
from src.wd_common.errors import ValidationError
from src.wd_planning.domain.planner import (
    MIN_DELAY_STEP_SECONDS,
    build_plan,
    plan_average,
    schedule_delays,
    split_even,
)
from src.wd_planning.domain.ranges import IntRange, Range
from tests.unit.fakes import make_account

UNIT = 100  # cents per stake unit


def _fixed_range(low: int, high: int):  # type: ignore[no-untyped-def]
    return lambda _account: IntRange(low, high)


class TestSplitEven:
    def test_exact_split(self) -> None:
        assert split_even(300, 3) == [100, 100, 100]

    def test_remainder_goes_to_first(self) -> None:
        assert split_even(301, 3) == [101, 100, 100]
        assert split_even(302, 3) == [101, 101, 100]

    def test_zero_count(self) -> None:
        assert split_even(300, 0) == []


class TestAverageMode:
    def test_three_accounts_even(self) -> None:
        accounts = [make_account(i) for i in (1, 2, 3)]
        plan = build_plan(
            DistributionMode.AVERAGE, accounts, 300 * UNIT, UNIT, 1,
            Range(1, 2), _fixed_range(1, 1000), rng=random.Random(1),
        )
        assert [i.stake for i in plan.items] == [10_000, 10_000, 10_000]

    def test_remainder_to_first_account(self) -> None:
        accounts = [make_account(i) for i in (1, 2, 3)]
        plan = build_plan(
            DistributionMode.AVERAGE, accounts, 301 * UNIT, UNIT, 1,
            Range(1, 2), _fixed_range(1, 1000), rng=random.Random(1),
        )
        assert [i.stake for i in plan.items] == [10_100, 10_000, 10_000]
        assert plan.planned_total == 301 * UNIT
        assert plan.unplanned == 0

    def test_conserves_total_for_any_amount(self) -> None:
        rng = random.Random(3)
        accounts = [make_account(i) for i in range(1, 8)]
        for _ in range(100):
            units = rng.randint(50, 20_000)
            plan = build_plan(
                DistributionMode.AVERAGE, accounts, units * UNIT, UNIT, 50,
                Range(1, 2), _fixed_range(50, 50_000), rng=rng,
            )
            assert plan.planned_total == units * UNIT
            assert all(i.stake >= 50 * UNIT for i in plan.items)

    def test_quantity_limits_accounts(self) -> None:
        accounts = [make_account(i) for i in range(1, 6)]
        pairs = plan_average(accounts, 600, 50, quantity=2)
        assert [(a.id, u) for a, u in pairs] == [(1, 300), (2, 300)]

    def test_drops_accounts_below_minimum(self) -> None:
        accounts = [make_account(i) for i in range(1, 6)]
        pairs = plan_average(accounts, 120, 50)
        assert [u for _, u in pairs] == [60, 60]

    def test_total_below_minimum_rejected(self) -> None:
        with pytest.raises(ValidationError):
            plan_average([make_account(1)], 40, 50)


class TestPreferredMode:
    def test_stakes_within_range_and_total(self) -> None:
        rng = random.Random(11)
        accounts = [make_account(i) for i in range(1, 11)]
        for _ in range(50):
            plan = build_plan(
                DistributionMode.PREFERRED, accounts, 5_000 * UNIT, UNIT, 50,
                Range(1, 3), _fixed_range(100, 800), rng=rng,
            )
            assert plan.planned_total <= 5_000 * UNIT
            for item in plan.items:
                assert item.stake % UNIT == 0
                assert item.stake >= 50 * UNIT
                assert item.stake <= 800 * UNIT
                assert item.single_limit == 800 * UNIT

    def test_accounts_used_in_rank_order(self) -> None:
        accounts = [make_account(i) for i in (5, 2, 9)]
        plan = build_plan(
            DistributionMode.PREFERRED, accounts, 100_000 * UNIT, UNIT, 50,
            Range(1, 2), _fixed_range(100, 200), rng=random.Random(0),
        )
        assert [i.account.id for i in plan.items] == [5, 2, 9]

    def test_stops_when_total_exhausted(self) -> None:
        accounts = [make_account(i) for i in range(1, 6)]
        plan = build_plan(
            DistributionMode.PREFERRED, accounts, 300 * UNIT, UNIT, 50,
            Range(1, 2), _fixed_range(200, 200), rng=random.Random(0),
        )
        assert [i.stake for i in plan.items] == [20_000, 10_000]

    def test_small_leftover_folded_into_stake(self) -> None:
        accounts = [make_account(1), make_account(2)]
        plan = build_plan(
            DistributionMode.PREFERRED, accounts, 230 * UNIT, UNIT, 50,
            Range(1, 2), _fixed_range(200, 300), rng=random.Random(0),
        )
        # Any draw in 200..230 leaves < 50 units, which joins the first stake
        assert [i.stake for i in plan.items] == [23_000]

    def test_quantity_caps_placements(self) -> None:
        accounts = [make_account(i) for i in range(1, 6)]
        plan = build_plan(
            DistributionMode.PREFERRED, accounts, 100_000 * UNIT, UNIT, 50,
            Range(1, 2), _fixed_range(50, 60), quantity=3, rng=random.Random(0),
        )
        assert len(plan.items) == 3


class TestDelays:
    def test_first_is_immediate_and_strictly_increasing(self) -> None:
        delays = schedule_delays(20, Range(0.0001, 0.0002), random.Random(5))
        assert delays[0] == 0
        for earlier, later in zip(delays, delays[1:]):
            assert later > earlier
            assert later - earlier >= MIN_DELAY_STEP_SECONDS - 0.001

    def test_cumulative_within_interval(self) -> None:
        delays = schedule_delays(5, Range(1, 3), random.Random(2))
        steps = [b - a for a, b in zip(delays, delays[1:])]
        assert all(1 - 0.001 <= s <= 3 + 0.001 for s in steps)

    def test_plan_items_carry_monotonic_delays(self) -> None:
        accounts = [make_account(i) for i in range(1, 6)]
        plan = build_plan(
            DistributionMode.AVERAGE, accounts, 500 * UNIT, UNIT, 50,
            Range(1, 3), _fixed_range(50, 1000), rng=random.Random(9),
        )
        delays = [i.delay_seconds for i in plan.items]
        assert delays == sorted(delays)
        assert len(set(delays)) == len(delays)


class TestValidation:
    def test_total_not_multiple_of_unit(self) -> None:
        with pytest.raises(ValidationError):
            build_plan(
                DistributionMode.AVERAGE, [make_account(1)], 10_050, UNIT, 50,
                Range(1, 2), _fixed_range(50, 100),
            )

    def test_non_positive_total(self) -> None:
        with pytest.raises(ValidationError):
            build_plan(
                DistributionMode.AVERAGE, [make_account(1)], 0, UNIT, 50,
                Range(1, 2), _fixed_range(50, 100),
            )

    def test_no_accounts(self) -> None:
        with pytest.raises(ValidationError):
            build_plan(
                DistributionMode.PREFERRED, [], 10_000, UNIT, 50,
                Range(1, 2), _fixed_range(50, 100),
            )
