"""Stake planning: pure functions, randomness injected.

Amounts inside this module are whole stake units (the book's minimum
currency step); PlanItem stakes are converted back to cents on the way out.

平均 (AVERAGE): split the total evenly over the first `quantity` accounts;
    the remainder goes one unit at a time to the first accounts, so the sum
    is exact. Accounts are dropped from the tail while the share would fall
    below the minimum stake.
优选 (PREFERRED): walk accounts in rank order; each stake is drawn uniformly
    from the single-stake range (caller range, else the account's ceiling,
    else the default range) and capped by what is left. Stops when the total
    or `quantity` runs out.

Delays: the first placement goes immediately; every later one waits an extra
uniform sample from the interval range on top of its predecessor.
"""

import logging
import random
from collections.abc import Callable, Sequence

from src.wd_common.cents import cents_to_units, units_to_cents
from src.wd_common.enums import DistributionMode
from src.wd_common.errors import ValidationError
from src.wd_planning.domain.models import PlanItem, StakePlan
from src.wd_planning.domain.ranges import IntRange, Range
from src.wd_registry.domain.models import BookAccount

logger = logging.getLogger(__name__)

MIN_DELAY_STEP_SECONDS = 0.05


def split_even(total_units: int, count: int) -> list[int]:
    """301 over 3 -> [101, 100, 100]."""
    if count <= 0:
        return []
    base, remainder = divmod(total_units, count)
    return [base + 1 if i < remainder else base for i in range(count)]


def schedule_delays(count: int, interval: Range, rng: random.Random) -> list[float]:
    delays: list[float] = []
    elapsed = 0.0
    for i in range(count):
        if i > 0:
            elapsed += max(rng.uniform(interval.min, interval.max), MIN_DELAY_STEP_SECONDS)
        delays.append(round(elapsed, 3))
    return delays


def plan_average(
    accounts: Sequence[BookAccount],
    total_units: int,
    min_units: int,
    quantity: int | None = None,
) -> list[tuple[BookAccount, int]]:
    candidates = list(accounts[:quantity] if quantity else accounts)
    count = min(len(candidates), total_units // min_units if min_units > 0 else len(candidates))
    if count <= 0:
        raise ValidationError(
            f"Total of {total_units} units cannot cover one minimum stake of {min_units} units"
        )
    return list(zip(candidates[:count], split_even(total_units, count)))


def plan_preferred(
    accounts: Sequence[BookAccount],
    total_units: int,
    min_units: int,
    range_for: Callable[[BookAccount], IntRange],
    rng: random.Random,
    quantity: int | None = None,
) -> list[tuple[BookAccount, int, int]]:
    """Return (account, stake_units, cap_units) triples in rank order."""
    if total_units < min_units:
        raise ValidationError(
            f"Total of {total_units} units is below the minimum stake of {min_units} units"
        )
    candidates = list(accounts[:quantity] if quantity else accounts)
    planned: list[tuple[BookAccount, int, int]] = []
    remaining = total_units
    for account in candidates:
        if remaining < min_units:
            break
        limits = range_for(account)
        low = max(limits.min, min_units)
        high = max(limits.max, low)
        stake = min(rng.randint(low, high), remaining)
        leftover = remaining - stake
        # A leftover too small to place on its own is folded into this stake.
        if 0 < leftover < min_units and stake + leftover <= high:
            stake += leftover
        planned.append((account, stake, high))
        remaining -= stake
    return planned


def build_plan(
    mode: DistributionMode,
    accounts: Sequence[BookAccount],
    total_cents: int,
    unit_cents: int,
    min_units: int,
    interval: Range,
    range_for: Callable[[BookAccount], IntRange],
    quantity: int | None = None,
    rng: random.Random | None = None,
) -> StakePlan:
    if total_cents <= 0 or total_cents % unit_cents != 0:
        raise ValidationError(
            f"Total amount must be a positive multiple of {unit_cents} cents"
        )
    if not accounts:
        raise ValidationError("No accounts to plan over")
    rng = rng or random.Random()
    total_units = cents_to_units(total_cents, unit_cents)

    if mode == DistributionMode.AVERAGE:
        triples = [
            (account, units, range_for(account).max)
            for account, units in plan_average(accounts, total_units, min_units, quantity)
        ]
    else:
        triples = plan_preferred(accounts, total_units, min_units, range_for, rng, quantity)

    delays = schedule_delays(len(triples), interval, rng)
    plan = StakePlan(mode=mode, requested_total=total_cents)
    for (account, units, cap), delay in zip(triples, delays):
        plan.items.append(
            PlanItem(
                account=account,
                stake=units_to_cents(units, unit_cents),
                delay_seconds=delay,
                single_limit=units_to_cents(cap, unit_cents),
            )
        )
    logger.info(
        "Planned %s: %d placements, %d/%d cents",
        mode.value, len(plan.items), plan.planned_total, total_cents,
    )
    return plan
