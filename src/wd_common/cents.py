"""Integer arithmetic utilities for money.

All amounts, stakes, payouts and balances are int cents. No float.
Odds are the only fractional quantity and travel as Decimal.
"""

from decimal import ROUND_HALF_UP, Decimal

_ODDS_QUANT = Decimal("0.001")


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 650000 -> '6,500.00', -1200 -> '-12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{cents // 100:,}.{cents % 100:02d}"


def units_to_cents(units: int, unit_cents: int) -> int:
    return units * unit_cents


def cents_to_units(cents: int, unit_cents: int) -> int:
    """Whole stake units contained in `cents`. Raises if not a whole multiple."""
    if cents % unit_cents != 0:
        raise ValueError(f"{cents} cents is not a multiple of the stake unit {unit_cents}")
    return cents // unit_cents


def normalize_odds(value: object) -> Decimal | None:
    """Parse an odds value (str/int/float/Decimal) to a 3dp Decimal; None if unusable."""
    if value is None or value == "":
        return None
    try:
        odds = Decimal(str(value).strip())
    except (ArithmeticError, ValueError):
        return None
    if not odds.is_finite() or odds <= 0:
        return None
    return odds.quantize(_ODDS_QUANT, rounding=ROUND_HALF_UP)
