"""Integer fixed-point utilities for collateral amounts and oracle prices.

All amounts are int (smallest collateral unit). Oracle prices are int
scaled by SCALE (10**18). No float, no Decimal.
"""

from src.pm_common.errors import InvalidFeeError

SCALE: int = 10**18
HALF_SCALE: int = SCALE // 2

BPS_DENOMINATOR: int = 10_000
MAX_FEE_BPS: int = 1_000  # 10%


def validate_fee_bps(fee_bps: int) -> None:
    """Validate that fee_bps is in the range [0, MAX_FEE_BPS]."""
    if not (0 <= fee_bps <= MAX_FEE_BPS):
        raise InvalidFeeError(fee_bps, MAX_FEE_BPS)


def calculate_fee(amount: int, fee_bps: int) -> int:
    """Calculate fee with floor division (bettor keeps the remainder).

    fee = floor(amount * fee_bps / 10000)
    """
    if amount == 0 or fee_bps == 0:
        return 0
    return amount * fee_bps // BPS_DENOMINATOR


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) without intermediate rounding."""
    if denominator == 0:
        raise ZeroDivisionError("mul_div_floor denominator is zero")
    return a * b // denominator


def price_to_display(price: int) -> str:
    """Render a SCALE-d price: 10**18 -> '1.0', 5 * 10**17 -> '0.5'."""
    sign = "-" if price < 0 else ""
    whole, frac = divmod(abs(price), SCALE)
    frac_str = f"{frac:018d}".rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"
