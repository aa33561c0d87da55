"""Fee split applied when a bet is collected."""

from src.pm_common.fixed_point import calculate_fee


def split_stake(amount: int, fee_bps: int) -> tuple[int, int]:
    """Return (net, fee) for a bet of `amount`.

    fee = floor(amount x fee_bps / 10000), net = amount - fee.
    net may round to 0 for dust amounts; that is accepted, not rejected.
    """
    fee = calculate_fee(amount, fee_bps)
    return amount - fee, fee
