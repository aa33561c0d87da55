"""Oracle request value objects."""

from dataclasses import dataclass

DEFAULT_PRICE_IDENTIFIER = b"YES_OR_NO_QUERY"


@dataclass(frozen=True)
class PriceRequest:
    requester: str
    identifier: bytes
    timestamp: int
    ancillary_data: bytes
    currency: str
    reward: int
    bond: int
    liveness: int


def default_ancillary_data(pair_name: str) -> bytes:
    """YES_OR_NO_QUERY-style question for a binary up/down market."""
    return (
        f"q: title: Will {pair_name} settle higher than it opened?, "
        "description: Binary prediction market on the price of "
        f"{pair_name} over the betting window. "
        "res_data: p1: 0, p2: 1, p3: 0.5. "
        "Where p1 corresponds to NO, p2 to YES, p3 to a tie."
    ).encode()
