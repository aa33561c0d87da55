"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class MarketPhase(str, Enum):
    """Externally visible lifecycle phase, derived from market flags + clock.

    A dispute never shows up here: it re-arms the oracle request and the
    market stays AWAITING_SETTLEMENT under a new round.
    """
    CREATED = "CREATED"
    BETTING_OPEN = "BETTING_OPEN"
    AWAITING_SETTLEMENT = "AWAITING_SETTLEMENT"
    SETTLED = "SETTLED"


class BetSide(str, Enum):
    YES = "YES"
    NO = "NO"


class SettlementOutcome(str, Enum):
    NO = "NO"
    TIE = "TIE"
    YES = "YES"


class LedgerEntryType(str, Enum):
    # Bet collection (bettor -> custody, bettor -> treasury)
    BET_STAKE = "BET_STAKE"
    BET_FEE = "BET_FEE"
    # Oracle incentive
    PROPOSER_REWARD_IN = "PROPOSER_REWARD_IN"
    ORACLE_REWARD_OUT = "ORACLE_REWARD_OUT"
    # Settlement
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"
    TREASURY_SWEEP = "TREASURY_SWEEP"
    # Admin
    TOKEN_RESCUE = "TOKEN_RESCUE"


class MarketEventType(str, Enum):
    MARKET_CREATED = "MARKET_CREATED"
    MARKET_INITIALIZED = "MARKET_INITIALIZED"
    PRICE_REQUESTED = "PRICE_REQUESTED"
    BET_PLACED = "BET_PLACED"
    PRICE_DISPUTED = "PRICE_DISPUTED"
    PRICE_SETTLED = "PRICE_SETTLED"
    STALE_SETTLEMENT_IGNORED = "STALE_SETTLEMENT_IGNORED"
    WINNINGS_CLAIMED = "WINNINGS_CLAIMED"
    POOL_SWEPT = "POOL_SWEPT"
    MARKET_PAUSED = "MARKET_PAUSED"
    MARKET_UNPAUSED = "MARKET_UNPAUSED"
    FEE_UPDATED = "FEE_UPDATED"
    TREASURY_UPDATED = "TREASURY_UPDATED"
    ORACLE_PARAMS_UPDATED = "ORACLE_PARAMS_UPDATED"
    TOKEN_RESCUED = "TOKEN_RESCUED"
