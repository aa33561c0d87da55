"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Collateral
  3xxx: Market lifecycle / preconditions
  6xxx: Oracle callbacks
  9xxx: System

Every error leaves market state unchanged: the engine restores its
pre-call snapshot before the exception leaves the entry point.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


# --- 2xxx: Collateral ---

class InsufficientBalanceError(AppError):
    def __init__(self, holder: str, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance for {holder}: required {required}, available {available}",
            422,
        )


class InsufficientAllowanceError(AppError):
    def __init__(self, owner: str, spender: str, required: int, allowed: int) -> None:
        super().__init__(
            2002,
            f"Insufficient allowance {owner} -> {spender}: required {required}, allowed {allowed}",
            422,
        )


class InvalidTransferError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, f"Invalid transfer: {detail}", 422)


# --- 3xxx: Market ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketNotInitializedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3002, f"Market is not initialized: {market_id}", 422)


class MarketAlreadyInitializedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3003, f"Market already initialized: {market_id}", 409)


class BettingClosedError(AppError):
    def __init__(self, market_id: str, window_end: int) -> None:
        super().__init__(
            3004, f"Betting window closed for {market_id} at {window_end}", 422
        )


class MarketPausedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3005, f"Market is paused: {market_id}", 422)


class InvalidAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(3006, f"Amount must be positive, got {amount}", 422)


class InvalidFeeError(AppError):
    def __init__(self, fee_bps: int, max_bps: int) -> None:
        super().__init__(3007, f"Fee {fee_bps} bps outside [0, {max_bps}]", 422)


class InvalidTreasuryError(AppError):
    def __init__(self) -> None:
        super().__init__(3008, "Treasury address must be set", 422)


class NotMarketOwnerError(AppError):
    def __init__(self, caller: str) -> None:
        super().__init__(3009, f"Caller {caller} is not the market owner", 403)


class SettlementNotReceivedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3010, f"Settlement price not received yet: {market_id}", 422)


class AlreadyClaimedError(AppError):
    def __init__(self, address: str) -> None:
        super().__init__(3011, f"Winnings already claimed by {address}", 409)


class NoWinningStakeError(AppError):
    def __init__(self, address: str, side: str) -> None:
        super().__init__(3012, f"{address} holds no {side} stake", 422)


class CollateralRescueForbiddenError(AppError):
    def __init__(self) -> None:
        super().__init__(3013, "Collateral cannot be rescued", 422)


class SettlementAlreadyReceivedError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3014, f"Settlement price already received: {market_id}", 409)


class InvalidDurationError(AppError):
    def __init__(self, duration: int) -> None:
        super().__init__(3015, f"Betting duration must be positive, got {duration}", 422)


# --- 6xxx: Oracle ---

class UnauthorizedOracleError(AppError):
    def __init__(self, sender: str) -> None:
        super().__init__(6001, f"Callback sender {sender} is not the oracle", 403)


class OracleRequestMismatchError(AppError):
    def __init__(self, field: str) -> None:
        super().__init__(6002, f"Callback does not match outstanding request: {field}", 422)


class OracleUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6003, f"Oracle unavailable: {detail}", 502)


# --- 9xxx: System ---

class ReentrantCallError(AppError):
    def __init__(self, entry_point: str) -> None:
        super().__init__(9003, f"Reentrant call into {entry_point}", 409)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
