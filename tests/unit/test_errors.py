"""Tests for pm_common.errors and pm_common.response."""

from src.pm_common.errors import (
    AppError,
    InsufficientBalanceError,
    MarketNotFoundError,
    NotMarketOwnerError,
    OracleUnavailableError,
    ReentrantCallError,
    UnauthorizedOracleError,
)
from src.pm_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_balance(self) -> None:
        err = InsufficientBalanceError("alice", required=6500, available=3000)
        assert err.code == 2001
        assert err.http_status == 422
        assert "6500" in err.message and "3000" in err.message

    def test_market_not_found(self) -> None:
        err = MarketNotFoundError("mkt_1")
        assert (err.code, err.http_status) == (3001, 404)

    def test_authorization_errors_are_403(self) -> None:
        assert NotMarketOwnerError("bob").http_status == 403
        assert UnauthorizedOracleError("bob").http_status == 403

    def test_oracle_unavailable_is_502(self) -> None:
        assert OracleUnavailableError("timeout").http_status == 502

    def test_reentrancy(self) -> None:
        err = ReentrantCallError("claim_winnings")
        assert err.code == 9003
        assert "claim_winnings" in err.message


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": "mkt_1"}, request_id="req_x")
        assert resp.code == 0
        assert resp.data == {"id": "mkt_1"}
        assert resp.request_id == "req_x"

    def test_error(self) -> None:
        resp = error_response(3001, "Market not found")
        assert isinstance(resp, ApiResponse)
        assert resp.data is None
        assert resp.request_id.startswith("req_")
