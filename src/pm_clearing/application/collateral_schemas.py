"""Collateral API schemas. Amounts are ints in the asset's smallest unit."""

from pydantic import BaseModel, Field


class ApproveRequest(BaseModel):
    spender: str = Field(min_length=1)
    amount: int = Field(ge=0)


class FaucetRequest(BaseModel):
    amount: int = Field(gt=0)


class BalanceResponse(BaseModel):
    asset: str
    holder: str
    balance: int
    spender: str | None = None
    allowance: int | None = None
