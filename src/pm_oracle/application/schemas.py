"""Inbound oracle callback bodies.

identifier / ancillary_data are 0x-hex; price and refund are decimal strings
or ints (prices are SCALE-d and overflow JSON doubles).
"""

from pydantic import BaseModel, field_validator

from src.pm_common.encoding import from_hex


class _CallbackBase(BaseModel):
    identifier: str
    timestamp: int
    ancillary_data: str

    @field_validator("identifier", "ancillary_data")
    @classmethod
    def _check_hex(cls, v: str) -> str:
        from_hex(v)  # raises ValueError -> 422
        return v

    @property
    def identifier_bytes(self) -> bytes:
        return from_hex(self.identifier)

    @property
    def ancillary_bytes(self) -> bytes:
        return from_hex(self.ancillary_data)


class SettledCallback(_CallbackBase):
    price: int


class DisputedCallback(_CallbackBase):
    refund: int


class SettledAck(BaseModel):
    market_id: str
    applied: bool
