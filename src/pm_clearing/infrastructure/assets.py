"""Resolve an asset address to a CollateralAsset for the configured backend.

The memory backend keeps one InMemoryCollateralAsset per address for the
lifetime of the process so balances survive across requests.
"""

from config.settings import settings
from src.pm_clearing.domain.collateral import CollateralAsset
from src.pm_clearing.infrastructure.collateral_memory import InMemoryCollateralAsset
from src.pm_clearing.infrastructure.collateral_sql import SqlCollateralAsset

_memory_assets: dict[str, InMemoryCollateralAsset] = {}


def resolve_asset(address: str) -> CollateralAsset:
    if settings.COLLATERAL_BACKEND == "memory":
        return memory_asset(address)
    return SqlCollateralAsset(address)


def memory_asset(address: str) -> InMemoryCollateralAsset:
    if address not in _memory_assets:
        _memory_assets[address] = InMemoryCollateralAsset(address)
    return _memory_assets[address]


def reset_memory_assets() -> None:
    """Test helper: forget every in-memory balance."""
    _memory_assets.clear()
