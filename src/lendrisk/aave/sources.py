"""
In-memory collaborators for account calculations over externally supplied snapshots.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field

from eth_typing import ChecksumAddress

from lendrisk.aave.libraries.reserve_logic import get_normalized_debt, get_normalized_income
from lendrisk.aave.types import ReserveData
from lendrisk.exceptions import LendriskValueError


@dataclass(slots=True, frozen=True)
class StaticPriceOracle:
    prices: Mapping[ChecksumAddress, int]

    def get_asset_price(self, asset: ChecksumAddress) -> int:
        try:
            return self.prices[asset]
        except KeyError:
            raise LendriskValueError(message=f"No price available for asset {asset}.") from None


@dataclass(slots=True, frozen=True)
class StaticBalanceSource:
    """
    Balances keyed by (token, user). Missing entries read as zero, like an ERC-20 balance mapping.
    """

    scaled_balances: Mapping[tuple[ChecksumAddress, ChecksumAddress], int] = field(
        default_factory=dict
    )
    balances: Mapping[tuple[ChecksumAddress, ChecksumAddress], int] = field(default_factory=dict)

    def scaled_balance_of(self, token: ChecksumAddress, user: ChecksumAddress) -> int:
        return self.scaled_balances.get((token, user), 0)

    def balance_of(self, token: ChecksumAddress, user: ChecksumAddress) -> int:
        return self.balances.get((token, user), 0)


@dataclass(slots=True, frozen=True)
class SnapshotAccrual:
    """
    Normalization factors projected from the reserve snapshot to `timestamp`.
    """

    timestamp: int

    def get_normalized_income(self, asset: ChecksumAddress, reserve: ReserveData) -> int:  # noqa: ARG002
        return get_normalized_income(reserve, self.timestamp)

    def get_normalized_debt(self, asset: ChecksumAddress, reserve: ReserveData) -> int:  # noqa: ARG002
        return get_normalized_debt(reserve, self.timestamp)
