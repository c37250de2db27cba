"""Data model and collaborator protocols for Aave V3 account calculations."""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Protocol, Self

from eth_typing import ChecksumAddress

from lendrisk.aave.libraries.reserve_configuration import MAX_RESERVES_COUNT, ReserveConfiguration
from lendrisk.constants import ZERO_ADDRESS
from lendrisk.exceptions import LendriskValueError
from lendrisk.types.aliases import ReserveId


@dataclass(slots=True, frozen=True)
class ReserveData:
    """
    Read-only snapshot of one reserve's ledger state.

    Indices and rates are ray-scaled. Balances (`accrued_to_treasury`, `unbacked`) are in the
    reserve's native token units, `isolation_mode_total_debt` uses 2 decimals.
    """

    configuration: ReserveConfiguration
    liquidity_index: int
    current_liquidity_rate: int
    variable_borrow_index: int
    current_variable_borrow_rate: int
    current_stable_borrow_rate: int
    last_update_timestamp: int
    id: ReserveId
    a_token_address: ChecksumAddress
    stable_debt_token_address: ChecksumAddress
    variable_debt_token_address: ChecksumAddress
    interest_rate_strategy_address: ChecksumAddress = ZERO_ADDRESS
    accrued_to_treasury: int = 0
    unbacked: int = 0
    isolation_mode_total_debt: int = 0


type ReserveSlot = tuple[ChecksumAddress, ReserveData | None]


class ReserveList:
    """
    Dense, id-indexed table of listed reserves.

    A slot holding the zero address is a tombstone left by a dropped reserve. Reading an id past the
    end of the table also returns a tombstone, matching the on-chain mapping's default value.
    """

    def __init__(self, slots: Iterable[ReserveSlot] = ()) -> None:
        self._slots: list[ReserveSlot] = list(slots)
        self._ids_by_asset: dict[ChecksumAddress, ReserveId] = {
            asset: reserve_id
            for reserve_id, (asset, _) in enumerate(self._slots)
            if asset != ZERO_ADDRESS
        }

    @classmethod
    def from_reserves(cls, reserves: Mapping[ChecksumAddress, ReserveData]) -> Self:
        """
        Build the table from reserves keyed by asset address, placing each at its `id`. Ids must
        lie in `[0, MAX_RESERVES_COUNT)`.
        """

        for asset, reserve in reserves.items():
            if not 0 <= reserve.id < MAX_RESERVES_COUNT:
                raise LendriskValueError(
                    message=f"Reserve id {reserve.id} of {asset} is outside the valid range "
                    f"[0, {MAX_RESERVES_COUNT})."
                )

        count = max((reserve.id for reserve in reserves.values()), default=-1) + 1
        slots: list[ReserveSlot] = [(ZERO_ADDRESS, None)] * count
        for asset, reserve in reserves.items():
            if slots[reserve.id][0] != ZERO_ADDRESS:
                raise LendriskValueError(
                    message=f"Reserve id {reserve.id} is assigned to both {slots[reserve.id][0]} "
                    f"and {asset}."
                )
            slots[reserve.id] = (asset, reserve)
        return cls(slots)

    def __getitem__(self, reserve_id: ReserveId) -> ReserveSlot:
        if 0 <= reserve_id < len(self._slots):
            return self._slots[reserve_id]
        return (ZERO_ADDRESS, None)

    def __iter__(self) -> Iterator[ReserveSlot]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, asset: object) -> bool:
        return asset in self._ids_by_asset

    def is_occupied(self, reserve_id: ReserveId) -> bool:
        asset, reserve = self[reserve_id]
        return asset != ZERO_ADDRESS and reserve is not None

    def get_reserve(self, asset: ChecksumAddress) -> ReserveData:
        try:
            _, reserve = self._slots[self._ids_by_asset[asset]]
        except KeyError:
            raise LendriskValueError(message=f"Asset {asset} is not a listed reserve.") from None
        assert reserve is not None
        return reserve

    @property
    def assets(self) -> list[ChecksumAddress]:
        return [asset for asset, _ in self._slots if asset != ZERO_ADDRESS]


@dataclass(slots=True, frozen=True)
class EModeCategory:
    """
    Risk overrides shared by a group of correlated reserves. A zero `price_source` means assets in
    the category keep their individual oracle prices.
    """

    ltv: int
    liquidation_threshold: int
    liquidation_bonus: int
    price_source: ChecksumAddress = ZERO_ADDRESS
    label: str = ""


class PriceOracle(Protocol):
    def get_asset_price(self, asset: ChecksumAddress) -> int: ...


class BalanceSource(Protocol):
    def scaled_balance_of(self, token: ChecksumAddress, user: ChecksumAddress) -> int: ...
    def balance_of(self, token: ChecksumAddress, user: ChecksumAddress) -> int: ...


class AccrualSource(Protocol):
    def get_normalized_income(self, asset: ChecksumAddress, reserve: ReserveData) -> int: ...
    def get_normalized_debt(self, asset: ChecksumAddress, reserve: ReserveData) -> int: ...


@dataclass(slots=True, frozen=True)
class MarketState:
    """
    The collaborators consulted by a single account calculation. The caller is responsible for
    making them reflect one consistent point in time.
    """

    reserves: ReserveList
    oracle: PriceOracle
    balances: BalanceSource
    accrual: AccrualSource
    e_mode_categories: Mapping[int, EModeCategory] = field(default_factory=dict)
