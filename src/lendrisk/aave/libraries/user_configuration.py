"""
Codec for the packed user configuration bitmap, adapted from the Aave V3 UserConfiguration.sol
library.

Each reserve id owns a pair of adjacent bits. For reserve id `i`, bit `2*i` is set when the user is
borrowing the reserve, and bit `2*i + 1` is set when the user's supply of the reserve is used as
collateral.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple, Self

from eth_typing import ChecksumAddress

from lendrisk.constants import MAX_UINT256, ZERO_ADDRESS
from lendrisk.exceptions.evm import EVMRevertError

from .reserve_configuration import MAX_RESERVES_COUNT

if TYPE_CHECKING:
    from lendrisk.aave.types import ReserveList

BORROWING_MASK = MAX_UINT256 // 3  # 0x5555...5555
COLLATERAL_MASK = BORROWING_MASK << 1  # 0xAAAA...AAAA


class UserReserveFlags(NamedTuple):
    is_collateral: bool
    is_borrowing: bool


class IsolationModeState(NamedTuple):
    active: bool
    asset: ChecksumAddress
    debt_ceiling: int


class SiloedBorrowingState(NamedTuple):
    active: bool
    asset: ChecksumAddress


def _check_reserve_index(reserve_index: int) -> None:
    if not 0 <= reserve_index < MAX_RESERVES_COUNT:
        raise EVMRevertError(error="INVALID_RESERVE_INDEX")


@dataclass(slots=True, frozen=True)
class UserConfiguration:
    data: int = 0

    def set_borrowing(self, reserve_index: int, borrowing: bool) -> Self:  # noqa: FBT001
        _check_reserve_index(reserve_index)
        bit = 1 << (reserve_index << 1)
        return type(self)(self.data | bit if borrowing else self.data & ~bit)

    def set_using_as_collateral(self, reserve_index: int, using_as_collateral: bool) -> Self:  # noqa: FBT001
        _check_reserve_index(reserve_index)
        bit = 1 << ((reserve_index << 1) + 1)
        return type(self)(self.data | bit if using_as_collateral else self.data & ~bit)

    def is_using_as_collateral_or_borrowing(self, reserve_index: int) -> bool:
        _check_reserve_index(reserve_index)
        return (self.data >> (reserve_index << 1)) & 3 != 0

    def is_borrowing(self, reserve_index: int) -> bool:
        _check_reserve_index(reserve_index)
        return (self.data >> (reserve_index << 1)) & 1 != 0

    def is_using_as_collateral(self, reserve_index: int) -> bool:
        _check_reserve_index(reserve_index)
        return (self.data >> ((reserve_index << 1) + 1)) & 1 != 0

    def decode(self, reserve_index: int) -> UserReserveFlags:
        return UserReserveFlags(
            is_collateral=self.is_using_as_collateral(reserve_index),
            is_borrowing=self.is_borrowing(reserve_index),
        )

    def is_using_as_collateral_one(self) -> bool:
        collateral_data = self.data & COLLATERAL_MASK
        return collateral_data != 0 and (collateral_data & (collateral_data - 1)) == 0

    def is_using_as_collateral_any(self) -> bool:
        return self.data & COLLATERAL_MASK != 0

    def is_borrowing_one(self) -> bool:
        borrowing_data = self.data & BORROWING_MASK
        return borrowing_data != 0 and (borrowing_data & (borrowing_data - 1)) == 0

    def is_borrowing_any(self) -> bool:
        return self.data & BORROWING_MASK != 0

    def is_empty(self) -> bool:
        return self.data == 0

    def get_first_asset_id_by_mask(self, mask: int) -> int:
        """
        Return the id of the lowest reserve with a bit set under `mask`. Returns 0 when no bit is
        set, so callers must check for emptiness first.
        """

        bitmap = self.data & mask
        first_asset_position = bitmap & ~(bitmap - 1)
        return max(first_asset_position.bit_length() - 1, 0) >> 1

    def get_isolation_mode_state(self, reserves: "ReserveList") -> IsolationModeState:
        """
        A user is in isolation mode when their only collateral is a reserve with a debt ceiling.
        """

        if self.is_using_as_collateral_one():
            asset_id = self.get_first_asset_id_by_mask(COLLATERAL_MASK)
            asset, reserve = reserves[asset_id]
            if reserve is not None and (ceiling := reserve.configuration.debt_ceiling) != 0:
                return IsolationModeState(active=True, asset=asset, debt_ceiling=ceiling)
        return IsolationModeState(active=False, asset=ZERO_ADDRESS, debt_ceiling=0)

    def get_siloed_borrowing_state(self, reserves: "ReserveList") -> SiloedBorrowingState:
        """
        A user is in siloed borrowing state when their only borrowed reserve has siloed borrowing
        enabled.
        """

        if self.is_borrowing_one():
            asset_id = self.get_first_asset_id_by_mask(BORROWING_MASK)
            asset, reserve = reserves[asset_id]
            if reserve is not None and reserve.configuration.siloed_borrowing:
                return SiloedBorrowingState(active=True, asset=asset)
        return SiloedBorrowingState(active=False, asset=ZERO_ADDRESS)


def decode_user_configuration(word: int, reserve_index: int) -> UserReserveFlags:
    return UserConfiguration(word).decode(reserve_index)
