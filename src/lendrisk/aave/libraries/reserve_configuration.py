"""
Codec for the packed reserve configuration word, adapted from the Aave V3 ReserveConfiguration.sol
library.

The protocol stores every risk parameter of a reserve in a single uint256:

    bit 0-15:    LTV
    bit 16-31:   liquidation threshold
    bit 32-47:   liquidation bonus
    bit 48-55:   decimals
    bit 56:      reserve is active
    bit 57:      reserve is frozen
    bit 58:      borrowing is enabled
    bit 59:      stable rate borrowing enabled
    bit 60:      asset is paused
    bit 61:      borrowing in isolation mode is enabled
    bit 62:      siloed borrowing enabled
    bit 63:      flash loaning enabled
    bit 64-79:   reserve factor
    bit 80-115:  borrow cap in whole tokens, 0 => no cap
    bit 116-151: supply cap in whole tokens, 0 => no cap
    bit 152-167: liquidation protocol fee
    bit 168-175: e-mode category
    bit 176-211: unbacked mint cap in whole tokens, 0 => minting disabled
    bit 212-251: debt ceiling for isolation mode with 2 decimals
    bit 252-255: unused

Callers work with the `ReserveConfiguration` value object. The raw integer only crosses this
module's boundary through `decode` and `encode`.
"""

import dataclasses
from dataclasses import dataclass
from typing import NamedTuple, Self

from lendrisk.exceptions.evm import EVMRevertError


class BitRange(NamedTuple):
    start: int
    width: int

    @property
    def max_value(self) -> int:
        return (1 << self.width) - 1

    @property
    def mask(self) -> int:
        return self.max_value << self.start

    def read(self, word: int) -> int:
        return (word >> self.start) & self.max_value


LTV = BitRange(0, 16)
LIQUIDATION_THRESHOLD = BitRange(16, 16)
LIQUIDATION_BONUS = BitRange(32, 16)
DECIMALS = BitRange(48, 8)
ACTIVE = BitRange(56, 1)
FROZEN = BitRange(57, 1)
BORROWING_ENABLED = BitRange(58, 1)
STABLE_BORROWING_ENABLED = BitRange(59, 1)
PAUSED = BitRange(60, 1)
BORROWABLE_IN_ISOLATION = BitRange(61, 1)
SILOED_BORROWING = BitRange(62, 1)
FLASHLOAN_ENABLED = BitRange(63, 1)
RESERVE_FACTOR = BitRange(64, 16)
BORROW_CAP = BitRange(80, 36)
SUPPLY_CAP = BitRange(116, 36)
LIQUIDATION_PROTOCOL_FEE = BitRange(152, 16)
EMODE_CATEGORY = BitRange(168, 8)
UNBACKED_MINT_CAP = BitRange(176, 36)
DEBT_CEILING = BitRange(212, 40)

RESERVED = BitRange(252, 4)

DEBT_CEILING_DECIMALS = 2
MAX_RESERVES_COUNT = 128


# Field name -> (bit range, revert reason when the value does not fit)
_LAYOUT: dict[str, tuple[BitRange, str]] = {
    "ltv": (LTV, "INVALID_LTV"),
    "liquidation_threshold": (LIQUIDATION_THRESHOLD, "INVALID_LIQ_THRESHOLD"),
    "liquidation_bonus": (LIQUIDATION_BONUS, "INVALID_LIQ_BONUS"),
    "decimals": (DECIMALS, "INVALID_DECIMALS"),
    "active": (ACTIVE, "INVALID_ACTIVE_FLAG"),
    "frozen": (FROZEN, "INVALID_FROZEN_FLAG"),
    "borrowing_enabled": (BORROWING_ENABLED, "INVALID_BORROWING_FLAG"),
    "stable_borrowing_enabled": (STABLE_BORROWING_ENABLED, "INVALID_STABLE_BORROWING_FLAG"),
    "paused": (PAUSED, "INVALID_PAUSED_FLAG"),
    "borrowable_in_isolation": (BORROWABLE_IN_ISOLATION, "INVALID_ISOLATION_FLAG"),
    "siloed_borrowing": (SILOED_BORROWING, "INVALID_SILOED_FLAG"),
    "flashloan_enabled": (FLASHLOAN_ENABLED, "INVALID_FLASHLOAN_FLAG"),
    "reserve_factor": (RESERVE_FACTOR, "INVALID_RESERVE_FACTOR"),
    "borrow_cap": (BORROW_CAP, "INVALID_BORROW_CAP"),
    "supply_cap": (SUPPLY_CAP, "INVALID_SUPPLY_CAP"),
    "liquidation_protocol_fee": (LIQUIDATION_PROTOCOL_FEE, "INVALID_LIQUIDATION_PROTOCOL_FEE"),
    "e_mode_category": (EMODE_CATEGORY, "INVALID_EMODE_CATEGORY"),
    "unbacked_mint_cap": (UNBACKED_MINT_CAP, "INVALID_UNBACKED_MINT_CAP"),
    "debt_ceiling": (DEBT_CEILING, "INVALID_DEBT_CEILING"),
}


class ReserveFlags(NamedTuple):
    active: bool
    frozen: bool
    borrowing_enabled: bool
    stable_borrowing_enabled: bool
    paused: bool


class ReserveParams(NamedTuple):
    ltv: int
    liquidation_threshold: int
    liquidation_bonus: int
    decimals: int
    reserve_factor: int
    e_mode_category: int


class ReserveCaps(NamedTuple):
    borrow_cap: int
    supply_cap: int


@dataclass(slots=True, frozen=True)
class ReserveConfiguration:
    """
    Decoded risk and operational parameters of a single reserve.

    Percentages (LTV, liquidation threshold, liquidation bonus, reserve factor, liquidation
    protocol fee) use 2 decimals of precision, e.g. 8000 == 80.00%.
    """

    ltv: int = 0
    liquidation_threshold: int = 0
    liquidation_bonus: int = 0
    decimals: int = 0
    active: bool = False
    frozen: bool = False
    borrowing_enabled: bool = False
    stable_borrowing_enabled: bool = False
    paused: bool = False
    borrowable_in_isolation: bool = False
    siloed_borrowing: bool = False
    flashloan_enabled: bool = False
    reserve_factor: int = 0
    borrow_cap: int = 0
    supply_cap: int = 0
    liquidation_protocol_fee: int = 0
    e_mode_category: int = 0
    unbacked_mint_cap: int = 0
    debt_ceiling: int = 0

    @classmethod
    def decode(cls, word: int) -> Self:
        """
        Extract every field from a packed configuration word. Reserved bits are ignored.
        """

        values: dict[str, int | bool] = {}
        for field in dataclasses.fields(cls):
            bit_range, _ = _LAYOUT[field.name]
            value = bit_range.read(word)
            values[field.name] = bool(value) if bit_range.width == 1 else value
        return cls(**values)  # type: ignore[arg-type]

    def encode(self) -> int:
        """
        Pack the fields into a configuration word.

        Raises `EVMRevertError` with the protocol's error name if a field is negative or too wide
        for its bit range.
        """

        word = 0
        for name, (bit_range, error) in _LAYOUT.items():
            value = int(getattr(self, name))
            if not 0 <= value <= bit_range.max_value:
                raise EVMRevertError(error=error)
            word |= value << bit_range.start
        return word

    def replace(self, **changes: int | bool) -> Self:
        return dataclasses.replace(self, **changes)  # type: ignore[arg-type]

    @property
    def flags(self) -> ReserveFlags:
        return ReserveFlags(
            active=self.active,
            frozen=self.frozen,
            borrowing_enabled=self.borrowing_enabled,
            stable_borrowing_enabled=self.stable_borrowing_enabled,
            paused=self.paused,
        )

    @property
    def params(self) -> ReserveParams:
        return ReserveParams(
            ltv=self.ltv,
            liquidation_threshold=self.liquidation_threshold,
            liquidation_bonus=self.liquidation_bonus,
            decimals=self.decimals,
            reserve_factor=self.reserve_factor,
            e_mode_category=self.e_mode_category,
        )

    @property
    def caps(self) -> ReserveCaps:
        return ReserveCaps(
            borrow_cap=self.borrow_cap,
            supply_cap=self.supply_cap,
        )

    @property
    def asset_unit(self) -> int:
        return 10**self.decimals


def decode_reserve_configuration(word: int) -> ReserveConfiguration:
    return ReserveConfiguration.decode(word)


def encode_reserve_configuration(config: ReserveConfiguration) -> int:
    return config.encode()
