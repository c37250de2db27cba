"""
User account aggregation, adapted from the Aave V3 GenericLogic.sol library.

`calculate_user_account_data` walks the user's configuration bitmap over the reserve list and
folds each position into base-currency totals and weighted risk parameters:

    total collateral = sum(balance * normalized income * price / asset unit)
    total debt       = sum((stable debt + scaled variable debt * normalized debt) * price / unit)
    average LTV      = sum(collateral value * LTV) / total collateral
    average LT       = sum(collateral value * liquidation threshold) / total collateral
    health factor    = percent_mul(total collateral, average LT) ray_div total debt

All values are integers. Sums and products are checked against the uint256 range and raise
`EVMRevertError` instead of wrapping.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from eth_typing import ChecksumAddress

from lendrisk.constants import MAX_UINT256
from lendrisk.functions import raise_if_invalid_uint256
from lendrisk.logging import logger

from .emode_logic import get_emode_category, get_emode_configuration, is_in_emode_category
from .percentage_math import percent_mul
from .user_configuration import UserConfiguration
from .wad_ray_math import RAY, ray_div, ray_mul

if TYPE_CHECKING:
    from lendrisk.aave.types import MarketState, ReserveData


# Health factor at or above 1.0 (ray-scaled) is safe from liquidation
HEALTH_FACTOR_LIQUIDATION_THRESHOLD = RAY

# Sentinel health factor for accounts without debt
NO_DEBT_HEALTH_FACTOR = MAX_UINT256


@dataclass(slots=True, frozen=True)
class CalculateUserAccountDataParams:
    user_config: UserConfiguration
    reserves_count: int
    user: ChecksumAddress
    user_e_mode_category: int = 0


@dataclass(slots=True, frozen=True)
class UserAccountData:
    """
    Risk aggregates of an account, denominated in the oracle's base currency.

    `health_factor` is ray-scaled (1e27 == 1.0). An account without debt reports
    `NO_DEBT_HEALTH_FACTOR` (max uint256); use `is_liquidatable` rather than comparing against the
    sentinel.
    """

    total_collateral_base: int
    total_debt_base: int
    avg_ltv: int
    avg_liquidation_threshold: int
    health_factor: int
    has_zero_ltv_collateral: bool

    @property
    def has_debt(self) -> bool:
        return self.total_debt_base != 0

    @property
    def is_liquidatable(self) -> bool:
        return self.has_debt and self.health_factor < HEALTH_FACTOR_LIQUIDATION_THRESHOLD

    @property
    def available_borrows_base(self) -> int:
        return calculate_available_borrows(
            total_collateral=self.total_collateral_base,
            total_debt=self.total_debt_base,
            ltv=self.avg_ltv,
        )


EMPTY_ACCOUNT_DATA = UserAccountData(
    total_collateral_base=0,
    total_debt_base=0,
    avg_ltv=0,
    avg_liquidation_threshold=0,
    health_factor=NO_DEBT_HEALTH_FACTOR,
    has_zero_ltv_collateral=False,
)


def _checked_add(a: int, b: int) -> int:
    result = a + b
    raise_if_invalid_uint256(result)
    return result


def _checked_mul(a: int, b: int) -> int:
    result = a * b
    raise_if_invalid_uint256(result)
    return result


def _get_user_balance_in_base_currency(
    market: "MarketState",
    asset: ChecksumAddress,
    reserve: "ReserveData",
    user: ChecksumAddress,
    asset_price: int,
    asset_unit: int,
) -> int:
    normalized_income = market.accrual.get_normalized_income(asset, reserve)
    balance = ray_mul(
        market.balances.scaled_balance_of(reserve.a_token_address, user),
        normalized_income,
    )
    return _checked_mul(balance, asset_price) // asset_unit


def _get_user_debt_in_base_currency(
    market: "MarketState",
    asset: ChecksumAddress,
    reserve: "ReserveData",
    user: ChecksumAddress,
    asset_price: int,
    asset_unit: int,
) -> int:
    # Fetch the variable debt first: a zero scaled balance skips the normalized debt lookup
    user_total_debt = market.balances.scaled_balance_of(reserve.variable_debt_token_address, user)
    if user_total_debt != 0:
        user_total_debt = ray_mul(
            user_total_debt,
            market.accrual.get_normalized_debt(asset, reserve),
        )
    user_total_debt = _checked_add(
        user_total_debt,
        market.balances.balance_of(reserve.stable_debt_token_address, user),
    )
    return _checked_mul(asset_price, user_total_debt) // asset_unit


def calculate_user_account_data(
    market: "MarketState",
    params: CalculateUserAccountDataParams,
) -> UserAccountData:
    """
    Calculate the user's total collateral, total debt, average LTV, average liquidation threshold
    and health factor across all reserves.
    """

    if params.user_config.is_empty():
        return EMPTY_ACCOUNT_DATA

    e_mode_ltv = 0
    e_mode_liq_threshold = 0
    e_mode_asset_price = 0
    if params.user_e_mode_category != 0:
        e_mode_ltv, e_mode_liq_threshold, e_mode_asset_price = get_emode_configuration(
            category=get_emode_category(market.e_mode_categories, params.user_e_mode_category),
            oracle=market.oracle,
        )

    total_collateral = 0
    total_debt = 0
    avg_ltv = 0
    avg_liquidation_threshold = 0
    has_zero_ltv_collateral = False

    for reserve_id in range(params.reserves_count):
        if not params.user_config.is_using_as_collateral_or_borrowing(reserve_id):
            continue

        if not market.reserves.is_occupied(reserve_id):
            continue
        asset, reserve = market.reserves[reserve_id]
        assert reserve is not None

        config = reserve.configuration
        asset_unit = config.asset_unit
        is_in_e_mode = is_in_emode_category(params.user_e_mode_category, config.e_mode_category)

        asset_price = (
            e_mode_asset_price
            if e_mode_asset_price != 0 and is_in_e_mode
            else market.oracle.get_asset_price(asset)
        )

        if config.liquidation_threshold != 0 and params.user_config.is_using_as_collateral(
            reserve_id
        ):
            balance_in_base = _get_user_balance_in_base_currency(
                market, asset, reserve, params.user, asset_price, asset_unit
            )
            total_collateral = _checked_add(total_collateral, balance_in_base)

            ltv = e_mode_ltv if is_in_e_mode else config.ltv
            liquidation_threshold = (
                e_mode_liq_threshold if is_in_e_mode else config.liquidation_threshold
            )

            if ltv != 0:
                avg_ltv = _checked_add(avg_ltv, _checked_mul(balance_in_base, ltv))
            else:
                has_zero_ltv_collateral = True

            avg_liquidation_threshold = _checked_add(
                avg_liquidation_threshold,
                _checked_mul(balance_in_base, liquidation_threshold),
            )
            logger.debug(
                f"Reserve {reserve_id} ({asset}): collateral {balance_in_base} @ price "
                f"{asset_price}, ltv {ltv}, liquidation threshold {liquidation_threshold}"
            )

        if params.user_config.is_borrowing(reserve_id):
            debt_in_base = _get_user_debt_in_base_currency(
                market, asset, reserve, params.user, asset_price, asset_unit
            )
            total_debt = _checked_add(total_debt, debt_in_base)
            logger.debug(
                f"Reserve {reserve_id} ({asset}): debt {debt_in_base} @ price {asset_price}"
            )

    if total_collateral != 0:
        avg_ltv //= total_collateral
        avg_liquidation_threshold //= total_collateral
    else:
        avg_ltv = 0
        avg_liquidation_threshold = 0

    health_factor = (
        NO_DEBT_HEALTH_FACTOR
        if total_debt == 0
        else ray_div(percent_mul(total_collateral, avg_liquidation_threshold), total_debt)
    )

    return UserAccountData(
        total_collateral_base=total_collateral,
        total_debt_base=total_debt,
        avg_ltv=avg_ltv,
        avg_liquidation_threshold=avg_liquidation_threshold,
        health_factor=health_factor,
        has_zero_ltv_collateral=has_zero_ltv_collateral,
    )


def calculate_available_borrows(total_collateral: int, total_debt: int, ltv: int) -> int:
    """
    Calculate the additional amount, in base currency, that can be borrowed against the collateral.
    Returns 0 when existing debt already exceeds the borrowing power.
    """

    available_borrows = percent_mul(total_collateral, ltv)
    if available_borrows < total_debt:
        return 0
    return available_borrows - total_debt
