"""
Efficiency mode helpers, adapted from the Aave V3 EModeLogic.sol library.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, NamedTuple

from lendrisk.constants import ZERO_ADDRESS
from lendrisk.exceptions.evm import EVMRevertError

if TYPE_CHECKING:
    from lendrisk.aave.types import EModeCategory, PriceOracle


class EModeConfiguration(NamedTuple):
    ltv: int
    liquidation_threshold: int
    asset_price: int  # 0 => use the per-asset oracle price


def get_emode_configuration(category: "EModeCategory", oracle: "PriceOracle") -> EModeConfiguration:
    """
    Return the override LTV and liquidation threshold of the category, and the unified price for
    its assets if the category declares a price source.
    """

    asset_price = 0
    if category.price_source != ZERO_ADDRESS:
        asset_price = oracle.get_asset_price(category.price_source)

    return EModeConfiguration(
        ltv=category.ltv,
        liquidation_threshold=category.liquidation_threshold,
        asset_price=asset_price,
    )


def get_emode_category(
    categories: Mapping[int, "EModeCategory"], category_id: int
) -> "EModeCategory":
    try:
        return categories[category_id]
    except KeyError:
        raise EVMRevertError(error="INCONSISTENT_EMODE_CATEGORY") from None


def is_in_emode_category(user_emode_category: int, asset_emode_category: int) -> bool:
    return user_emode_category != 0 and asset_emode_category == user_emode_category
