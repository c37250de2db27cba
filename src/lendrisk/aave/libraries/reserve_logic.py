"""
Reserve normalization factors, adapted from the Aave V3 ReserveLogic.sol library.

These derive the current income and debt indices from a reserve snapshot without touching any
ledger state.
"""

from typing import TYPE_CHECKING

from .math_utils import calculate_compound_interest, calculate_linear_interest
from .wad_ray_math import ray_mul

if TYPE_CHECKING:
    from lendrisk.aave.types import ReserveData


def get_normalized_income(reserve: "ReserveData", timestamp: int) -> int:
    """
    Return the ongoing normalized income for the reserve at `timestamp`. A value of 1e27 means
    there is no income.
    """

    if timestamp == reserve.last_update_timestamp:
        return reserve.liquidity_index

    return ray_mul(
        calculate_linear_interest(
            reserve.current_liquidity_rate,
            reserve.last_update_timestamp,
            timestamp,
        ),
        reserve.liquidity_index,
    )


def get_normalized_debt(reserve: "ReserveData", timestamp: int) -> int:
    """
    Return the ongoing normalized variable debt for the reserve at `timestamp`. A value of 1e27
    means there is no debt.
    """

    if timestamp == reserve.last_update_timestamp:
        return reserve.variable_borrow_index

    return ray_mul(
        calculate_compound_interest(
            reserve.current_variable_borrow_rate,
            reserve.last_update_timestamp,
            timestamp,
        ),
        reserve.variable_borrow_index,
    )
