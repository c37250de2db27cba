"""
Interest accrual helpers, adapted from the Aave V3 MathUtils.sol library.

Rates are ray-scaled annual rates. Results are ray-scaled growth factors, with `RAY` meaning no
growth.
"""

from lendrisk.constants import MAX_UINT256
from lendrisk.exceptions.evm import EVMRevertError
from lendrisk.functions import raise_if_invalid_uint256

from .wad_ray_math import RAY, ray_mul

SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def _elapsed(last_update_timestamp: int, current_timestamp: int) -> int:
    if current_timestamp < last_update_timestamp:
        raise EVMRevertError(error="SUB_UNDERFLOW")
    return current_timestamp - last_update_timestamp


def calculate_linear_interest(rate: int, last_update_timestamp: int, current_timestamp: int) -> int:
    """
    Calculate the interest factor accumulated using a linear interest rate formula.
    """

    result = rate * _elapsed(last_update_timestamp, current_timestamp)
    if result > MAX_UINT256:
        raise EVMRevertError(error="MUL_OVERFLOW")
    return RAY + result // SECONDS_PER_YEAR


def calculate_compound_interest(
    rate: int, last_update_timestamp: int, current_timestamp: int
) -> int:
    """
    Calculate the interest factor using a compounded interest rate formula.

    The exponentiation is approximated with the first three terms of the binomial expansion, which
    slightly underpays lenders and undercharges borrowers for long idle periods.
    """

    exp = _elapsed(last_update_timestamp, current_timestamp)
    if exp == 0:
        return RAY

    exp_minus_one = exp - 1
    exp_minus_two = exp - 2 if exp > 2 else 0

    base_power_two = ray_mul(rate, rate) // (SECONDS_PER_YEAR * SECONDS_PER_YEAR)
    base_power_three = ray_mul(base_power_two, rate) // SECONDS_PER_YEAR

    # Each product must fit in uint256 on its own
    linear_term = rate * exp
    raise_if_invalid_uint256(linear_term)

    second_term = exp * exp_minus_one * base_power_two
    raise_if_invalid_uint256(second_term)
    second_term //= 2

    third_term = exp * exp_minus_one * exp_minus_two * base_power_three
    raise_if_invalid_uint256(third_term)
    third_term //= 6

    result = RAY + linear_term // SECONDS_PER_YEAR + second_term + third_term
    if result > MAX_UINT256:
        raise EVMRevertError(error="ADD_OVERFLOW")
    return result
