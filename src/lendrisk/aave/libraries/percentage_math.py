from lendrisk.constants import MAX_UINT256
from lendrisk.exceptions.evm import EVMRevertError

# Percentage: decimal numbers with 4 digits of precision (100.00%)
PERCENTAGE_FACTOR = 10**4
HALF_PERCENTAGE_FACTOR = 5 * 10**3


def percent_mul(value: int, percentage: int) -> int:
    """
    Executes a percentage multiplication, rounding half up.
    """

    if percentage != 0 and value > (MAX_UINT256 - HALF_PERCENTAGE_FACTOR) // percentage:
        raise EVMRevertError(error="MUL_OVERFLOW")
    return (value * percentage + HALF_PERCENTAGE_FACTOR) // PERCENTAGE_FACTOR


def percent_div(value: int, percentage: int) -> int:
    """
    Executes a percentage division, rounding half up.
    """

    if percentage == 0:
        raise EVMRevertError(error="ZERO_DIVISION")
    if value > (MAX_UINT256 - (percentage // 2)) // PERCENTAGE_FACTOR:
        raise EVMRevertError(error="DIV_INTERNAL")
    return (value * PERCENTAGE_FACTOR + (percentage // 2)) // percentage


def percent_mul_floor(value: int, percentage: int) -> int:
    if percentage != 0 and value > MAX_UINT256 // percentage:
        raise EVMRevertError(error="MUL_OVERFLOW")
    return (value * percentage) // PERCENTAGE_FACTOR


def percent_mul_ceil(value: int, percentage: int) -> int:
    if percentage != 0 and value > MAX_UINT256 // percentage:
        raise EVMRevertError(error="MUL_OVERFLOW")
    product = value * percentage
    return (product // PERCENTAGE_FACTOR) + (1 if product % PERCENTAGE_FACTOR != 0 else 0)


def percent_div_ceil(value: int, percentage: int) -> int:
    if percentage == 0:
        raise EVMRevertError(error="ZERO_DIVISION")
    if value > MAX_UINT256 // PERCENTAGE_FACTOR:
        raise EVMRevertError(error="DIV_INTERNAL")
    scaled = value * PERCENTAGE_FACTOR
    return (scaled // percentage) + (1 if scaled % percentage != 0 else 0)
