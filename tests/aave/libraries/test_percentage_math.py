import pytest
from hypothesis import given, strategies

from lendrisk.aave.libraries.percentage_math import (
    HALF_PERCENTAGE_FACTOR,
    PERCENTAGE_FACTOR,
    percent_div,
    percent_div_ceil,
    percent_mul,
    percent_mul_ceil,
    percent_mul_floor,
)
from lendrisk.constants import MAX_UINT256
from lendrisk.exceptions.evm import EVMRevertError


def test_percent_mul() -> None:
    assert percent_mul(1 * 10**18, 5000) == 5 * 10**17
    assert percent_mul(142515 * 10**14, 7442) == 10605966300000000000
    assert percent_mul(9087312 * 10**27, 1333) == 1211338689600000000000000000000000


def test_percent_mul_rounds_half_up() -> None:
    assert percent_mul(1, 5000) == 1
    assert percent_mul(1, 4999) == 0
    assert percent_mul(1000, 8500) == 850


def test_percent_div() -> None:
    assert percent_div(1 * 10**18, 5000) == 2 * 10**18
    assert percent_div(142515 * 10**14, 7442) == 19150094060736361193
    assert percent_div(9087312 * 10**27, 1333) == 68171882970742685671417854463615904


def test_percent_div_revert_on_div_by_zero() -> None:
    with pytest.raises(EVMRevertError):
        percent_div(1234, 0)


def test_percent_mul_ceil_exact() -> None:
    assert percent_mul_ceil(100 * 10**18, PERCENTAGE_FACTOR) == 100 * 10**18


def test_percent_mul_ceil_with_rounding_up() -> None:
    assert percent_mul_ceil(1, 1) == 1


def test_percent_mul_ceil_zero_value_or_percent() -> None:
    assert percent_mul_ceil(0, 100) == 0
    assert percent_mul_ceil(100, 0) == 0


def test_percent_mul_ceil_revert_on_overflow() -> None:
    with pytest.raises(EVMRevertError):
        percent_mul_ceil(MAX_UINT256, 2)


def test_percent_mul_floor_exact() -> None:
    assert percent_mul_floor(100 * 10**18, PERCENTAGE_FACTOR) == 100 * 10**18


def test_percent_mul_floor_with_truncation() -> None:
    assert percent_mul_floor(1, 1) == 0


def test_percent_mul_floor_revert_on_overflow() -> None:
    with pytest.raises(EVMRevertError):
        percent_mul_floor(MAX_UINT256, 2)


def test_percent_div_ceil_with_ceil_needed() -> None:
    assert percent_div_ceil(5, 3) == 16667


def test_percent_div_ceil_revert_on_overflow() -> None:
    with pytest.raises(EVMRevertError):
        percent_div_ceil(MAX_UINT256, 1)


@given(
    value=strategies.integers(min_value=0, max_value=MAX_UINT256),
    percentage=strategies.integers(min_value=0, max_value=MAX_UINT256),
)
def test_percent_mul_fuzz(value: int, percentage: int) -> None:
    if percentage != 0 and value > (MAX_UINT256 - HALF_PERCENTAGE_FACTOR) // percentage:
        with pytest.raises(EVMRevertError):
            percent_mul(value, percentage)
    else:
        assert (
            percent_mul(value, percentage)
            == ((value * percentage) + HALF_PERCENTAGE_FACTOR) // PERCENTAGE_FACTOR
        )


@given(
    value=strategies.integers(min_value=0, max_value=MAX_UINT256),
    percentage=strategies.integers(min_value=0, max_value=MAX_UINT256),
)
def test_percent_div_fuzz(value: int, percentage: int) -> None:
    if percentage == 0 or (value > (MAX_UINT256 - (percentage // 2)) // PERCENTAGE_FACTOR):
        with pytest.raises(EVMRevertError):
            percent_div(value, percentage)
    else:
        assert (
            percent_div(value, percentage)
            == ((value * PERCENTAGE_FACTOR) + (percentage // 2)) // percentage
        )


@given(
    value=strategies.integers(min_value=0, max_value=MAX_UINT256),
    percentage=strategies.integers(min_value=0, max_value=MAX_UINT256),
)
def test_percent_div_ceil_fuzz(value: int, percentage: int) -> None:
    if percentage == 0 or value > MAX_UINT256 // PERCENTAGE_FACTOR:
        with pytest.raises(EVMRevertError):
            percent_div_ceil(value, percentage)
    else:
        scaled = value * PERCENTAGE_FACTOR
        expected = (scaled // percentage) + (1 if scaled % percentage != 0 else 0)
        assert percent_div_ceil(value, percentage) == expected
