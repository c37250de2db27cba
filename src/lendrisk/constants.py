__all__ = (
    "MAX_UINT8",
    "MAX_UINT16",
    "MAX_UINT40",
    "MAX_UINT128",
    "MAX_UINT256",
    "MIN_UINT8",
    "MIN_UINT16",
    "MIN_UINT40",
    "MIN_UINT128",
    "MIN_UINT256",
    "ZERO_ADDRESS",
)

import typing

from eth_typing import ChecksumAddress

from lendrisk.checksum_cache import get_checksum_address


def _min_uint(_: int) -> int:
    return 0


def _max_uint(bits: int) -> int:
    return typing.cast("int", 2**bits - 1)


MIN_UINT8 = _min_uint(8)
MAX_UINT8 = _max_uint(8)

MIN_UINT16 = _min_uint(16)
MAX_UINT16 = _max_uint(16)

MIN_UINT40 = _min_uint(40)
MAX_UINT40 = _max_uint(40)

MIN_UINT128 = _min_uint(128)
MAX_UINT128 = _max_uint(128)

MIN_UINT256 = _min_uint(256)
MAX_UINT256 = _max_uint(256)

ZERO_ADDRESS: ChecksumAddress = get_checksum_address("0x0000000000000000000000000000000000000000")
