from lendrisk.exceptions.base import LendriskError, LendriskTypeError, LendriskValueError
from lendrisk.exceptions.evm import EVMRevertError, InvalidUint256

from . import evm

__all__ = (
    "EVMRevertError",
    "InvalidUint256",
    "LendriskError",
    "LendriskTypeError",
    "LendriskValueError",
    "evm",
)
