from .checksum_cache import get_checksum_address
from .config import settings
from .connection import connection_manager, get_web3, set_web3
from .version import __version__

# isort: split

from .aave import (
    CalculateUserAccountDataParams,
    EModeCategory,
    MarketState,
    ReserveConfiguration,
    ReserveData,
    ReserveList,
    UserAccountData,
    UserConfiguration,
    calculate_available_borrows,
    calculate_user_account_data,
)
from .logging import logger

__all__ = (
    "CalculateUserAccountDataParams",
    "EModeCategory",
    "MarketState",
    "ReserveConfiguration",
    "ReserveData",
    "ReserveList",
    "UserAccountData",
    "UserConfiguration",
    "__version__",
    "calculate_available_borrows",
    "calculate_user_account_data",
    "connection_manager",
    "get_checksum_address",
    "get_web3",
    "logger",
    "set_web3",
    "settings",
)
