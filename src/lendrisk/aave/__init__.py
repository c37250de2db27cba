from lendrisk.aave import libraries
from lendrisk.aave.deployments import AaveV3Deployment, EthereumMainnetAaveV3, get_deployment
from lendrisk.aave.libraries.emode_logic import (
    EModeConfiguration,
    get_emode_configuration,
    is_in_emode_category,
)
from lendrisk.aave.libraries.generic_logic import (
    HEALTH_FACTOR_LIQUIDATION_THRESHOLD,
    NO_DEBT_HEALTH_FACTOR,
    CalculateUserAccountDataParams,
    UserAccountData,
    calculate_available_borrows,
    calculate_user_account_data,
)
from lendrisk.aave.libraries.reserve_configuration import ReserveConfiguration
from lendrisk.aave.libraries.user_configuration import UserConfiguration
from lendrisk.aave.onchain import (
    AaveV3Oracle,
    AaveV3PoolAccrual,
    AaveV3PoolReader,
    Erc20BalanceSource,
)
from lendrisk.aave.sources import SnapshotAccrual, StaticBalanceSource, StaticPriceOracle
from lendrisk.aave.types import (
    AccrualSource,
    BalanceSource,
    EModeCategory,
    MarketState,
    PriceOracle,
    ReserveData,
    ReserveList,
)

__all__ = (
    "HEALTH_FACTOR_LIQUIDATION_THRESHOLD",
    "NO_DEBT_HEALTH_FACTOR",
    "AaveV3Deployment",
    "AaveV3Oracle",
    "AaveV3PoolAccrual",
    "AaveV3PoolReader",
    "AccrualSource",
    "BalanceSource",
    "CalculateUserAccountDataParams",
    "EModeCategory",
    "EModeConfiguration",
    "Erc20BalanceSource",
    "EthereumMainnetAaveV3",
    "MarketState",
    "PriceOracle",
    "ReserveConfiguration",
    "ReserveData",
    "ReserveList",
    "SnapshotAccrual",
    "StaticBalanceSource",
    "StaticPriceOracle",
    "UserAccountData",
    "UserConfiguration",
    "calculate_available_borrows",
    "calculate_user_account_data",
    "get_deployment",
    "get_emode_configuration",
    "is_in_emode_category",
    "libraries",
)
