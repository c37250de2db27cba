"""
Collaborators backed by contract calls to a live Aave V3 market.

Every reader is pinned to a single block so that one account calculation observes one consistent
ledger state. When no block is given, the chain head at construction time is used.
"""

from typing import Any

from eth_typing import ChecksumAddress
from web3 import Web3
from web3.types import BlockIdentifier

from lendrisk.aave.deployments import AaveV3Deployment
from lendrisk.aave.libraries.generic_logic import CalculateUserAccountDataParams
from lendrisk.aave.libraries.reserve_configuration import ReserveConfiguration
from lendrisk.aave.libraries.user_configuration import UserConfiguration
from lendrisk.aave.types import EModeCategory, MarketState, ReserveData, ReserveList
from lendrisk.checksum_cache import get_checksum_address
from lendrisk.connection import connection_manager, get_web3
from lendrisk.functions import encode_function_calldata, raw_call
from lendrisk.logging import logger

RESERVE_DATA_TYPES = [
    "uint256",  # configuration
    "uint128",  # liquidityIndex
    "uint128",  # currentLiquidityRate
    "uint128",  # variableBorrowIndex
    "uint128",  # currentVariableBorrowRate
    "uint128",  # currentStableBorrowRate
    "uint40",  # lastUpdateTimestamp
    "uint16",  # id
    "address",  # aTokenAddress
    "address",  # stableDebtTokenAddress
    "address",  # variableDebtTokenAddress
    "address",  # interestRateStrategyAddress
    "uint128",  # accruedToTreasury
    "uint128",  # unbacked
    "uint128",  # isolationModeTotalDebt
]


class _PinnedReader:
    def __init__(
        self, w3: Web3 | None = None, block_identifier: BlockIdentifier | None = None
    ) -> None:
        # Fall back to the instance registered for the default chain
        self.w3 = w3 if w3 is not None else get_web3()
        self.block_identifier: BlockIdentifier = (
            block_identifier if block_identifier is not None else self.w3.eth.block_number
        )

    def _call(
        self,
        address: ChecksumAddress,
        function_prototype: str,
        function_arguments: list[Any] | None,
        return_types: list[str],
    ) -> tuple[Any, ...]:
        return raw_call(
            w3=self.w3,
            address=address,
            calldata=encode_function_calldata(
                function_prototype=function_prototype,
                function_arguments=function_arguments,
            ),
            return_types=return_types,
            block_identifier=self.block_identifier,
        )


class AaveV3Oracle(_PinnedReader):
    def __init__(
        self,
        address: str,
        w3: Web3 | None = None,
        block_identifier: BlockIdentifier | None = None,
    ) -> None:
        super().__init__(w3, block_identifier)
        self.address = get_checksum_address(address)

    def get_asset_price(self, asset: ChecksumAddress) -> int:
        (price,) = self._call(self.address, "getAssetPrice(address)", [asset], ["uint256"])
        return price


class Erc20BalanceSource(_PinnedReader):
    def scaled_balance_of(self, token: ChecksumAddress, user: ChecksumAddress) -> int:
        (balance,) = self._call(token, "scaledBalanceOf(address)", [user], ["uint256"])
        return balance

    def balance_of(self, token: ChecksumAddress, user: ChecksumAddress) -> int:
        (balance,) = self._call(token, "balanceOf(address)", [user], ["uint256"])
        return balance


class AaveV3PoolAccrual(_PinnedReader):
    """
    Normalization factors as reported by the Pool contract.
    """

    def __init__(
        self,
        pool_address: str,
        w3: Web3 | None = None,
        block_identifier: BlockIdentifier | None = None,
    ) -> None:
        super().__init__(w3, block_identifier)
        self.pool_address = get_checksum_address(pool_address)

    def get_normalized_income(self, asset: ChecksumAddress, reserve: ReserveData) -> int:  # noqa: ARG002
        (income,) = self._call(
            self.pool_address, "getReserveNormalizedIncome(address)", [asset], ["uint256"]
        )
        return income

    def get_normalized_debt(self, asset: ChecksumAddress, reserve: ReserveData) -> int:  # noqa: ARG002
        (debt,) = self._call(
            self.pool_address, "getReserveNormalizedVariableDebt(address)", [asset], ["uint256"]
        )
        return debt


class AaveV3PoolReader(_PinnedReader):
    """
    Loads the reserve table, e-mode categories and user state from an Aave V3 Pool, resolving the
    Pool and price oracle addresses through the market's PoolAddressesProvider.
    """

    def __init__(
        self,
        pool_address_provider: str,
        w3: Web3 | None = None,
        block_identifier: BlockIdentifier | None = None,
    ) -> None:
        super().__init__(w3, block_identifier)
        self.pool_address_provider = get_checksum_address(pool_address_provider)

        (pool_address,) = self._call(self.pool_address_provider, "getPool()", None, ["address"])
        (oracle_address,) = self._call(
            self.pool_address_provider, "getPriceOracle()", None, ["address"]
        )
        self.pool_address = get_checksum_address(pool_address)
        self.oracle_address = get_checksum_address(oracle_address)

    @classmethod
    def from_deployment(
        cls,
        deployment: AaveV3Deployment,
        w3: Web3 | None = None,
        block_identifier: BlockIdentifier | None = None,
    ) -> "AaveV3PoolReader":
        """
        Build a reader for a known deployment. Without `w3`, the instance registered for the
        deployment's chain is used.
        """

        return cls(
            pool_address_provider=deployment.pool_address_provider,
            w3=w3 if w3 is not None else connection_manager.get_web3(deployment.chain_id),
            block_identifier=block_identifier,
        )

    def get_reserves_list(self) -> list[ChecksumAddress]:
        (reserves,) = self._call(self.pool_address, "getReservesList()", None, ["address[]"])
        return [get_checksum_address(reserve) for reserve in reserves]

    def get_reserve_data(self, asset: ChecksumAddress) -> ReserveData:
        (
            configuration,
            liquidity_index,
            current_liquidity_rate,
            variable_borrow_index,
            current_variable_borrow_rate,
            current_stable_borrow_rate,
            last_update_timestamp,
            reserve_id,
            a_token_address,
            stable_debt_token_address,
            variable_debt_token_address,
            interest_rate_strategy_address,
            accrued_to_treasury,
            unbacked,
            isolation_mode_total_debt,
        ) = self._call(self.pool_address, "getReserveData(address)", [asset], RESERVE_DATA_TYPES)

        return ReserveData(
            configuration=ReserveConfiguration.decode(configuration),
            liquidity_index=liquidity_index,
            current_liquidity_rate=current_liquidity_rate,
            variable_borrow_index=variable_borrow_index,
            current_variable_borrow_rate=current_variable_borrow_rate,
            current_stable_borrow_rate=current_stable_borrow_rate,
            last_update_timestamp=last_update_timestamp,
            id=reserve_id,
            a_token_address=get_checksum_address(a_token_address),
            stable_debt_token_address=get_checksum_address(stable_debt_token_address),
            variable_debt_token_address=get_checksum_address(variable_debt_token_address),
            interest_rate_strategy_address=get_checksum_address(interest_rate_strategy_address),
            accrued_to_treasury=accrued_to_treasury,
            unbacked=unbacked,
            isolation_mode_total_debt=isolation_mode_total_debt,
        )

    def get_reserves(self) -> ReserveList:
        return ReserveList.from_reserves(
            {asset: self.get_reserve_data(asset) for asset in self.get_reserves_list()}
        )

    def get_e_mode_category(self, category_id: int) -> EModeCategory:
        ((ltv, liquidation_threshold, liquidation_bonus, price_source, label),) = self._call(
            self.pool_address,
            "getEModeCategoryData(uint8)",
            [category_id],
            ["(uint16,uint16,uint16,address,string)"],
        )
        return EModeCategory(
            ltv=ltv,
            liquidation_threshold=liquidation_threshold,
            liquidation_bonus=liquidation_bonus,
            price_source=get_checksum_address(price_source),
            label=label,
        )

    def get_user_configuration(self, user: ChecksumAddress) -> UserConfiguration:
        (data,) = self._call(
            self.pool_address, "getUserConfiguration(address)", [user], ["uint256"]
        )
        return UserConfiguration(data)

    def get_user_e_mode(self, user: ChecksumAddress) -> int:
        (category,) = self._call(self.pool_address, "getUserEMode(address)", [user], ["uint256"])
        return category

    def load_market_state(self, extra_e_mode_categories: tuple[int, ...] = ()) -> MarketState:
        reserves = self.get_reserves()
        category_ids = {
            reserve.configuration.e_mode_category
            for _, reserve in reserves
            if reserve is not None
        } | set(extra_e_mode_categories)
        category_ids.discard(0)

        logger.info(
            f"Loaded {len(reserves.assets)} reserves and {len(category_ids)} e-mode categories "
            f"from pool {self.pool_address} at block {self.block_identifier}"
        )

        return MarketState(
            reserves=reserves,
            oracle=AaveV3Oracle(self.oracle_address, self.w3, self.block_identifier),
            balances=Erc20BalanceSource(self.w3, self.block_identifier),
            accrual=AaveV3PoolAccrual(self.pool_address, self.w3, self.block_identifier),
            e_mode_categories={
                category_id: self.get_e_mode_category(category_id)
                for category_id in sorted(category_ids)
            },
        )

    def load_user_account_params(
        self,
        user: str,
        reserves: ReserveList,
        user_e_mode_category: int | None = None,
    ) -> CalculateUserAccountDataParams:
        """
        Read the user's configuration bitmap. The e-mode category is read too, unless the caller
        already holds it.
        """

        user = get_checksum_address(user)
        if user_e_mode_category is None:
            user_e_mode_category = self.get_user_e_mode(user)
        return CalculateUserAccountDataParams(
            user_config=self.get_user_configuration(user),
            reserves_count=len(reserves),
            user=user,
            user_e_mode_category=user_e_mode_category,
        )
