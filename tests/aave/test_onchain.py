from collections.abc import Callable
from typing import Any

import eth_abi.abi
import pytest
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak

from lendrisk.aave.deployments import (
    ArbitrumAaveV3,
    EthereumMainnetAaveV3,
    get_deployment,
)
from lendrisk.aave.libraries.generic_logic import calculate_user_account_data
from lendrisk.aave.libraries.percentage_math import percent_mul
from lendrisk.aave.libraries.reserve_configuration import ReserveConfiguration
from lendrisk.aave.libraries.wad_ray_math import RAY, ray_div
from lendrisk.aave.onchain import (
    AaveV3Oracle,
    AaveV3PoolAccrual,
    AaveV3PoolReader,
    Erc20BalanceSource,
)
from lendrisk.checksum_cache import get_checksum_address
from lendrisk.connection import connection_manager, set_web3
from lendrisk.constants import ZERO_ADDRESS
from lendrisk.exceptions import LendriskValueError
from lendrisk.functions import extract_argument_types_from_function_prototype

BLOCK_NUMBER = 19_000_000

PROVIDER = EthereumMainnetAaveV3.pool_address_provider
POOL = get_checksum_address("0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2")
ORACLE = get_checksum_address("0x54586bE62E3c3580375aE3723C145253060Ca0C2")
USER = get_checksum_address("0x00000000000000000000000000000000deadbeef")

WETH = get_checksum_address("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
A_WETH = get_checksum_address("0x4d5F47FA6A74757f35C14fD3a6Ef8E3C9BC514E8")
STABLE_DEBT_WETH = get_checksum_address("0x102633152313C81cD80419b6EcF66d14Ad68949A")
VARIABLE_DEBT_WETH = get_checksum_address("0xeA51d7853EEFb32b6ee06b1C12E6dcCA88Be0fFE")

USDC = get_checksum_address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")
A_USDC = get_checksum_address("0x98C23E9d8f34FEFb1B7BD6a91B7FF122F4e16F5c")
STABLE_DEBT_USDC = get_checksum_address("0xB0fe3D292f4bd50De902Ba5bDF120Ad66E9d7a39")
VARIABLE_DEBT_USDC = get_checksum_address("0x72E95b8931767C79bA4EeE721354d6E99a61D004")

RATE_STRATEGY = get_checksum_address("0x0000000000000000000000000000000000005a7e")
EMODE_PRICE_SOURCE = get_checksum_address("0x000000000000000000000000000000000000e70d")

WETH_CONFIG = ReserveConfiguration(
    ltv=8050,
    liquidation_threshold=8300,
    liquidation_bonus=10500,
    decimals=18,
    active=True,
    borrowing_enabled=True,
    reserve_factor=1500,
    e_mode_category=1,
)
USDC_CONFIG = ReserveConfiguration(
    ltv=7700,
    liquidation_threshold=8000,
    liquidation_bonus=10450,
    decimals=6,
    active=True,
    borrowing_enabled=True,
    reserve_factor=1000,
)


class FakeEth:
    """
    Answers eth_call requests from registered handlers, keyed by contract address and selector.
    """

    def __init__(self, block_number: int = BLOCK_NUMBER, chain_id: int = 1) -> None:
        self.block_number = block_number
        self.chain_id = chain_id
        self.calls: list[tuple[ChecksumAddress, str, Any]] = []
        self._handlers: dict[
            tuple[ChecksumAddress, bytes], tuple[str, list[str], list[str], Callable[..., Any]]
        ] = {}

    def register(
        self,
        address: ChecksumAddress,
        function_prototype: str,
        return_types: list[str],
        handler: Callable[..., Any],
    ) -> None:
        self._handlers[address, keccak(text=function_prototype)[:4]] = (
            function_prototype,
            extract_argument_types_from_function_prototype(function_prototype),
            return_types,
            handler,
        )

    def call(self, transaction: dict[str, Any], block_identifier: Any = None) -> bytes:
        address = transaction["to"]
        data = transaction["data"]
        function_prototype, argument_types, return_types, handler = self._handlers[
            address, data[:4]
        ]
        self.calls.append((address, function_prototype, block_identifier))
        args = eth_abi.abi.decode(argument_types, data[4:])
        return eth_abi.abi.encode(return_types, handler(*args))


class FakeWeb3:
    def __init__(self, eth: FakeEth) -> None:
        self.eth = eth

    def is_connected(self) -> bool:
        return True


def _reserve_data(
    config: ReserveConfiguration,
    reserve_id: int,
    a_token: ChecksumAddress,
    stable_debt_token: ChecksumAddress,
    variable_debt_token: ChecksumAddress,
) -> tuple[Any, ...]:
    return (
        config.encode(),
        RAY,
        RAY // 50,
        RAY,
        RAY // 25,
        0,
        1_700_000_000,
        reserve_id,
        a_token,
        stable_debt_token,
        variable_debt_token,
        RATE_STRATEGY,
        12345,
        0,
        0,
    )


@pytest.fixture
def fake_eth() -> FakeEth:
    eth = FakeEth()

    eth.register(PROVIDER, "getPool()", ["address"], lambda: (POOL,))
    eth.register(PROVIDER, "getPriceOracle()", ["address"], lambda: (ORACLE,))

    eth.register(POOL, "getReservesList()", ["address[]"], lambda: ([WETH, USDC],))
    reserve_data = {
        WETH: _reserve_data(WETH_CONFIG, 0, A_WETH, STABLE_DEBT_WETH, VARIABLE_DEBT_WETH),
        USDC: _reserve_data(USDC_CONFIG, 1, A_USDC, STABLE_DEBT_USDC, VARIABLE_DEBT_USDC),
    }
    eth.register(
        POOL,
        "getReserveData(address)",
        [
            "uint256",
            "uint128",
            "uint128",
            "uint128",
            "uint128",
            "uint128",
            "uint40",
            "uint16",
            "address",
            "address",
            "address",
            "address",
            "uint128",
            "uint128",
            "uint128",
        ],
        lambda asset: reserve_data[get_checksum_address(asset)],
    )
    e_mode_categories = {
        1: (9000, 9300, 10100, ZERO_ADDRESS, "ETH correlated"),
        2: (9300, 9500, 10100, EMODE_PRICE_SOURCE, "Stablecoins"),
    }
    eth.register(
        POOL,
        "getEModeCategoryData(uint8)",
        ["(uint16,uint16,uint16,address,string)"],
        lambda category_id: (e_mode_categories[category_id],),
    )
    eth.register(
        POOL,
        "getUserConfiguration(address)",
        ["uint256"],
        # WETH (id 0) as collateral, USDC (id 1) borrowed
        lambda user: (0b0110 if get_checksum_address(user) == USER else 0,),
    )
    eth.register(POOL, "getUserEMode(address)", ["uint256"], lambda user: (0,))
    eth.register(
        POOL,
        "getReserveNormalizedIncome(address)",
        ["uint256"],
        lambda asset: ({WETH: 11 * RAY // 10, USDC: RAY}[get_checksum_address(asset)],),
    )
    eth.register(
        POOL,
        "getReserveNormalizedVariableDebt(address)",
        ["uint256"],
        lambda asset: ({WETH: RAY, USDC: 12 * RAY // 10}[get_checksum_address(asset)],),
    )

    prices = {WETH: 2_000 * 10**8, USDC: 10**8, EMODE_PRICE_SOURCE: 10**8}
    eth.register(
        ORACLE,
        "getAssetPrice(address)",
        ["uint256"],
        lambda asset: (prices[get_checksum_address(asset)],),
    )

    scaled_balances = {
        A_WETH: 10 * 10**18,
        VARIABLE_DEBT_USDC: 5_000 * 10**6,
    }
    balances = {STABLE_DEBT_USDC: 1_000 * 10**6}
    for token in (
        A_WETH,
        STABLE_DEBT_WETH,
        VARIABLE_DEBT_WETH,
        A_USDC,
        STABLE_DEBT_USDC,
        VARIABLE_DEBT_USDC,
    ):
        eth.register(
            token,
            "scaledBalanceOf(address)",
            ["uint256"],
            lambda user, token=token: (scaled_balances.get(token, 0),),
        )
        eth.register(
            token,
            "balanceOf(address)",
            ["uint256"],
            lambda user, token=token: (balances.get(token, 0),),
        )

    return eth


@pytest.fixture
def reader(fake_eth: FakeEth) -> AaveV3PoolReader:
    return AaveV3PoolReader(PROVIDER, w3=FakeWeb3(fake_eth))  # type: ignore[arg-type]


def test_get_deployment():
    assert get_deployment(1) is EthereumMainnetAaveV3
    assert get_deployment(42161) is ArbitrumAaveV3
    with pytest.raises(LendriskValueError, match="No known Aave V3 deployment"):
        get_deployment(69)


def test_reader_resolves_addresses(reader: AaveV3PoolReader):
    assert reader.pool_address == POOL
    assert reader.oracle_address == ORACLE
    assert reader.block_identifier == BLOCK_NUMBER


def test_reader_from_deployment(fake_eth: FakeEth):
    reader = AaveV3PoolReader.from_deployment(
        EthereumMainnetAaveV3,
        w3=FakeWeb3(fake_eth),  # type: ignore[arg-type]
        block_identifier=18_000_000,
    )
    assert reader.pool_address_provider == PROVIDER
    assert reader.block_identifier == 18_000_000
    assert {block for _, _, block in fake_eth.calls} == {18_000_000}


def test_get_reserve_data(reader: AaveV3PoolReader):
    reserve = reader.get_reserve_data(USDC)

    assert reserve.configuration == USDC_CONFIG
    assert reserve.id == 1
    assert reserve.liquidity_index == RAY
    assert reserve.current_liquidity_rate == RAY // 50
    assert reserve.current_variable_borrow_rate == RAY // 25
    assert reserve.last_update_timestamp == 1_700_000_000
    assert reserve.a_token_address == A_USDC
    assert reserve.stable_debt_token_address == STABLE_DEBT_USDC
    assert reserve.variable_debt_token_address == VARIABLE_DEBT_USDC
    assert reserve.interest_rate_strategy_address == RATE_STRATEGY
    assert reserve.accrued_to_treasury == 12345


def test_get_reserves(reader: AaveV3PoolReader):
    reserves = reader.get_reserves()
    assert reader.get_reserves_list() == [WETH, USDC]
    assert reserves.assets == [WETH, USDC]
    assert reserves.get_reserve(WETH).configuration == WETH_CONFIG


def test_get_e_mode_category(reader: AaveV3PoolReader):
    category = reader.get_e_mode_category(2)
    assert category.ltv == 9300
    assert category.liquidation_threshold == 9500
    assert category.liquidation_bonus == 10100
    assert category.price_source == EMODE_PRICE_SOURCE
    assert category.label == "Stablecoins"


def test_user_state(reader: AaveV3PoolReader):
    user_config = reader.get_user_configuration(USER)
    assert user_config.is_using_as_collateral(0)
    assert not user_config.is_borrowing(0)
    assert user_config.is_borrowing(1)
    assert reader.get_user_e_mode(USER) == 0


def test_load_market_state(reader: AaveV3PoolReader):
    market = reader.load_market_state()

    assert market.reserves.assets == [WETH, USDC]
    # only categories used by a listed reserve are loaded
    assert set(market.e_mode_categories) == {1}
    assert isinstance(market.oracle, AaveV3Oracle)
    assert isinstance(market.balances, Erc20BalanceSource)
    assert isinstance(market.accrual, AaveV3PoolAccrual)


def test_load_market_state_with_extra_categories(reader: AaveV3PoolReader):
    market = reader.load_market_state(extra_e_mode_categories=(0, 2))
    assert set(market.e_mode_categories) == {1, 2}
    assert market.e_mode_categories[2].label == "Stablecoins"


def test_account_data_from_chain(reader: AaveV3PoolReader, fake_eth: FakeEth):
    market = reader.load_market_state()
    params = reader.load_user_account_params(USER.lower(), market.reserves)

    assert params.user == USER
    assert params.reserves_count == 2
    assert params.user_e_mode_category == 0

    account = calculate_user_account_data(market, params)

    # 10 WETH * 1.1 normalized income @ $2000
    assert account.total_collateral_base == 22_000 * 10**8
    # 5000 USDC * 1.2 normalized debt + 1000 USDC stable @ $1
    assert account.total_debt_base == 7_000 * 10**8
    assert account.avg_ltv == 8050
    assert account.avg_liquidation_threshold == 8300
    assert account.health_factor == ray_div(percent_mul(22_000 * 10**8, 8300), 7_000 * 10**8)
    assert account.health_factor > RAY
    assert not account.has_zero_ltv_collateral

    # every read observed the same block
    assert {block for _, _, block in fake_eth.calls} == {BLOCK_NUMBER}


def test_oracle_and_balance_readers(fake_eth: FakeEth):
    w3 = FakeWeb3(fake_eth)
    oracle = AaveV3Oracle(ORACLE, w3=w3, block_identifier=1)  # type: ignore[arg-type]
    balances = Erc20BalanceSource(w3, block_identifier=1)  # type: ignore[arg-type]

    assert oracle.get_asset_price(WETH) == 2_000 * 10**8
    assert balances.scaled_balance_of(A_WETH, USER) == 10 * 10**18
    assert balances.balance_of(STABLE_DEBT_USDC, USER) == 1_000 * 10**6
    assert balances.balance_of(A_WETH, USER) == 0
    assert [call[1] for call in fake_eth.calls] == [
        "getAssetPrice(address)",
        "scaledBalanceOf(address)",
        "balanceOf(address)",
        "balanceOf(address)",
    ]


def test_load_user_account_params_reuses_known_e_mode(
    reader: AaveV3PoolReader, fake_eth: FakeEth
):
    market = reader.load_market_state()
    params = reader.load_user_account_params(USER, market.reserves, user_e_mode_category=1)

    assert params.user_e_mode_category == 1
    assert "getUserEMode(address)" not in [call[1] for call in fake_eth.calls]


def test_load_user_account_params_reads_e_mode_once(reader: AaveV3PoolReader, fake_eth: FakeEth):
    reader.load_user_account_params(USER, reader.get_reserves())
    assert [call[1] for call in fake_eth.calls].count("getUserEMode(address)") == 1


def test_readers_use_registered_web3(fake_eth: FakeEth):
    w3 = FakeWeb3(fake_eth)
    set_web3(w3, optimize=False)  # type: ignore[arg-type]

    reader = AaveV3PoolReader(PROVIDER)
    assert reader.w3 is w3
    assert reader.pool_address == POOL

    deployment_reader = AaveV3PoolReader.from_deployment(EthereumMainnetAaveV3)
    assert deployment_reader.w3 is w3
    assert deployment_reader.block_identifier == BLOCK_NUMBER

    oracle = AaveV3Oracle(ORACLE)
    assert oracle.w3 is w3
    assert oracle.get_asset_price(WETH) == 2_000 * 10**8


def test_from_deployment_without_registered_chain(fake_eth: FakeEth):
    connection_manager.register_web3(FakeWeb3(fake_eth), optimize=False)  # type: ignore[arg-type]

    with pytest.raises(LendriskValueError, match="does not have a registered Web3 instance"):
        AaveV3PoolReader.from_deployment(ArbitrumAaveV3)


def test_reader_without_any_registered_web3():
    with pytest.raises(LendriskValueError, match="default Web3 instance has not been registered"):
        AaveV3PoolReader(PROVIDER)
