from dataclasses import dataclass

import eth_typing
from eth_typing import ChecksumAddress

from lendrisk.checksum_cache import get_checksum_address
from lendrisk.exceptions import LendriskValueError


@dataclass(slots=True, frozen=True)
class AaveV3Deployment:
    name: str
    chain_id: eth_typing.ChainId
    pool_address_provider: ChecksumAddress


EthereumMainnetAaveV3 = AaveV3Deployment(
    name="Ethereum Mainnet Aave V3",
    chain_id=eth_typing.ChainId.ETH,
    pool_address_provider=get_checksum_address("0x2f39d218133AFaB8F2B819B1066c7E434Ad94E9e"),
)

ArbitrumAaveV3 = AaveV3Deployment(
    name="Arbitrum Aave V3",
    chain_id=eth_typing.ChainId.ARB1,
    pool_address_provider=get_checksum_address("0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb"),
)

DEPLOYMENTS_BY_CHAIN_ID: dict[int, AaveV3Deployment] = {
    deployment.chain_id: deployment for deployment in (EthereumMainnetAaveV3, ArbitrumAaveV3)
}


def get_deployment(chain_id: int) -> AaveV3Deployment:
    try:
        return DEPLOYMENTS_BY_CHAIN_ID[chain_id]
    except KeyError:
        raise LendriskValueError(
            message=f"No known Aave V3 deployment for chain ID {chain_id}."
        ) from None
