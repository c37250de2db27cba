from pathlib import Path

from pydantic import HttpUrl, WebsocketUrl
from web3 import HTTPProvider, IPCProvider, LegacyWebSocketProvider, Web3

from lendrisk.config import CONFIG_FILE, settings
from lendrisk.connection import connection_manager
from lendrisk.exceptions import LendriskValueError


def get_web3_from_config(*, chain_id: int, optimize: bool = True) -> Web3:
    """
    Return the registered instance for the chain, building and registering one from the endpoint
    in the config file on first use.
    """

    if chain_id not in connection_manager:
        match endpoint := settings.rpc.get(chain_id):
            case HttpUrl():
                w3 = Web3(HTTPProvider(str(endpoint)))
            case WebsocketUrl():
                w3 = Web3(LegacyWebSocketProvider(str(endpoint)))
            case Path():
                w3 = Web3(IPCProvider(str(endpoint)))
            case None:
                raise LendriskValueError(
                    message=f"Chain ID {chain_id} does not have an RPC defined in config file "
                    f"{CONFIG_FILE}"
                )

        connection_manager.register_web3(w3, expected_chain_id=chain_id, optimize=optimize)

    return connection_manager.get_web3(chain_id)
