from web3 import Web3

from lendrisk.types.aliases import ChainId

from .connection_manager import ConnectionManager


def get_web3(chain_id: ChainId | None = None) -> Web3:
    """
    Return the registered instance for `chain_id`, or for the default chain if omitted.
    """

    if chain_id is None:
        chain_id = connection_manager.default_chain_id
    return connection_manager.get_web3(chain_id=chain_id)


def set_web3(
    w3: Web3,
    *,
    optimize: bool = True,
) -> None:
    """
    Register the instance and make its chain the default.
    """

    connection_manager.set_default_chain(connection_manager.register_web3(w3, optimize=optimize))


connection_manager = ConnectionManager()


__all__ = (
    "connection_manager",
    "get_web3",
    "set_web3",
)
