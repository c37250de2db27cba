from json import JSONDecodeError
from typing import TYPE_CHECKING, cast

import tenacity
from ujson import loads as ujson_loads
from web3 import JSONBaseProvider, Web3
from web3.types import RPCResponse

from lendrisk.exceptions import LendriskValueError
from lendrisk.logging import logger
from lendrisk.types.aliases import ChainId


def _fast_decode_rpc_response(raw_response: bytes) -> RPCResponse:
    """
    Decode the JSON-RPC response using ujson.
    """

    try:
        return cast("RPCResponse", ujson_loads(raw_response))
    except ValueError:
        # Re-raise as a dummy JSONDecodeError so web3py's exception handling works as intended.
        msg = "JSON failure"
        raise JSONDecodeError(msg, "[]", 0) from None


class ConnectionManager:
    """
    Registry of `Web3` instances keyed by chain ID. On-chain readers built without an explicit
    `Web3` instance take theirs from here.
    """

    def __init__(self) -> None:
        self.connections: dict[ChainId, Web3] = {}
        self._default_chain_id: ChainId | None = None

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self.connections

    def clear(self) -> None:
        self.connections.clear()
        self._default_chain_id = None

    def get_web3(self, chain_id: ChainId) -> Web3:
        try:
            return self.connections[chain_id]
        except KeyError:
            raise LendriskValueError(
                message="Chain ID does not have a registered Web3 instance."
            ) from None

    def register_web3(
        self,
        w3: Web3,
        *,
        expected_chain_id: ChainId | None = None,
        optimize: bool = True,
    ) -> ChainId:
        """
        Verify the connection and store the instance under the chain ID reported by the node.

        If `expected_chain_id` is given, a node reporting a different chain is rejected. Returns
        the registered chain ID.
        """

        w3_connected_check_with_retry = tenacity.Retrying(
            stop=tenacity.stop_after_delay(10),
            wait=tenacity.wait_exponential_jitter(),
            retry=tenacity.retry_if_result(lambda result: result is False),
        )
        try:
            w3_connected_check_with_retry(fn=w3.is_connected)
        except tenacity.RetryError as exc:
            raise LendriskValueError(message="Web3 instance is not connected.") from exc

        chain_id = w3.eth.chain_id
        if expected_chain_id is not None and chain_id != expected_chain_id:
            raise LendriskValueError(
                message=f"The chain ID ({chain_id}) reported by the node does not match the "
                f"expected chain ID ({expected_chain_id})."
            )

        if optimize:
            # Remove all middleware and monkey-patch the JSON decoding for RPC responses
            w3.middleware_onion.clear()
            if TYPE_CHECKING:
                assert isinstance(w3.provider, JSONBaseProvider)
            w3.provider.decode_rpc_response = _fast_decode_rpc_response  # type:ignore[method-assign]

        self.connections[chain_id] = w3
        logger.debug(f"Registered Web3 instance for chain ID {chain_id}")
        return chain_id

    def set_default_chain(self, chain_id: ChainId) -> None:
        self._default_chain_id = chain_id

    @property
    def default_chain_id(self) -> ChainId:
        if self._default_chain_id is None:
            raise LendriskValueError(message="A default Web3 instance has not been registered.")
        return self._default_chain_id
