import tenacity
from web3 import Web3

from doppler_sdk.exceptions import DopplerValueError


class ConnectionManager:
    """
    A registry of caller-supplied Web3 clients, keyed by chain ID. The clients own their transport,
    signing, and retry behavior.
    """

    def __init__(self) -> None:
        self.connections: dict[int, Web3] = {}
        self._default_chain_id: int | None = None

    def get_web3(self, chain_id: int) -> Web3:
        try:
            return self.connections[chain_id]
        except KeyError:
            raise DopplerValueError(
                message=f"Chain ID {chain_id} does not have a registered Web3 instance."
            ) from None

    def register_web3(self, w3: Web3) -> None:
        w3_connected_check_with_retry = tenacity.Retrying(
            stop=tenacity.stop_after_delay(10),
            wait=tenacity.wait_exponential_jitter(),
            retry=tenacity.retry_if_result(lambda result: result is False),
        )
        try:
            w3_connected_check_with_retry(fn=w3.is_connected)
        except tenacity.RetryError as exc:
            raise DopplerValueError(message="Web3 instance is not connected.") from exc

        self.connections[w3.eth.chain_id] = w3

    def set_default_chain(self, chain_id: int) -> None:
        self._default_chain_id = chain_id

    @property
    def default_chain_id(self) -> int:
        if self._default_chain_id is None:
            raise DopplerValueError(message="A default Web3 instance has not been registered.")
        return self._default_chain_id
