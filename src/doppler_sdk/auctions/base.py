from collections.abc import Sequence
from typing import Any

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import TxParams

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.connection import connection_manager
from doppler_sdk.exceptions import ExternalCallError
from doppler_sdk.functions import encode_function_calldata, raw_call
from doppler_sdk.types import ModuleAddressOverrides


class ContractReader:
    """
    Read access to a single deployed contract through a `Web3` client. If no client is given, the
    one registered with the connection manager for `chain_id` is used.
    """

    def __init__(
        self,
        address: str,
        chain_id: int | None = None,
        w3: Web3 | None = None,
        modules: ModuleAddressOverrides | None = None,
    ) -> None:
        self.address = get_checksum_address(address)
        if chain_id is None:
            chain_id = w3.eth.chain_id if w3 is not None else connection_manager.default_chain_id
        self.chain_id = chain_id
        self._w3 = w3
        self.modules = modules

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(address={self.address}, chain_id={self.chain_id})"

    @property
    def w3(self) -> Web3:
        if self._w3 is not None:
            return self._w3
        return connection_manager.get_web3(self.chain_id)

    def _call(
        self,
        function_prototype: str,
        return_types: list[str],
        function_arguments: Sequence[Any] | None = None,
        address: ChecksumAddress | None = None,
        from_address: ChecksumAddress | None = None,
    ) -> tuple[Any, ...]:
        return raw_call(
            w3=self.w3,
            address=address if address is not None else self.address,
            calldata=encode_function_calldata(
                function_prototype=function_prototype,
                function_arguments=function_arguments,
            ),
            return_types=return_types,
            from_address=from_address,
        )

    def _call_single(
        self,
        function_prototype: str,
        return_type: str,
        function_arguments: Sequence[Any] | None = None,
        address: ChecksumAddress | None = None,
    ) -> Any:
        (result,) = self._call(function_prototype, [return_type], function_arguments, address)
        return result

    def _send(
        self,
        sender: ChecksumAddress,
        calldata: bytes,
        operation: str,
        *,
        address: ChecksumAddress | None = None,
        gas: int | None = None,
    ) -> HexBytes:
        """
        Send a transaction from `sender` and wait for its receipt. A failed receipt raises
        `ExternalCallError`.
        """

        transaction = TxParams(
            {
                "from": sender,
                "to": address if address is not None else self.address,
                "data": HexBytes(calldata),
            }
        )
        if gas is not None:
            transaction["gas"] = gas

        w3 = self.w3
        try:
            transaction_hash = HexBytes(w3.eth.send_transaction(transaction))
            receipt: Any = w3.eth.wait_for_transaction_receipt(transaction_hash)
        except Web3Exception as exc:
            raise ExternalCallError(operation=operation, error=str(exc)) from exc

        if receipt["status"] != 1:
            raise ExternalCallError(
                operation=operation,
                error=f"transaction {transaction_hash.to_0x_hex()} reverted",
            )
        return transaction_hash
