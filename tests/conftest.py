import logging
from collections.abc import Callable, Sequence
from typing import Any

import eth_abi.abi
import pytest
from eth_utils.crypto import keccak
from hexbytes import HexBytes
from web3.exceptions import Web3Exception

from doppler_sdk import deployments
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.connection import connection_manager
from doppler_sdk.constants import WAD, ChainIds
from doppler_sdk.logging import logger
from doppler_sdk.types import BeneficiaryShare, ModuleAddressOverrides

CHAIN_ID = ChainIds.BASE_SEPOLIA

USER = get_checksum_address("0x1111111111111111111111111111111111111111")
PROTOCOL_OWNER = get_checksum_address("0x2222222222222222222222222222222222222222")
NUMERAIRE = get_checksum_address("0x4200000000000000000000000000000000000006")

MODULES = ModuleAddressOverrides().merge(
    airlock="0xa000000000000000000000000000000000000001",
    token_factory="0xa000000000000000000000000000000000000002",
    doppler404_factory="0xa000000000000000000000000000000000000003",
    v3_initializer="0xa000000000000000000000000000000000000004",
    lockable_v3_initializer="0xa000000000000000000000000000000000000005",
    v4_initializer="0xa000000000000000000000000000000000000006",
    v4_multicurve_initializer="0xa000000000000000000000000000000000000007",
    v4_scheduled_multicurve_initializer="0xa000000000000000000000000000000000000008",
    doppler_deployer="0xa000000000000000000000000000000000000009",
    pool_manager="0xa00000000000000000000000000000000000000a",
    v2_migrator="0xa00000000000000000000000000000000000000b",
    v3_migrator="0xa00000000000000000000000000000000000000c",
    v4_migrator="0xa00000000000000000000000000000000000000d",
    no_op_migrator="0xa00000000000000000000000000000000000000e",
    governance_factory="0xa00000000000000000000000000000000000000f",
    no_op_governance_factory="0xa000000000000000000000000000000000000010",
)

# Placeholder creation code. Only its hash matters to the miners.
TOKEN_BYTECODE = HexBytes("0x60806040")
DN404_BYTECODE = HexBytes("0x60806041")
HOOK_BYTECODE = HexBytes("0x60806042")


def selector(function_prototype: str) -> bytes:
    return keccak(text=function_prototype)[:4]


class FakeEth:
    """
    In-memory stand-in for `Web3.eth`. Calls are answered from responses registered by function
    selector, and sent transactions are recorded.
    """

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        self.responses: dict[bytes, Callable[[bytes], bytes] | Exception] = {}
        self.calls: list[dict[str, Any]] = []
        self.sent: list[dict[str, Any]] = []
        self.gas_estimate = 4_500_000
        self.receipt_status = 1
        self.block_timestamp = 1_700_000_000

    def call(self, transaction: dict[str, Any], block_identifier: Any = None) -> bytes:
        self.calls.append(dict(transaction))
        calldata = bytes(transaction["data"])
        try:
            response = self.responses[calldata[:4]]
        except KeyError:
            raise Web3Exception(f"execution reverted: no response for {calldata[:4].hex()}")
        if isinstance(response, Exception):
            raise response
        return response(calldata)

    def estimate_gas(self, transaction: dict[str, Any]) -> int:
        return self.gas_estimate

    def send_transaction(self, transaction: dict[str, Any]) -> HexBytes:
        self.sent.append(dict(transaction))
        return HexBytes(keccak(len(self.sent).to_bytes(32, "big")))

    def wait_for_transaction_receipt(self, transaction_hash: HexBytes) -> dict[str, Any]:
        return {
            "transactionHash": transaction_hash,
            "status": self.receipt_status,
            "gasUsed": 3_210_000,
        }

    def get_block(self, block_identifier: Any) -> dict[str, Any]:
        return {"number": 1, "timestamp": self.block_timestamp}


class FakeWeb3:
    def __init__(self, chain_id: int = CHAIN_ID) -> None:
        self.eth = FakeEth(chain_id)

    def is_connected(self) -> bool:
        return True

    def respond(
        self,
        function_prototype: str,
        return_types: Sequence[str],
        values: Sequence[Any] | Callable[[bytes], Sequence[Any]],
    ) -> None:
        """
        Answer calls to `function_prototype` with the ABI-encoded `values`. If `values` is
        callable, it receives the calldata following the selector.
        """

        def response(calldata: bytes) -> bytes:
            result = values(calldata[4:]) if callable(values) else values
            return eth_abi.abi.encode(list(return_types), list(result))

        self.eth.responses[selector(function_prototype)] = response

    def revert(self, function_prototype: str, message: str = "execution reverted") -> None:
        self.eth.responses[selector(function_prototype)] = Web3Exception(message)


@pytest.fixture(autouse=True)
def _initialize_and_reset_after_each_test():
    """
    Before each test, clear/reset global values and singletons
    """
    connection_manager.connections.clear()
    connection_manager._default_chain_id = None
    deployments.BYTECODES.clear()


@pytest.fixture(scope="session", autouse=True)
def _set_doppler_sdk_logging():
    """
    Set the logging level to DEBUG for the test run
    """
    logger.setLevel(logging.DEBUG)


@pytest.fixture
def fake_w3() -> FakeWeb3:
    w3 = FakeWeb3()
    w3.respond("owner()", ["address"], [PROTOCOL_OWNER])
    return w3


@pytest.fixture
def registered_bytecodes() -> None:
    deployments.register_bytecode(deployments.DERC20, TOKEN_BYTECODE)
    deployments.register_bytecode(deployments.DN404, DN404_BYTECODE)
    deployments.register_bytecode(deployments.DOPPLER_HOOK, HOOK_BYTECODE)


@pytest.fixture
def beneficiaries() -> tuple[BeneficiaryShare, ...]:
    return (
        BeneficiaryShare(beneficiary=USER, shares=WAD * 95 // 100),
        BeneficiaryShare(beneficiary=PROTOCOL_OWNER, shares=WAD * 5 // 100),
    )
