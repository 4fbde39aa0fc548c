from collections.abc import Sequence
from typing import Any

import eth_abi.abi
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes
from pydantic import validate_call
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import BlockIdentifier, TxParams

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.exceptions import DopplerValueError, ExternalCallError
from doppler_sdk.validation.evm_values import ValidatedInt24, ValidatedUint24


def create2_address(
    deployer: str | bytes,
    salt: bytes | str,
    init_code_hash: bytes | str,
) -> ChecksumAddress:
    """
    Generate the deterministic CREATE2 address for a given deployer, salt, and the keccak hash of
    the contract creation (init) bytecode.

    References:
        - https://eips.ethereum.org/EIPS/eip-1014
    """
    return get_checksum_address(
        keccak(HexBytes(0xFF) + HexBytes(deployer) + HexBytes(salt) + HexBytes(init_code_hash))[
            -20:
        ],  # Contract address is the least significant 20 bytes from the 32 byte hash
    )


def encode_function_calldata(
    function_prototype: str, function_arguments: Sequence[Any] | None
) -> bytes:
    """
    Encode the calldata to execute a call to the given function prototype, with ordered arguments.
    The resulting bytes array will include the 4-byte function selector, followed by the
    ABI-encoded arguments.
    """

    if function_arguments is None:
        function_arguments = ()

    return keccak(text=function_prototype)[:4] + eth_abi.abi.encode(
        types=extract_argument_types_from_function_prototype(function_prototype),
        args=function_arguments,
    )


def extract_argument_types_from_function_prototype(function_prototype: str) -> list[str]:
    """
    Extract the top-level argument types from the function prototype, keeping tuple types intact.

    e.g. the argument types for the prototype 'function(address,(uint24,int24)[])' are
    ['address', '(uint24,int24)[]']
    """

    function_args = function_prototype[
        function_prototype.find("(") + 1 : function_prototype.rfind(")")
    ]
    if not function_args:
        return []

    argument_types: list[str] = []
    depth = 0
    current = ""
    for char in function_args:
        match char:
            case "(":
                depth += 1
            case ")":
                depth -= 1
            case "," if depth == 0:
                argument_types.append(current)
                current = ""
                continue
        current += char
    argument_types.append(current)
    return argument_types


def evm_divide(numerator: int, denominator: int) -> int:
    """
    Perform integer division, rounding towards zero to match the EVM behavior.
    """
    return -(-numerator // denominator) if numerator < 0 else numerator // denominator


def raw_call(
    w3: Web3,
    address: ChecksumAddress,
    calldata: bytes,
    return_types: list[str],
    block_identifier: BlockIdentifier | None = None,
    from_address: ChecksumAddress | None = None,
) -> tuple[Any, ...]:
    """
    Perform an eth_call at the given address and return the decoded response.

    Errors raised by the client are wrapped in `ExternalCallError`, with the original exception
    chained.
    """

    transaction = TxParams(to=address, data=calldata)
    if from_address is not None:
        transaction["from"] = from_address

    try:
        result = w3.eth.call(
            transaction=transaction,
            block_identifier=block_identifier,
        )
    except Web3Exception as exc:
        raise ExternalCallError(operation=f"eth_call to {address}", error=str(exc)) from exc

    return eth_abi.abi.decode(types=return_types, data=result)


@validate_call
def compute_pool_id(
    currency0: str,
    currency1: str,
    fee: ValidatedUint24,
    tick_spacing: ValidatedInt24,
    hooks: str,
) -> HexBytes:
    """
    Compute the Uniswap V4 pool ID, the keccak hash of the ABI-encoded pool key.

    Raises `pydantic.ValidationError` if the fee or tick spacing is outside its Solidity type.
    """

    return HexBytes(
        keccak(
            eth_abi.abi.encode(
                types=("address", "address", "uint24", "int24", "address"),
                args=(currency0, currency1, fee, tick_spacing, hooks),
            )
        )
    )


HALF_MAX_UINT160 = 2**159 - 1


def is_token0_expected(numeraire: str) -> bool:
    """
    Determine whether a newly-created asset should sort below the numeraire in a pool key.

    Numeraires in the upper half of the address space leave room for the asset below them, so the
    asset is mined to be token0. The native currency (the zero address) and all other numeraires
    pair with an asset mined to be token1.
    """

    numeraire_as_int = int.from_bytes(HexBytes(numeraire), byteorder="big")
    if numeraire_as_int == 0:
        return False
    return numeraire_as_int > HALF_MAX_UINT160


def generate_default_salt(user_address: str) -> HexBytes:
    """
    Derive a deterministic 32-byte salt from the user address by XORing each salt byte index with
    the corresponding byte of the address.
    """

    address_bytes = HexBytes(user_address)
    if len(address_bytes) != 20:  # noqa: PLR2004
        raise DopplerValueError(message=f"Invalid address {user_address!r}")

    return HexBytes(
        bytes(
            index ^ address_bytes[index] if index < len(address_bytes) else index
            for index in range(32)
        )
    )
