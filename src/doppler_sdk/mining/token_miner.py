import dataclasses
import math
import string
from collections.abc import Iterator
from typing import Literal

import eth_abi.abi
import tqdm
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes

from doppler_sdk.config import settings
from doppler_sdk.deployments import DERC20, DN404, get_bytecode
from doppler_sdk.exceptions import DopplerValueError, SaltNotFound
from doppler_sdk.functions import create2_address
from doppler_sdk.logging import logger
from doppler_sdk.types import MineResult

STANDARD_TOKEN_DATA_TYPES = (
    "string",  # name
    "string",  # symbol
    "uint256",  # yearly mint rate
    "uint256",  # vesting duration
    "address[]",  # recipients
    "uint256[]",  # amounts
    "string",  # token URI
)
STANDARD_TOKEN_CONSTRUCTOR_TYPES = (
    "string",  # name
    "string",  # symbol
    "uint256",  # initial supply
    "address",  # recipient
    "address",  # owner
    "uint256",  # yearly mint rate
    "uint256",  # vesting duration
    "address[]",  # recipients
    "uint256[]",  # amounts
    "string",  # token URI
)
DOPPLER404_TOKEN_DATA_TYPES = (
    "string",  # name
    "string",  # symbol
    "string",  # base URI
    "uint256",  # unit
)
DOPPLER404_TOKEN_CONSTRUCTOR_TYPES = (
    "string",  # name
    "string",  # symbol
    "uint256",  # initial supply
    "address",  # recipient
    "address",  # owner
    "string",  # base URI
)

MAX_PREFIX_LENGTH = 40

type TokenVariant = Literal["standard", "doppler404"]


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class HookMiningConfig:
    """
    A second contract deployed with the same salt, whose address must also match `prefix` (if
    given).
    """

    deployer: ChecksumAddress
    init_code_hash: bytes
    prefix: str | None = None


def normalize_prefix(prefix: str) -> str:
    normalized = prefix.strip().lower().removeprefix("0x")
    if not normalized:
        raise DopplerValueError(message="Address prefix must not be empty")
    if len(normalized) > MAX_PREFIX_LENGTH:
        raise DopplerValueError(
            message=f"Address prefix must be at most {MAX_PREFIX_LENGTH} hex characters"
        )
    if not set(normalized) <= set(string.hexdigits.lower()):
        raise DopplerValueError(message=f"Address prefix {prefix!r} is not hexadecimal")
    return normalized


def salt_for(value: int) -> HexBytes:
    """
    Convert an integer salt to its 32-byte big-endian form.
    """

    return HexBytes(value.to_bytes(32, byteorder="big"))


def matches_prefix(address: str, prefix: str) -> bool:
    return address.lower().removeprefix("0x").startswith(prefix)


def compute_token_init_code_hash(
    token_data: bytes,
    initial_supply: int,
    recipient: str,
    owner: str,
    *,
    token_variant: TokenVariant = "standard",
    custom_bytecode: str | bytes | None = None,
) -> bytes:
    """
    Compute the keccak hash of the token creation code. The token factory data is decoded and
    re-encoded as the token constructor arguments, which follow the creation bytecode.
    """

    match token_variant:
        case "standard":
            name, symbol, yearly_mint_rate, vesting_duration, recipients, amounts, token_uri = (
                eth_abi.abi.decode(STANDARD_TOKEN_DATA_TYPES, token_data)
            )
            constructor_args = eth_abi.abi.encode(
                STANDARD_TOKEN_CONSTRUCTOR_TYPES,
                (
                    name,
                    symbol,
                    initial_supply,
                    recipient,
                    owner,
                    yearly_mint_rate,
                    vesting_duration,
                    recipients,
                    amounts,
                    token_uri,
                ),
            )
            bytecode_name = DERC20
        case "doppler404":
            name, symbol, base_uri, _ = eth_abi.abi.decode(DOPPLER404_TOKEN_DATA_TYPES, token_data)
            constructor_args = eth_abi.abi.encode(
                DOPPLER404_TOKEN_CONSTRUCTOR_TYPES,
                (name, symbol, initial_supply, recipient, owner, base_uri),
            )
            bytecode_name = DN404
        case _:
            raise DopplerValueError(message=f"Unknown token variant {token_variant!r}")

    if custom_bytecode is None:
        bytecode = get_bytecode(bytecode_name)
    else:
        bytecode = HexBytes(custom_bytecode)
    return keccak(bytes(bytecode) + constructor_args)


def check_iteration_bounds(max_iterations: int, start_salt: int) -> None:
    if (
        isinstance(max_iterations, bool)
        or not isinstance(max_iterations, int | float)
        or not math.isfinite(max_iterations)
        or max_iterations <= 0
    ):
        raise DopplerValueError(
            message=f"max_iterations must be a positive finite number, got {max_iterations!r}"
        )
    if start_salt < 0:
        raise DopplerValueError(message=f"start_salt must be non-negative, got {start_salt}")


def iterate_salts(start_salt: int, max_iterations: int, description: str) -> Iterator[int]:
    salts = range(start_salt, start_salt + int(max_iterations))
    if settings.mining.show_progress:
        return iter(
            tqdm.tqdm(
                salts,
                desc=description,
                bar_format="{desc}: {percentage:3.1f}% |{bar}| {n_fmt}/{total_fmt}",
                leave=False,
            )
        )
    return iter(salts)


def mine_token_address(
    prefix: str,
    token_factory: str,
    token_data: bytes,
    initial_supply: int,
    recipient: str,
    owner: str,
    *,
    token_variant: TokenVariant = "standard",
    custom_bytecode: str | bytes | None = None,
    max_iterations: int | None = None,
    start_salt: int = 0,
    hook: HookMiningConfig | None = None,
) -> MineResult:
    """
    Search for a salt that deploys the token at an address starting with `prefix`.

    Salts are scanned sequentially from `start_salt`. If `hook` is given, each candidate salt must
    also deploy the hook at an address matching its own prefix, otherwise the search continues.

    Raises `SaltNotFound` if no salt matches within `max_iterations` attempts.
    """

    normalized_prefix = normalize_prefix(prefix)
    hook_prefix = normalize_prefix(hook.prefix) if hook is not None and hook.prefix else None
    if max_iterations is None:
        max_iterations = settings.mining.max_iterations
    check_iteration_bounds(max_iterations, start_salt)

    init_code_hash = compute_token_init_code_hash(
        token_data,
        initial_supply,
        recipient,
        owner,
        token_variant=token_variant,
        custom_bytecode=custom_bytecode,
    )

    logger.debug(
        f"Mining token address with prefix {normalized_prefix} from salt {start_salt} "
        f"(max {max_iterations} iterations)"
    )

    iterations = 0
    for salt_value in iterate_salts(start_salt, max_iterations, "Mining token salt"):
        iterations += 1
        salt = salt_for(salt_value)
        token_address = create2_address(token_factory, salt, init_code_hash)
        if not matches_prefix(token_address, normalized_prefix):
            continue

        hook_address = None
        if hook is not None:
            hook_address = create2_address(hook.deployer, salt, hook.init_code_hash)
            if hook_prefix is not None and not matches_prefix(hook_address, hook_prefix):
                continue

        logger.info(f"Found token address {token_address} after {iterations} iterations")
        return MineResult(
            salt=salt,
            token_address=token_address,
            iterations=iterations,
            hook_address=hook_address,
        )

    raise SaltNotFound(prefix=normalized_prefix, max_iterations=int(max_iterations))
