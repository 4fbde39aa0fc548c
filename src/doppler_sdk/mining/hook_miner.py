import eth_abi.abi
from eth_typing import ChecksumAddress
from eth_utils.crypto import keccak
from hexbytes import HexBytes

from doppler_sdk.config import settings
from doppler_sdk.constants import DOPPLER_FLAGS, HOOK_FLAG_MASK
from doppler_sdk.deployments import DOPPLER_HOOK, get_bytecode
from doppler_sdk.exceptions import SaltNotFound
from doppler_sdk.functions import create2_address
from doppler_sdk.logging import logger
from doppler_sdk.mining.token_miner import check_iteration_bounds, iterate_salts, salt_for
from doppler_sdk.types import MineResult

HOOK_CONSTRUCTOR_TYPES = (
    "address",  # pool manager
    "uint256",  # tokens to sell
    "uint256",  # minimum proceeds
    "uint256",  # maximum proceeds
    "uint256",  # starting time
    "uint256",  # ending time
    "int24",  # starting tick
    "int24",  # ending tick
    "uint256",  # epoch length
    "int24",  # gamma
    "bool",  # is token0
    "uint256",  # price discovery slugs
    "address",  # pool initializer
    "uint24",  # initial LP fee
)


def compute_hook_init_code_hash(
    *,
    pool_manager: str,
    num_tokens_to_sell: int,
    min_proceeds: int,
    max_proceeds: int,
    starting_time: int,
    ending_time: int,
    start_tick: int,
    end_tick: int,
    epoch_length: int,
    gamma: int,
    is_token0: bool,
    num_pd_slugs: int,
    pool_initializer: str,
    fee: int,
    custom_bytecode: str | bytes | None = None,
) -> bytes:
    """
    Compute the keccak hash of the Doppler hook creation code with its constructor arguments.
    """

    constructor_args = eth_abi.abi.encode(
        HOOK_CONSTRUCTOR_TYPES,
        (
            pool_manager,
            num_tokens_to_sell,
            min_proceeds,
            max_proceeds,
            starting_time,
            ending_time,
            start_tick,
            end_tick,
            epoch_length,
            gamma,
            is_token0,
            num_pd_slugs,
            pool_initializer,
            fee,
        ),
    )
    if custom_bytecode is None:
        bytecode = get_bytecode(DOPPLER_HOOK)
    else:
        bytecode = HexBytes(custom_bytecode)
    return keccak(bytes(bytecode) + constructor_args)


def has_doppler_flags(hook_address: str) -> bool:
    return int(hook_address, 16) & HOOK_FLAG_MASK == DOPPLER_FLAGS


def is_correctly_ordered(token_address: str, numeraire: str, *, is_token0: bool) -> bool:
    token_as_int = int(token_address, 16)
    numeraire_as_int = int(numeraire, 16)
    return token_as_int < numeraire_as_int if is_token0 else token_as_int > numeraire_as_int


def mine_hook_salt(
    *,
    token_factory: str,
    token_init_code_hash: bytes,
    hook_deployer: str,
    hook_init_code_hash: bytes,
    numeraire: ChecksumAddress,
    is_token0: bool,
    max_iterations: int | None = None,
    start_salt: int = 0,
) -> MineResult:
    """
    Search for a salt that deploys the Doppler hook at an address encoding its permission flags,
    and the token on the expected side of the numeraire in the pool key.

    Raises `SaltNotFound` if no salt satisfies both conditions within `max_iterations` attempts.
    """

    if max_iterations is None:
        max_iterations = settings.mining.max_iterations
    check_iteration_bounds(max_iterations, start_salt)

    iterations = 0
    for salt_value in iterate_salts(start_salt, max_iterations, "Mining hook salt"):
        iterations += 1
        salt = salt_for(salt_value)
        hook_address = create2_address(hook_deployer, salt, hook_init_code_hash)
        if not has_doppler_flags(hook_address):
            continue

        token_address = create2_address(token_factory, salt, token_init_code_hash)
        if not is_correctly_ordered(token_address, numeraire, is_token0=is_token0):
            continue

        logger.info(
            f"Found hook address {hook_address} and token address {token_address} "
            f"after {iterations} iterations"
        )
        return MineResult(
            salt=salt,
            token_address=token_address,
            iterations=iterations,
            hook_address=hook_address,
        )

    raise SaltNotFound(
        prefix=f"hook flags {DOPPLER_FLAGS:#06x}", max_iterations=int(max_iterations)
    )
