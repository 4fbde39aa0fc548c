__all__ = (
    "BASIS_POINTS",
    "DAY_SECONDS",
    "DEAD_ADDRESS",
    "DEFAULT_AUCTION_DURATION_DAYS",
    "DEFAULT_CREATE_GAS_LIMIT",
    "DEFAULT_DOPPLER404_UNIT",
    "DEFAULT_EPOCH_LENGTH",
    "DEFAULT_GOVERNANCE",
    "DEFAULT_LOCK_DURATION",
    "DEFAULT_MULTICURVE_LOWER_TICKS",
    "DEFAULT_MULTICURVE_MAX_SUPPLY_SHARES",
    "DEFAULT_MULTICURVE_NUM_POSITIONS",
    "DEFAULT_MULTICURVE_UPPER_TICKS",
    "DEFAULT_PD_SLUGS",
    "DEFAULT_START_TIME_OFFSET",
    "DEFAULT_V3_FEE",
    "DEFAULT_V3_INITIAL_SUPPLY",
    "DEFAULT_V3_MAX_SHARE_TO_BE_SOLD",
    "DEFAULT_V3_NUM_POSITIONS",
    "DEFAULT_V3_NUM_TOKENS_TO_SELL",
    "DEFAULT_V3_VESTING_DURATION",
    "DEFAULT_V3_YEARLY_MINT_RATE",
    "DEFAULT_V4_YEARLY_MINT_RATE",
    "DOPPLER_FLAGS",
    "DYNAMIC_FEE_FLAG",
    "FEE_TIERS",
    "HOOK_FLAG_MASK",
    "MAX_INT24",
    "MAX_UINT16",
    "MAX_UINT24",
    "MAX_UINT32",
    "MAX_UINT48",
    "MAX_UINT96",
    "MAX_UINT160",
    "MAX_UINT256",
    "MIN_INT24",
    "NO_OP_ENABLED_CHAIN_IDS",
    "SECONDS_PER_YEAR",
    "TICK_SPACINGS",
    "WAD",
    "ZERO_ADDRESS",
    "ChainIds",
    "FeeTier",
)

import enum
import typing

from eth_typing import ChecksumAddress

from doppler_sdk.checksum_cache import get_checksum_address


def _min_uint(_: int) -> int:
    return 0


def _max_uint(bits: int) -> int:
    return typing.cast("int", 2**bits - 1)


def _min_int(bits: int) -> int:
    return typing.cast("int", -(2 ** (bits - 1)))


def _max_int(bits: int) -> int:
    return typing.cast("int", (2 ** (bits - 1)) - 1)


MIN_INT24 = _min_int(24)
MAX_INT24 = _max_int(24)

MIN_UINT16 = _min_uint(16)
MAX_UINT16 = _max_uint(16)

MIN_UINT24 = _min_uint(24)
MAX_UINT24 = _max_uint(24)

MIN_UINT32 = _min_uint(32)
MAX_UINT32 = _max_uint(32)

MIN_UINT48 = _min_uint(48)
MAX_UINT48 = _max_uint(48)

MIN_UINT96 = _min_uint(96)
MAX_UINT96 = _max_uint(96)

MIN_UINT160 = _min_uint(160)
MAX_UINT160 = _max_uint(160)

MIN_UINT256 = _min_uint(256)
MAX_UINT256 = _max_uint(256)

ZERO_ADDRESS: ChecksumAddress = get_checksum_address("0x0000000000000000000000000000000000000000")
DEAD_ADDRESS: ChecksumAddress = get_checksum_address("0x000000000000000000000000000000000000dEaD")

# Fixed point scale, 1e18 == 100%
WAD = 10**18
BASIS_POINTS = 10_000


class ChainIds(enum.IntEnum):
    MAINNET = 1
    BASE = 8453
    BASE_SEPOLIA = 84532
    INK = 57073
    UNICHAIN = 130
    UNICHAIN_SEPOLIA = 1301
    MONAD_TESTNET = 10143


# Chains with a deployed NoOp governance factory
NO_OP_ENABLED_CHAIN_IDS: frozenset[int] = frozenset(
    (
        ChainIds.BASE,
        ChainIds.BASE_SEPOLIA,
    )
)


class FeeTier(enum.IntEnum):
    LOWEST = 100
    LOW = 500
    MEDIUM = 3000
    HIGH = 10_000


FEE_TIERS = FeeTier

# Standard tick spacing for each fee tier
TICK_SPACINGS: dict[int, int] = {
    FeeTier.LOWEST: 1,
    FeeTier.LOW: 10,
    FeeTier.MEDIUM: 60,
    FeeTier.HIGH: 200,
}

# Pool fee value flagging a dynamic fee controlled by the hook
DYNAMIC_FEE_FLAG = 0x800000

# Time
DAY_SECONDS = 86_400
SECONDS_PER_YEAR = 365 * DAY_SECONDS
DEFAULT_EPOCH_LENGTH = 43_200
DEFAULT_AUCTION_DURATION_DAYS = 7
DEFAULT_LOCK_DURATION = SECONDS_PER_YEAR
DEFAULT_START_TIME_OFFSET = 30

# Dynamic auction
DEFAULT_PD_SLUGS = 5

# Gas
DEFAULT_CREATE_GAS_LIMIT = 13_500_000

# Static auction (Uniswap V3) defaults
DEFAULT_V3_START_TICK = 175_000
DEFAULT_V3_END_TICK = 225_000
DEFAULT_V3_NUM_POSITIONS = 15
DEFAULT_V3_FEE = FeeTier.HIGH
DEFAULT_V3_VESTING_DURATION = SECONDS_PER_YEAR
DEFAULT_V3_INITIAL_SUPPLY = 1_000_000_000 * WAD
DEFAULT_V3_NUM_TOKENS_TO_SELL = 900_000_000 * WAD
DEFAULT_V3_YEARLY_MINT_RATE = WAD // 50
DEFAULT_V3_PRE_MINT = 9_000_000 * WAD
DEFAULT_V3_MAX_SHARE_TO_BE_SOLD = 35 * WAD // 100

DEFAULT_V4_YEARLY_MINT_RATE = WAD // 50

DEFAULT_DOPPLER404_UNIT = 1000

# Governance defaults: voting delay and period in blocks, proposal threshold in tokens
DEFAULT_GOVERNANCE: dict[str, tuple[int, int, int]] = {
    "v4": (7_200, 50_400, 0),
    "v3": (172_800, 1_209_600, 0),
}

# Multicurve market cap presets, ordered low, medium, high
DEFAULT_MULTICURVE_LOWER_TICKS: tuple[int, ...] = (-202_100, -183_100, -167_000)
DEFAULT_MULTICURVE_UPPER_TICKS: tuple[int, ...] = (-188_200, -172_100, -156_000)
DEFAULT_MULTICURVE_NUM_POSITIONS: tuple[int, ...] = (11, 11, 11)
DEFAULT_MULTICURVE_MAX_SUPPLY_SHARES: tuple[int, ...] = (
    5 * WAD // 100,
    125 * WAD // 1000,
    2 * WAD // 10,
)

# Uniswap V4 hook permissions
HOOK_FLAG_MASK = 0x3FFF
DOPPLER_FLAGS = (1 << 13) | (1 << 12) | (1 << 11) | (1 << 7) | (1 << 6) | (1 << 5)
