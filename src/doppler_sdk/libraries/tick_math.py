# Fixed-point conversions between ticks and Q64.96 square root prices, matching the rounding of
# the Uniswap V4 TickMath.sol library that pool initializers validate against.
# Reference: https://github.com/Uniswap/v4-core/blob/main/src/libraries/TickMath.sol

import functools

from doppler_sdk.constants import MAX_UINT256
from doppler_sdk.exceptions import DopplerValueError
from doppler_sdk.exceptions.evm import EVMRevertError
from doppler_sdk.functions import evm_divide
from doppler_sdk.libraries import bit_math

TICK_MATH_CACHE_SIZE = 4096

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_PRICE = 4295128739
MAX_SQRT_PRICE = 1461446703485210103287273052203988822378723970342

# Upper error margin of the log_sqrt10001(x) approximation for sqrt prices in (2^-64, 2^64), added
# to the estimate to give the high candidate tick
MIN_ERROR = 291339464771989622907027621153398088495

# Lower error margin of the same approximation, subtracted from the estimate to give the low
# candidate tick
MAX_ERROR = 3402992956809132418596140100660247210

# Q128.128 value of 1/sqrt(1.0001^(2^i)) for each bit i of |tick| above bit 0
_TICK_BIT_RATIOS: tuple[tuple[int, int], ...] = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)


def max_usable_tick(tick_spacing: int) -> int:
    """
    Given a tick spacing, compute the maximum usable tick.
    """

    return (MAX_TICK // tick_spacing) * tick_spacing


def min_usable_tick(tick_spacing: int) -> int:
    """
    Given a tick spacing, compute the minimum usable tick.
    """

    return evm_divide(MIN_TICK, tick_spacing) * tick_spacing


def nearest_usable_tick(tick: int, tick_spacing: int) -> int:
    """
    Round the tick to the nearest multiple of the tick spacing, clamped to [MIN_TICK, MAX_TICK].

    Halfway values round towards positive infinity.
    """

    if tick_spacing <= 0:
        raise DopplerValueError(message="Tick spacing must be positive")

    rounded = ((2 * tick + tick_spacing) // (2 * tick_spacing)) * tick_spacing
    return max(MIN_TICK, min(MAX_TICK, rounded))


@functools.lru_cache(maxsize=TICK_MATH_CACHE_SIZE)
def get_sqrt_price_at_tick(tick: int) -> int:
    """
    Calculate sqrt(1.0001^tick) * 2^96 as a Q64.96 fixed point number.

    Raises `EVMRevertError` if |tick| > MAX_TICK.
    """

    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        msg = "InvalidTick"
        raise EVMRevertError(msg)

    ratio = 0xFFFCB933BD6FAD37AA2D162D1A594001 if abs_tick & 0x1 else 1 << 128
    for tick_bit, bit_ratio in _TICK_BIT_RATIOS:
        if abs_tick & tick_bit:
            ratio = (ratio * bit_ratio) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up so the inverse conversion of the result is consistent
    return (ratio + ((1 << 32) - 1)) >> 32


@functools.lru_cache(maxsize=TICK_MATH_CACHE_SIZE)
def get_tick_at_sqrt_price(sqrt_price_x96: int) -> int:
    """
    Calculate the greatest tick such that get_sqrt_price_at_tick(tick) <= sqrt_price_x96.

    Raises `EVMRevertError` unless MIN_SQRT_PRICE <= sqrt_price_x96 < MAX_SQRT_PRICE.
    """

    if not MIN_SQRT_PRICE <= sqrt_price_x96 < MAX_SQRT_PRICE:
        msg = "InvalidSqrtPrice"
        raise EVMRevertError(msg)

    price = sqrt_price_x96 << 32
    msb = bit_math.most_significant_bit(price)
    r = price >> (msb - 127) if msb >= 128 else price << (127 - msb)  # noqa: PLR2004
    log_2 = (msb - 128) << 64

    # Extract 14 fractional bits of log2 by repeated squaring
    for factor in range(63, 49, -1):
        r = (r * r) >> 127
        f = r >> 128
        log_2 |= f << factor
        r >>= f

    log_sqrt10001 = log_2 * 255738958999603826347141  # Q22.128 number

    tick_low = (log_sqrt10001 - MAX_ERROR) >> 128
    tick_high = (log_sqrt10001 + MIN_ERROR) >> 128

    if tick_low == tick_high:
        return tick_low
    return tick_high if get_sqrt_price_at_tick(tick_high) <= sqrt_price_x96 else tick_low
