"""
Conversions between human-readable prices and tick/sqrt-price coordinates.

Prices here are floating point and intended for parameter derivation, not settlement. Exact
on-chain values always come from `tick_math`.
"""

import math

from doppler_sdk.exceptions import DopplerValueError
from doppler_sdk.libraries.tick_math import (
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
    nearest_usable_tick,
)

Q96 = 2**96
TICK_BASE = 1.0001


def _check_positive(price: float, name: str = "price") -> None:
    if not (price > 0 and math.isfinite(price)):
        raise DopplerValueError(message=f"{name} must be a positive finite number, got {price}")


def sqrt_price_x96_to_price(
    sqrt_price_x96: int,
    decimals0: int,
    decimals1: int,
    *,
    token0_is_base: bool = True,
) -> float:
    """
    Convert a Q64.96 sqrt price to the decimal-adjusted price of token0 in token1. If
    `token0_is_base` is False, the reciprocal is returned.
    """

    price = (sqrt_price_x96 / Q96) ** 2 * 10 ** (decimals1 - decimals0)
    return price if token0_is_base else 1 / price


def price_to_sqrt_price_x96(price: float, decimals0: int, decimals1: int) -> int:
    _check_positive(price)
    adjusted_price = price / 10 ** (decimals1 - decimals0)
    return math.floor(math.sqrt(adjusted_price) * Q96)


def tick_to_price(
    tick: int,
    decimals0: int,
    decimals1: int,
    *,
    token0_is_base: bool = True,
) -> float:
    return sqrt_price_x96_to_price(
        get_sqrt_price_at_tick(tick),
        decimals0,
        decimals1,
        token0_is_base=token0_is_base,
    )


def price_to_tick(price: float, decimals0: int, decimals1: int) -> int:
    return get_tick_at_sqrt_price(price_to_sqrt_price_x96(price, decimals0, decimals1))


def compute_ticks_from_price_range(
    start_price: float,
    end_price: float,
    tick_spacing: int,
) -> tuple[int, int]:
    """
    Convert a price range to (start_tick, end_tick), aligned outward to the tick spacing: the start
    tick rounds down and the end tick rounds up.
    """

    _check_positive(start_price, "start_price")
    _check_positive(end_price, "end_price")

    log_base = math.log(TICK_BASE)
    start_tick = math.floor(math.log(start_price) / log_base / tick_spacing) * tick_spacing
    end_tick = math.ceil(math.log(end_price) / log_base / tick_spacing) * tick_spacing
    return start_tick, end_tick


def calculate_tick_range(
    min_price: float,
    max_price: float,
    tick_spacing: int,
    numeraire_decimals: int = 18,
    token_decimals: int = 18,
) -> tuple[int, int]:
    """
    Calculate usable (start_tick, end_tick) for a token priced in the numeraire between
    `min_price` and `max_price`. Prices are inverted because the pool quotes the numeraire per
    token.
    """

    _check_positive(min_price, "min_price")
    _check_positive(max_price, "max_price")

    start_tick = nearest_usable_tick(
        price_to_tick(1 / max_price, token_decimals, numeraire_decimals),
        tick_spacing,
    )
    end_tick = nearest_usable_tick(
        price_to_tick(1 / min_price, token_decimals, numeraire_decimals),
        tick_spacing,
    )
    return start_tick, end_tick


def estimate_price_at_epoch(
    start_tick: int,
    gamma: int,
    current_epoch: int,
    token_decimals: int = 18,
    numeraire_decimals: int = 18,
    *,
    is_increasing: bool = True,
) -> float:
    """
    Estimate the numeraire price per token after `current_epoch` epochs of a dynamic auction.
    """

    direction = 1 if is_increasing else -1
    current_tick = start_tick + current_epoch * gamma * direction
    numeraire_per_token = tick_to_price(
        current_tick,
        token_decimals,
        numeraire_decimals,
        token0_is_base=False,
    )
    return 1 / numeraire_per_token


def calculate_tokens_to_sell(target_raise: float, average_price: float) -> int:
    """
    Number of tokens (in wei units) needed to raise `target_raise` at `average_price`.
    """

    _check_positive(average_price, "average_price")
    return round(target_raise / average_price * 10**18)


def calculate_market_cap(total_supply: int, price_per_token: float) -> float:
    """
    Market capitalization in numeraire units for a supply given in wei units.
    """

    return total_supply / 10**18 * price_per_token
