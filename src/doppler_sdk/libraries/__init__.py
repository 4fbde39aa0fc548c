from . import bit_math, gamma, price_math, tick_math

__all__ = (
    "bit_math",
    "gamma",
    "price_math",
    "tick_math",
)
