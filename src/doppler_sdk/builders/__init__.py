from .base import BaseAuctionBuilder
from .dynamic import DynamicAuctionBuilder
from .multicurve import MulticurveBuilder
from .presets import MARKET_CAP_PRESETS, PresetOverride, build_preset_curves
from .static import StaticAuctionBuilder

__all__ = (
    "MARKET_CAP_PRESETS",
    "BaseAuctionBuilder",
    "DynamicAuctionBuilder",
    "MulticurveBuilder",
    "PresetOverride",
    "StaticAuctionBuilder",
    "build_preset_curves",
)
