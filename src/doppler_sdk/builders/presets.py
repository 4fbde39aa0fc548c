"""
Market capitalization presets for multicurve pools, and the synthesis of a curve set from them.
"""

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Literal

import pydantic

from doppler_sdk.constants import (
    DEFAULT_MULTICURVE_LOWER_TICKS,
    DEFAULT_MULTICURVE_MAX_SUPPLY_SHARES,
    DEFAULT_MULTICURVE_NUM_POSITIONS,
    DEFAULT_MULTICURVE_UPPER_TICKS,
    WAD,
)
from doppler_sdk.exceptions import InvalidConfiguration, NormalizationFailure
from doppler_sdk.libraries.tick_math import max_usable_tick, min_usable_tick
from doppler_sdk.logging import logger
from doppler_sdk.types import Curve

type PresetName = Literal["low", "medium", "high"]

PRESET_NAMES: tuple[PresetName, ...] = ("low", "medium", "high")

MARKET_CAP_PRESETS: dict[str, Curve] = {
    name: Curve(
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        num_positions=num_positions,
        shares=shares,
    )
    for name, tick_lower, tick_upper, num_positions, shares in zip(
        PRESET_NAMES,
        DEFAULT_MULTICURVE_LOWER_TICKS,
        DEFAULT_MULTICURVE_UPPER_TICKS,
        DEFAULT_MULTICURVE_NUM_POSITIONS,
        DEFAULT_MULTICURVE_MAX_SUPPLY_SHARES,
        strict=True,
    )
}


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class PresetOverride:
    """
    Replacement values for a market cap preset. Fields left as `None` keep the preset's value.
    """

    tick_lower: int | None = None
    tick_upper: int | None = None
    num_positions: int | None = None
    shares: int | None = None


def _apply_override(preset: Curve, override: PresetOverride | Mapping[str, int] | None) -> Curve:
    if override is None:
        return preset
    if isinstance(override, Mapping):
        try:
            override = PresetOverride(**override)
        except TypeError as exc:
            raise InvalidConfiguration(message=f"Invalid preset override: {exc}") from exc

    values = {
        field.name: value
        for field in dataclasses.fields(override)
        if (value := getattr(override, field.name)) is not None
    }
    try:
        return Curve(**(preset.model_dump() | values))
    except pydantic.ValidationError as exc:
        raise InvalidConfiguration(message=f"Invalid preset override: {exc}") from exc


def unique_presets(presets: Iterable[str]) -> list[str]:
    """
    Drop repeated preset names, keeping the first occurrence of each.
    """

    return list(dict.fromkeys(presets))


def filler_curve(curves: list[Curve], tick_spacing: int) -> Curve:
    """
    Build the curve absorbing the shares left over by `curves`. It starts at the last curve's
    upper tick and spans the same number of positions, clamped inside the usable tick range.
    """

    tick_lower = curves[-1].tick_upper if curves else 0
    tick_lower = max(tick_lower, min_usable_tick(tick_spacing))
    num_positions = max(curves[-1].num_positions if curves else 1, 1)

    highest_tick = max_usable_tick(tick_spacing)
    tick_upper = tick_lower + num_positions * tick_spacing
    if tick_upper > highest_tick - tick_spacing:
        tick_upper = highest_tick - tick_spacing
        tick_lower = min(tick_lower, tick_upper - tick_spacing)
    if tick_upper <= tick_lower:
        tick_upper = highest_tick
        tick_lower = highest_tick - tick_spacing

    return Curve(
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        num_positions=num_positions,
        shares=WAD - sum(curve.shares for curve in curves),
    )


def build_preset_curves(
    tick_spacing: int,
    presets: Iterable[str] = PRESET_NAMES,
    overrides: Mapping[str, PresetOverride | Mapping[str, int]] | None = None,
) -> tuple[Curve, ...]:
    """
    Resolve the named presets to curves, in the given order, and append a filler curve if their
    shares total less than 100%.
    """

    if tick_spacing <= 0:
        raise InvalidConfiguration(message=f"Tick spacing must be positive, got {tick_spacing}")

    overrides = overrides or {}
    if unknown := set(overrides) - set(MARKET_CAP_PRESETS):
        raise InvalidConfiguration(message=f"Unknown market cap presets {sorted(unknown)}")

    curves: list[Curve] = []
    for name in unique_presets(presets):
        try:
            preset = MARKET_CAP_PRESETS[name]
        except KeyError:
            raise InvalidConfiguration(message=f"Unknown market cap preset {name!r}") from None
        curves.append(_apply_override(preset, overrides.get(name)))

    if any(curve.shares <= 0 for curve in curves):
        raise NormalizationFailure(message="Every preset must have positive shares")

    total_shares = sum(curve.shares for curve in curves)
    if total_shares > WAD:
        raise NormalizationFailure(
            message=f"Preset shares total {total_shares}, exceeding {WAD} (100%)"
        )

    if total_shares < WAD:
        filler = filler_curve(curves, tick_spacing)
        logger.debug(f"Appending filler curve {filler}")
        curves.append(filler)

    if sum(curve.shares for curve in curves) != WAD:
        raise NormalizationFailure(message="Curve shares could not be normalized to 100%")

    return tuple(curves)
