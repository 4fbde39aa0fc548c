import datetime
import math
from collections.abc import Iterable, Mapping
from typing import Any, Self

import pydantic

from doppler_sdk.builders.base import BaseAuctionBuilder, BeneficiaryInput, to_beneficiary_shares
from doppler_sdk.builders.presets import PRESET_NAMES, PresetOverride, build_preset_curves
from doppler_sdk.constants import MAX_UINT32, TICK_SPACINGS, FeeTier
from doppler_sdk.exceptions import InvalidConfiguration, InvalidSchedule
from doppler_sdk.factory.encoders import validate_tick_alignment
from doppler_sdk.types import Curve, MulticurveParams, MulticurvePoolConfig

type CurveInput = Curve | Mapping[str, Any]


def _tick_spacing_for(fee: int, tick_spacing: int | None) -> int:
    if tick_spacing is not None:
        return tick_spacing
    try:
        return TICK_SPACINGS[fee]
    except KeyError:
        raise InvalidConfiguration(
            message=f"No standard tick spacing for fee {fee}; pass tick_spacing explicitly"
        ) from None


def _to_curves(curves: Iterable[CurveInput]) -> tuple[Curve, ...]:
    try:
        return tuple(
            curve if isinstance(curve, Curve) else Curve.model_validate(curve) for curve in curves
        )
    except pydantic.ValidationError as exc:
        raise InvalidConfiguration(message=f"Invalid curve: {exc}") from exc


def to_schedule_timestamp(start_time: datetime.datetime | int | float) -> int:
    """
    Convert a scheduled start time to a uint32 Unix timestamp. Naive datetimes are interpreted as
    local time.
    """

    match start_time:
        case bool():
            raise InvalidSchedule(value=start_time)
        case datetime.datetime():
            value = math.floor(start_time.timestamp())
        case int():
            value = start_time
        case float() if math.isfinite(start_time) and start_time.is_integer():
            value = int(start_time)
        case _:
            raise InvalidSchedule(value=start_time)

    if not 0 <= value <= MAX_UINT32:
        raise InvalidSchedule(value=start_time)
    return value


class MulticurveBuilder(BaseAuctionBuilder):
    """
    Builds the parameters for a multicurve pool, which seeds a Uniswap V4 pool with several
    liquidity curves whose shares total 100% of the tokens for sale.
    """

    def __init__(self, chain_id: int) -> None:
        super().__init__(chain_id)
        self.pool: MulticurvePoolConfig | None = None
        self.start_time: int | None = None

    def pool_config(
        self,
        fee: int,
        tick_spacing: int,
        curves: Iterable[CurveInput],
        beneficiaries: Iterable[BeneficiaryInput] | None = None,
    ) -> Self:
        """
        Set the curves explicitly. Beneficiaries are sorted by ascending address, as the
        initializer requires.
        """

        resolved_curves = _to_curves(curves)
        validate_tick_alignment(
            tick_spacing,
            *(tick for curve in resolved_curves for tick in (curve.tick_lower, curve.tick_upper)),
        )
        self.pool = MulticurvePoolConfig(
            fee=fee,
            tick_spacing=tick_spacing,
            curves=resolved_curves,
            beneficiaries=(
                to_beneficiary_shares(beneficiaries) if beneficiaries is not None else None
            ),
        )
        return self

    def with_multicurve_auction(
        self,
        curves: Iterable[CurveInput],
        fee: int = FeeTier.LOW,
        tick_spacing: int | None = None,
        beneficiaries: Iterable[BeneficiaryInput] | None = None,
    ) -> Self:
        return self.pool_config(
            fee=fee,
            tick_spacing=_tick_spacing_for(fee, tick_spacing),
            curves=curves,
            beneficiaries=beneficiaries,
        )

    def with_market_cap_presets(
        self,
        fee: int = FeeTier.LOW,
        tick_spacing: int | None = None,
        presets: Iterable[str] = PRESET_NAMES,
        overrides: Mapping[str, PresetOverride | Mapping[str, int]] | None = None,
        beneficiaries: Iterable[BeneficiaryInput] | None = None,
    ) -> Self:
        """
        Configure the curves from the low, medium, and high market cap presets. Any shortfall below
        100% is assigned to a filler curve above the last preset.
        """

        tick_spacing = _tick_spacing_for(fee, tick_spacing)
        return self.pool_config(
            fee=fee,
            tick_spacing=tick_spacing,
            curves=build_preset_curves(tick_spacing, presets, overrides),
            beneficiaries=beneficiaries,
        )

    def with_schedule(self, start_time: datetime.datetime | int | float | None) -> Self:
        """
        Delay the pool start until `start_time`, routing creation through the scheduled
        initializer. Passing `None` removes the schedule.
        """

        self.start_time = to_schedule_timestamp(start_time) if start_time is not None else None
        return self

    def with_v4_multicurve_initializer(self, address: str) -> Self:
        return self.with_modules(v4_multicurve_initializer=address)

    def with_v4_scheduled_multicurve_initializer(self, address: str) -> Self:
        return self.with_modules(v4_scheduled_multicurve_initializer=address)

    def build(self) -> MulticurveParams:
        token = self._require(self.token, "token")
        sale = self._require(self.sale, "sale")
        pool = self._require(self.pool, "pool")

        return MulticurveParams(
            token=token,
            sale=sale,
            pool=pool,
            migration=self._require(self.migration, "migration"),
            governance=self._require(self.governance, "governance"),
            user_address=self._require(self.user_address, "userAddress"),
            integrator=self.integrator,
            chain_id=self.chain_id,
            start_time=self.start_time,
            vesting=self.vesting,
            modules=self.modules,
            gas=self.gas,
        )
