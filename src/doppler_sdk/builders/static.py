import dataclasses
from collections.abc import Iterable
from typing import Self

from doppler_sdk.builders.base import BaseAuctionBuilder, BeneficiaryInput, to_beneficiary_shares
from doppler_sdk.constants import (
    DEFAULT_V3_END_TICK,
    DEFAULT_V3_FEE,
    DEFAULT_V3_MAX_SHARE_TO_BE_SOLD,
    DEFAULT_V3_NUM_POSITIONS,
    DEFAULT_V3_START_TICK,
    DEFAULT_V3_VESTING_DURATION,
    DEFAULT_V3_YEARLY_MINT_RATE,
    TICK_SPACINGS,
)
from doppler_sdk.exceptions import InvalidConfiguration
from doppler_sdk.libraries.price_math import compute_ticks_from_price_range
from doppler_sdk.types import BeneficiaryShare, StaticAuctionParams, StaticPoolConfig


class StaticAuctionBuilder(BaseAuctionBuilder):
    """
    Builds the parameters for a static auction, a fixed bonding curve seeded into a Uniswap V3
    pool.
    """

    DEFAULT_YEARLY_MINT_RATE = DEFAULT_V3_YEARLY_MINT_RATE
    DEFAULT_VESTING_DURATION = DEFAULT_V3_VESTING_DURATION

    def __init__(self, chain_id: int) -> None:
        super().__init__(chain_id)
        self.pool: StaticPoolConfig | None = None
        self.beneficiaries: tuple[BeneficiaryShare, ...] | None = None

    def pool_by_ticks(
        self,
        start_tick: int = DEFAULT_V3_START_TICK,
        end_tick: int = DEFAULT_V3_END_TICK,
        fee: int = DEFAULT_V3_FEE,
        num_positions: int = DEFAULT_V3_NUM_POSITIONS,
        max_share_to_be_sold: int = DEFAULT_V3_MAX_SHARE_TO_BE_SOLD,
    ) -> Self:
        self.pool = StaticPoolConfig(
            start_tick=start_tick,
            end_tick=end_tick,
            fee=fee,
            num_positions=num_positions,
            max_share_to_be_sold=max_share_to_be_sold,
        )
        return self

    def pool_by_price_range(
        self,
        start_price: float,
        end_price: float,
        fee: int = DEFAULT_V3_FEE,
        num_positions: int = DEFAULT_V3_NUM_POSITIONS,
        max_share_to_be_sold: int = DEFAULT_V3_MAX_SHARE_TO_BE_SOLD,
    ) -> Self:
        """
        Set the pool ticks from a price range, using the tick spacing of the fee tier.
        """

        try:
            tick_spacing = TICK_SPACINGS[fee]
        except KeyError:
            raise InvalidConfiguration(
                message=f"Fee {fee} is not a standard fee tier with a known tick spacing"
            ) from None

        start_tick, end_tick = compute_ticks_from_price_range(start_price, end_price, tick_spacing)
        return self.pool_by_ticks(
            start_tick=start_tick,
            end_tick=end_tick,
            fee=fee,
            num_positions=num_positions,
            max_share_to_be_sold=max_share_to_be_sold,
        )

    def with_beneficiaries(self, beneficiaries: Iterable[BeneficiaryInput]) -> Self:
        """
        Lock the pool liquidity and stream its fees to the beneficiaries. This selects the lockable
        initializer, and migration is replaced by the NoOp migrator.
        """

        self.beneficiaries = to_beneficiary_shares(beneficiaries)
        return self

    def build(self) -> StaticAuctionParams:
        token = self._require(self.token, "token")
        sale = self._require(self.sale, "sale")
        pool = self._require(self.pool, "pool")
        if self.beneficiaries:
            pool = dataclasses.replace(pool, beneficiaries=self.beneficiaries)

        return StaticAuctionParams(
            token=token,
            sale=sale,
            pool=pool,
            migration=self._require(self.migration, "migration"),
            governance=self._require(self.governance, "governance"),
            user_address=self._require(self.user_address, "userAddress"),
            integrator=self.integrator,
            chain_id=self.chain_id,
            vesting=self.vesting,
            modules=self.modules,
            gas=self.gas,
        )
