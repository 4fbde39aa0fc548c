import dataclasses
from typing import Self

from doppler_sdk.builders.base import BaseAuctionBuilder
from doppler_sdk.config import settings
from doppler_sdk.constants import (
    DAY_SECONDS,
    DEFAULT_AUCTION_DURATION_DAYS,
    DEFAULT_EPOCH_LENGTH,
    DEFAULT_PD_SLUGS,
)
from doppler_sdk.exceptions import InvalidConfiguration
from doppler_sdk.libraries.gamma import compute_optimal_gamma
from doppler_sdk.libraries.price_math import compute_ticks_from_price_range
from doppler_sdk.types import DynamicAuctionConfig, DynamicAuctionParams, DynamicPoolConfig


class DynamicAuctionBuilder(BaseAuctionBuilder):
    """
    Builds the parameters for a dynamic auction, a Dutch auction run by the Doppler hook on a
    Uniswap V4 pool.

    If no gamma is given, it is computed at build time from the final auction range, duration,
    epoch length, and pool tick spacing.
    """

    def __init__(self, chain_id: int) -> None:
        super().__init__(chain_id)
        self.pool: DynamicPoolConfig | None = None
        self.auction: DynamicAuctionConfig | None = None
        self.start_time_offset: int | None = None
        self.block_timestamp: int | None = None

    def pool_config(self, fee: int, tick_spacing: int) -> Self:
        self.pool = DynamicPoolConfig(fee=fee, tick_spacing=tick_spacing)
        return self

    def auction_by_ticks(
        self,
        start_tick: int,
        end_tick: int,
        min_proceeds: int,
        max_proceeds: int,
        duration_days: int = DEFAULT_AUCTION_DURATION_DAYS,
        epoch_length: int = DEFAULT_EPOCH_LENGTH,
        gamma: int | None = None,
        num_pd_slugs: int = DEFAULT_PD_SLUGS,
    ) -> Self:
        self.auction = DynamicAuctionConfig(
            duration_days=duration_days,
            epoch_length=epoch_length,
            start_tick=start_tick,
            end_tick=end_tick,
            min_proceeds=min_proceeds,
            max_proceeds=max_proceeds,
            gamma=gamma,
            num_pd_slugs=num_pd_slugs,
        )
        return self

    def auction_by_price_range(
        self,
        start_price: float,
        end_price: float,
        min_proceeds: int,
        max_proceeds: int,
        duration_days: int = DEFAULT_AUCTION_DURATION_DAYS,
        epoch_length: int = DEFAULT_EPOCH_LENGTH,
        gamma: int | None = None,
        num_pd_slugs: int = DEFAULT_PD_SLUGS,
        tick_spacing: int | None = None,
    ) -> Self:
        """
        Set the auction ticks from a price range. The tick spacing defaults to the configured
        pool's.
        """

        if tick_spacing is None:
            if self.pool is None:
                raise InvalidConfiguration(
                    message="tick_spacing is required (set pool_config first or pass tick_spacing)"
                )
            tick_spacing = self.pool.tick_spacing

        start_tick, end_tick = compute_ticks_from_price_range(start_price, end_price, tick_spacing)
        return self.auction_by_ticks(
            start_tick=start_tick,
            end_tick=end_tick,
            min_proceeds=min_proceeds,
            max_proceeds=max_proceeds,
            duration_days=duration_days,
            epoch_length=epoch_length,
            gamma=gamma,
            num_pd_slugs=num_pd_slugs,
        )

    def with_time(
        self,
        start_time_offset: int | None = None,
        block_timestamp: int | None = None,
    ) -> Self:
        """
        Set the delay between the reference block timestamp and the auction start, and optionally
        pin the reference timestamp instead of reading the latest block.
        """

        if start_time_offset is not None and start_time_offset < 0:
            raise InvalidConfiguration(
                message=f"Start time offset must be non-negative, got {start_time_offset}"
            )
        self.start_time_offset = start_time_offset
        self.block_timestamp = block_timestamp
        return self

    def build(self) -> DynamicAuctionParams:
        token = self._require(self.token, "token")
        sale = self._require(self.sale, "sale")
        pool = self._require(self.pool, "pool")
        auction = self._require(self.auction, "auction")

        if auction.gamma is None:
            auction = dataclasses.replace(
                auction,
                gamma=compute_optimal_gamma(
                    auction.start_tick,
                    auction.end_tick,
                    auction.duration_days * DAY_SECONDS,
                    auction.epoch_length,
                    pool.tick_spacing,
                ),
            )

        return DynamicAuctionParams(
            token=token,
            sale=sale,
            auction=auction,
            pool=pool,
            migration=self._require(self.migration, "migration"),
            governance=self._require(self.governance, "governance"),
            user_address=self._require(self.user_address, "userAddress"),
            integrator=self.integrator,
            chain_id=self.chain_id,
            start_time_offset=(
                self.start_time_offset
                if self.start_time_offset is not None
                else settings.transactions.start_time_offset
            ),
            block_timestamp=self.block_timestamp,
            vesting=self.vesting,
            modules=self.modules,
            gas=self.gas,
        )
