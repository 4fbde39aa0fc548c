import time

from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from doppler_sdk.auctions.airlock import get_asset_data, has_graduated
from doppler_sdk.auctions.base import ContractReader
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.functions import compute_pool_id
from doppler_sdk.types import HookInfo, HookState, V4PoolKey

HOOK_STATE_TYPES = [
    "uint40",  # lastEpoch
    "int256",  # tickAccumulator
    "uint256",  # totalTokensSold
    "uint256",  # totalProceeds
    "uint256",  # totalTokensSoldLastEpoch
    "int256",  # feesAccrued
]
POOL_KEY_TYPES = ["address", "address", "uint24", "int24", "address"]


def current_epoch(starting_time: int, epoch_length: int, timestamp: int) -> int:
    if epoch_length <= 0:
        return 0
    return max(0, timestamp - starting_time) // epoch_length


class DynamicAuction(ContractReader):
    """
    Read-only view of a dynamic auction, addressed by its Doppler hook.
    """

    def get_state(self) -> HookState:
        (
            last_epoch,
            tick_accumulator,
            total_tokens_sold,
            total_proceeds,
            total_tokens_sold_last_epoch,
            fees_accrued,
        ) = self._call("state()", HOOK_STATE_TYPES)
        return HookState(
            last_epoch=last_epoch,
            tick_accumulator=tick_accumulator,
            total_tokens_sold=total_tokens_sold,
            total_proceeds=total_proceeds,
            total_tokens_sold_last_epoch=total_tokens_sold_last_epoch,
            fees_accrued=fees_accrued,
        )

    def get_pool_key(self) -> V4PoolKey:
        currency0, currency1, fee, tick_spacing, hooks = self._call("poolKey()", POOL_KEY_TYPES)
        return V4PoolKey(
            currency0=get_checksum_address(currency0),
            currency1=get_checksum_address(currency1),
            fee=fee,
            tick_spacing=tick_spacing,
            hooks=get_checksum_address(hooks),
        )

    def is_token0(self) -> bool:
        result: bool = self._call_single("isToken0()", "bool")
        return result

    def get_hook_info(self) -> HookInfo:
        pool_key = self.get_pool_key()
        is_token0 = self.is_token0()
        return HookInfo(
            hook_address=self.address,
            token_address=pool_key.currency0 if is_token0 else pool_key.currency1,
            numeraire_address=pool_key.currency1 if is_token0 else pool_key.currency0,
            pool_id=self._pool_id(pool_key),
            pool_key=pool_key,
            state=self.get_state(),
            early_exit=self.has_ended_early(),
            insufficient_proceeds=self._call_single("insufficientProceeds()", "bool"),
            starting_time=self._call_single("startingTime()", "uint256"),
            ending_time=self._call_single("endingTime()", "uint256"),
            epoch_length=self._call_single("epochLength()", "uint256"),
            minimum_proceeds=self._call_single("minimumProceeds()", "uint256"),
            maximum_proceeds=self._call_single("maximumProceeds()", "uint256"),
            num_tokens_to_sell=self._call_single("numTokensToSell()", "uint256"),
        )

    @staticmethod
    def _pool_id(pool_key: V4PoolKey) -> HexBytes:
        return compute_pool_id(
            pool_key.currency0,
            pool_key.currency1,
            pool_key.fee,
            pool_key.tick_spacing,
            pool_key.hooks,
        )

    def get_pool_id(self) -> HexBytes:
        return self._pool_id(self.get_pool_key())

    def get_token_address(self) -> ChecksumAddress:
        pool_key = self.get_pool_key()
        return pool_key.currency0 if self.is_token0() else pool_key.currency1

    def has_graduated(self) -> bool:
        return has_graduated(
            get_asset_data(self.w3, self.chain_id, self.get_token_address(), self.modules)
        )

    def get_current_epoch(self, timestamp: int | None = None) -> int:
        """
        The epoch containing `timestamp`, or the current time if omitted. Epochs before the
        auction starts are reported as zero.
        """

        return current_epoch(
            starting_time=self._call_single("startingTime()", "uint256"),
            epoch_length=self._call_single("epochLength()", "uint256"),
            timestamp=timestamp if timestamp is not None else int(time.time()),
        )

    def get_current_tick(self, timestamp: int | None = None) -> int:
        """
        Estimate the auction tick from the elapsed epochs, moving `gamma` ticks per epoch from the
        starting tick toward the ending tick. Tick adjustments from sales are not included.
        """

        starting_tick: int = self._call_single("startingTick()", "int24")
        ending_tick: int = self._call_single("endingTick()", "int24")
        gamma: int = self._call_single("gamma()", "int24")
        direction = 1 if ending_tick > starting_tick else -1
        return starting_tick + self.get_current_epoch(timestamp) * gamma * direction

    def get_total_proceeds(self) -> int:
        return self.get_state().total_proceeds

    def has_ended_early(self) -> bool:
        result: bool = self._call_single("earlyExit()", "bool")
        return result
