from eth_typing import ChecksumAddress

from doppler_sdk.auctions.base import ContractReader
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.deployments import resolve_module_address
from doppler_sdk.types import LockablePoolState, LockablePoolStatus

LOCKABLE_STATE_TYPES = [
    "address",  # asset
    "address",  # numeraire
    "int24",  # tickLower
    "int24",  # tickUpper
    "uint256",  # maxShareToBeSold
    "uint256",  # totalTokensOnBondingCurve
    "uint8",  # status
]


class LockableV3Pool(ContractReader):
    """
    A static auction pool created by the lockable V3 initializer, whose liquidity stays locked and
    streams fees to beneficiaries instead of migrating.
    """

    @property
    def initializer(self) -> ChecksumAddress:
        return resolve_module_address("lockable_v3_initializer", self.chain_id, self.modules)

    def get_state(self) -> LockablePoolState:
        (
            asset,
            numeraire,
            tick_lower,
            tick_upper,
            max_share_to_be_sold,
            total_tokens_on_bonding_curve,
            status,
        ) = self._call(
            "getState(address)",
            LOCKABLE_STATE_TYPES,
            [self.address],
            address=self.initializer,
        )
        return LockablePoolState(
            asset=get_checksum_address(asset),
            numeraire=get_checksum_address(numeraire),
            tick_lower=tick_lower,
            tick_upper=tick_upper,
            max_share_to_be_sold=max_share_to_be_sold,
            total_tokens_on_bonding_curve=total_tokens_on_bonding_curve,
            status=LockablePoolStatus(status),
        )

    def is_locked(self) -> bool:
        return self.get_state().status == LockablePoolStatus.LOCKED
