from eth_typing import ChecksumAddress

from doppler_sdk.auctions.airlock import get_asset_data, has_graduated
from doppler_sdk.auctions.base import ContractReader
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.constants import ZERO_ADDRESS
from doppler_sdk.libraries.price_math import sqrt_price_x96_to_price
from doppler_sdk.types import PoolInfo

SLOT0_TYPES = [
    "uint160",  # sqrtPriceX96
    "int24",  # tick
    "uint16",  # observationIndex
    "uint16",  # observationCardinality
    "uint16",  # observationCardinalityNext
    "uint8",  # feeProtocol
    "bool",  # unlocked
]


class StaticAuction(ContractReader):
    """
    Read-only view of a static auction's Uniswap V3 pool.
    """

    def get_pool_info(self) -> PoolInfo:
        sqrt_price_x96, tick, *_ = self._call("slot0()", SLOT0_TYPES)
        liquidity = self._call_single("liquidity()", "uint128")
        token0 = get_checksum_address(self._call_single("token0()", "address"))
        token1 = get_checksum_address(self._call_single("token1()", "address"))
        fee = self._call_single("fee()", "uint24")

        # The airlock only holds asset data for the auctioned token
        token0_is_asset = (
            get_asset_data(self.w3, self.chain_id, token0, self.modules).pool != ZERO_ADDRESS
        )

        return PoolInfo(
            address=self.address,
            token_address=token0 if token0_is_asset else token1,
            numeraire_address=token1 if token0_is_asset else token0,
            fee=fee,
            liquidity=liquidity,
            sqrt_price_x96=sqrt_price_x96,
            tick=tick,
        )

    def get_token_address(self) -> ChecksumAddress:
        return self.get_pool_info().token_address

    def has_graduated(self) -> bool:
        return has_graduated(
            get_asset_data(self.w3, self.chain_id, self.get_token_address(), self.modules)
        )

    def get_current_price(self) -> float:
        """
        The price of the auctioned token in numeraire units, unadjusted for decimals.
        """

        pool_info = self.get_pool_info()
        return sqrt_price_x96_to_price(
            pool_info.sqrt_price_x96,
            0,
            0,
            token0_is_base=int(pool_info.token_address, 16) < int(pool_info.numeraire_address, 16),
        )

    def get_total_liquidity(self) -> int:
        liquidity: int = self._call_single("liquidity()", "uint128")
        return liquidity
