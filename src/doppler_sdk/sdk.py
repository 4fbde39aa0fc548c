from web3 import Web3

from doppler_sdk.auctions import DynamicAuction, MulticurvePool, StaticAuction
from doppler_sdk.builders import DynamicAuctionBuilder, MulticurveBuilder, StaticAuctionBuilder
from doppler_sdk.connection import connection_manager
from doppler_sdk.derc20 import Derc20Token
from doppler_sdk.factory import DopplerFactory
from doppler_sdk.quoter import Quoter
from doppler_sdk.types import HookInfo, ModuleAddressOverrides, PoolInfo

class DopplerSDK:
    """
    Entry point tying the factory, quoter, builders, and on-chain readers to one chain and client.

    Without an explicit `Web3` client, every component uses the client registered for the chain
    with the connection manager.
    """

    def __init__(
        self,
        chain_id: int,
        w3: Web3 | None = None,
        *,
        modules: ModuleAddressOverrides | None = None,
        protocol_owner: str | None = None,
    ) -> None:
        self.chain_id = chain_id
        self._w3 = w3
        self.modules = modules
        self.factory = DopplerFactory(chain_id, w3, protocol_owner=protocol_owner)
        self.quoter = Quoter(chain_id, w3, modules)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain_id={self.chain_id})"

    @property
    def w3(self) -> Web3:
        if self._w3 is not None:
            return self._w3
        return connection_manager.get_web3(self.chain_id)

    # Builders -----------------------------------------------------------------------------------

    def build_static_auction(self) -> StaticAuctionBuilder:
        builder = StaticAuctionBuilder(self.chain_id)
        if self.modules is not None:
            builder.modules = self.modules
        return builder

    def build_dynamic_auction(self) -> DynamicAuctionBuilder:
        builder = DynamicAuctionBuilder(self.chain_id)
        if self.modules is not None:
            builder.modules = self.modules
        return builder

    def build_multicurve_auction(self) -> MulticurveBuilder:
        builder = MulticurveBuilder(self.chain_id)
        if self.modules is not None:
            builder.modules = self.modules
        return builder

    # On-chain entities --------------------------------------------------------------------------

    def get_static_auction(self, pool_address: str) -> StaticAuction:
        return StaticAuction(pool_address, self.chain_id, self._w3, self.modules)

    def get_dynamic_auction(self, hook_address: str) -> DynamicAuction:
        return DynamicAuction(hook_address, self.chain_id, self._w3, self.modules)

    def get_multicurve_pool(self, asset_address: str) -> MulticurvePool:
        return MulticurvePool(asset_address, self.chain_id, self._w3, self.modules)

    def get_derc20(self, token_address: str) -> Derc20Token:
        return Derc20Token(token_address, self.chain_id, self._w3, self.modules)

    def get_pool_info(self, pool_address: str) -> PoolInfo:
        return self.get_static_auction(pool_address).get_pool_info()

    def get_hook_info(self, hook_address: str) -> HookInfo:
        return self.get_dynamic_auction(hook_address).get_hook_info()
