from .checksum_cache import get_checksum_address
from .config import settings
from .connection import connection_manager, get_web3, set_web3
from .version import __version__

# isort: split

from . import constants, exceptions, libraries
from .auctions import (
    DynamicAuction,
    LockableV3Pool,
    MulticurvePool,
    ScheduledMulticurvePool,
    StaticAuction,
    get_airlock_owner,
)
from .builders import (
    DynamicAuctionBuilder,
    MulticurveBuilder,
    PresetOverride,
    StaticAuctionBuilder,
)
from .deployments import (
    ChainAddresses,
    get_addresses,
    register_bytecode,
    register_chain_addresses,
    resolve_module_address,
)
from .derc20 import Derc20Token
from .factory import DopplerFactory
from .logging import logger
from .mining import mine_hook_salt, mine_token_address
from .quoter import Quoter
from .sdk import DopplerSDK
from .types import (
    BeneficiaryShare,
    CreateResult,
    Curve,
    CustomGovernance,
    CustomMigration,
    DefaultGovernance,
    Doppler404TokenConfig,
    DynamicAuctionParams,
    ModuleAddressOverrides,
    MulticurveParams,
    NoOpGovernance,
    NoOpMigration,
    SaleConfig,
    SimulationResult,
    StandardTokenConfig,
    StaticAuctionParams,
    UniswapV2Migration,
    UniswapV3Migration,
    UniswapV4Migration,
    VestingConfig,
)

__all__ = (
    "BeneficiaryShare",
    "ChainAddresses",
    "CreateResult",
    "Curve",
    "CustomGovernance",
    "CustomMigration",
    "DefaultGovernance",
    "Derc20Token",
    "Doppler404TokenConfig",
    "DopplerFactory",
    "DopplerSDK",
    "DynamicAuction",
    "DynamicAuctionBuilder",
    "DynamicAuctionParams",
    "LockableV3Pool",
    "ModuleAddressOverrides",
    "MulticurveBuilder",
    "MulticurveParams",
    "MulticurvePool",
    "NoOpGovernance",
    "NoOpMigration",
    "PresetOverride",
    "Quoter",
    "SaleConfig",
    "ScheduledMulticurvePool",
    "SimulationResult",
    "StandardTokenConfig",
    "StaticAuction",
    "StaticAuctionBuilder",
    "StaticAuctionParams",
    "UniswapV2Migration",
    "UniswapV3Migration",
    "UniswapV4Migration",
    "VestingConfig",
    "__version__",
    "connection_manager",
    "constants",
    "exceptions",
    "get_addresses",
    "get_airlock_owner",
    "get_checksum_address",
    "get_web3",
    "libraries",
    "logger",
    "mine_hook_salt",
    "mine_token_address",
    "register_bytecode",
    "register_chain_addresses",
    "resolve_module_address",
    "set_web3",
    "settings",
)
