import dataclasses
import enum
from collections.abc import Callable, Mapping
from typing import Any

import pydantic
from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.constants import (
    DEFAULT_DOPPLER404_UNIT,
    DEFAULT_LOCK_DURATION,
    DEFAULT_PD_SLUGS,
    DEFAULT_V4_YEARLY_MINT_RATE,
)
from doppler_sdk.validation.evm_values import (
    ValidatedInt24,
    ValidatedUint16NonZero,
    ValidatedUint96,
    ValidatedUint256,
)

type Tick = int


# Value objects ----------------------------------------------------------------------------------


class Curve(pydantic.BaseModel, frozen=True):
    """
    A liquidity shelf spanning [tick_lower, tick_upper], split across `num_positions` positions and
    holding `shares` (WAD-scaled) of the tokens offered for sale.
    """

    tick_lower: ValidatedInt24
    tick_upper: ValidatedInt24
    num_positions: ValidatedUint16NonZero
    shares: ValidatedUint256


class BeneficiaryShare(pydantic.BaseModel, frozen=True):
    """
    A recipient of locked fee revenue and its WAD-scaled share.
    """

    beneficiary: ChecksumAddress
    shares: ValidatedUint96

    @pydantic.field_validator("beneficiary", mode="before")
    @classmethod
    def checksum_beneficiary(cls, value: str | bytes) -> ChecksumAddress:
        return get_checksum_address(value)


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class VestingConfig:
    duration: int
    cliff_duration: int = 0
    recipients: tuple[ChecksumAddress, ...] | None = None
    amounts: tuple[int, ...] | None = None


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class SaleConfig:
    initial_supply: int
    num_tokens_to_sell: int
    numeraire: ChecksumAddress


# Token variants ---------------------------------------------------------------------------------


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class StandardTokenConfig:
    name: str
    symbol: str
    token_uri: str
    yearly_mint_rate: int = DEFAULT_V4_YEARLY_MINT_RATE


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class Doppler404TokenConfig:
    name: str
    symbol: str
    base_uri: str
    unit: int = DEFAULT_DOPPLER404_UNIT


type TokenConfig = StandardTokenConfig | Doppler404TokenConfig


# Governance variants ----------------------------------------------------------------------------


@dataclasses.dataclass(slots=True, frozen=True)
class DefaultGovernance: ...


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class CustomGovernance:
    initial_voting_delay: int
    initial_voting_period: int
    initial_proposal_threshold: int


@dataclasses.dataclass(slots=True, frozen=True)
class NoOpGovernance: ...


type GovernanceConfig = DefaultGovernance | CustomGovernance | NoOpGovernance


# Migration variants -----------------------------------------------------------------------------


@dataclasses.dataclass(slots=True, frozen=True)
class UniswapV2Migration: ...


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class UniswapV3Migration:
    fee: int
    tick_spacing: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class UniswapV4Migration:
    fee: int
    tick_spacing: int
    beneficiaries: tuple[BeneficiaryShare, ...]
    lock_duration: int = DEFAULT_LOCK_DURATION


@dataclasses.dataclass(slots=True, frozen=True)
class NoOpMigration: ...


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class CustomMigration:
    """
    A migration scheme encoded by a caller-supplied migration encoder. `migrator` is the
    liquidity migrator contract receiving the encoded data.
    """

    migrator: ChecksumAddress
    options: Mapping[str, Any] = dataclasses.field(default_factory=dict)


type MigrationConfig = (
    UniswapV2Migration | UniswapV3Migration | UniswapV4Migration | NoOpMigration | CustomMigration
)

type MigrationEncoder = Callable[[MigrationConfig], bytes]


# Pool and auction configuration ---------------------------------------------------------------


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class StaticPoolConfig:
    start_tick: Tick
    end_tick: Tick
    fee: int
    num_positions: int
    max_share_to_be_sold: int
    beneficiaries: tuple[BeneficiaryShare, ...] | None = None


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class DynamicPoolConfig:
    fee: int
    tick_spacing: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class DynamicAuctionConfig:
    duration_days: int
    epoch_length: int
    start_tick: Tick
    end_tick: Tick
    min_proceeds: int
    max_proceeds: int
    gamma: int | None = None
    num_pd_slugs: int = DEFAULT_PD_SLUGS


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class MulticurvePoolConfig:
    fee: int
    tick_spacing: int
    curves: tuple[Curve, ...]
    beneficiaries: tuple[BeneficiaryShare, ...] | None = None


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class ModuleAddressOverrides:
    """
    Per-role contract addresses that take precedence over the chain registry.
    """

    airlock: ChecksumAddress | None = None
    token_factory: ChecksumAddress | None = None
    doppler404_factory: ChecksumAddress | None = None
    v3_initializer: ChecksumAddress | None = None
    lockable_v3_initializer: ChecksumAddress | None = None
    v4_initializer: ChecksumAddress | None = None
    v4_multicurve_initializer: ChecksumAddress | None = None
    v4_scheduled_multicurve_initializer: ChecksumAddress | None = None
    doppler_deployer: ChecksumAddress | None = None
    pool_manager: ChecksumAddress | None = None
    v2_migrator: ChecksumAddress | None = None
    v3_migrator: ChecksumAddress | None = None
    v4_migrator: ChecksumAddress | None = None
    no_op_migrator: ChecksumAddress | None = None
    governance_factory: ChecksumAddress | None = None
    no_op_governance_factory: ChecksumAddress | None = None
    v3_quoter: ChecksumAddress | None = None
    univ2_router02: ChecksumAddress | None = None
    doppler_lens: ChecksumAddress | None = None

    def get(self, role: str) -> ChecksumAddress | None:
        return getattr(self, role, None)

    def merge(self, **overrides: str | None) -> "ModuleAddressOverrides":
        return dataclasses.replace(
            self,
            **{
                role: get_checksum_address(address) if address is not None else None
                for role, address in overrides.items()
            },
        )


# Built parameters -------------------------------------------------------------------------------


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class StaticAuctionParams:
    token: TokenConfig
    sale: SaleConfig
    pool: StaticPoolConfig
    governance: GovernanceConfig
    migration: MigrationConfig
    user_address: ChecksumAddress
    integrator: ChecksumAddress
    chain_id: int
    vesting: VestingConfig | None = None
    modules: ModuleAddressOverrides = ModuleAddressOverrides()
    gas: int | None = None


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class DynamicAuctionParams:
    token: TokenConfig
    sale: SaleConfig
    auction: DynamicAuctionConfig
    pool: DynamicPoolConfig
    governance: GovernanceConfig
    migration: MigrationConfig
    user_address: ChecksumAddress
    integrator: ChecksumAddress
    chain_id: int
    start_time_offset: int
    block_timestamp: int | None = None
    vesting: VestingConfig | None = None
    modules: ModuleAddressOverrides = ModuleAddressOverrides()
    gas: int | None = None


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class MulticurveParams:
    token: TokenConfig
    sale: SaleConfig
    pool: MulticurvePoolConfig
    governance: GovernanceConfig
    migration: MigrationConfig
    user_address: ChecksumAddress
    integrator: ChecksumAddress
    chain_id: int
    start_time: int | None = None
    vesting: VestingConfig | None = None
    modules: ModuleAddressOverrides = ModuleAddressOverrides()
    gas: int | None = None


type CreateParams = StaticAuctionParams | DynamicAuctionParams | MulticurveParams


# Encoder and simulation output ------------------------------------------------------------------


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class EncodedCreateParams:
    """
    The argument tuple for `Airlock.create`.
    """

    initial_supply: int
    num_tokens_to_sell: int
    numeraire: ChecksumAddress
    token_factory: ChecksumAddress
    token_factory_data: bytes
    governance_factory: ChecksumAddress
    governance_factory_data: bytes
    pool_initializer: ChecksumAddress
    pool_initializer_data: bytes
    liquidity_migrator: ChecksumAddress
    liquidity_migrator_data: bytes
    integrator: ChecksumAddress
    salt: HexBytes

    def as_tuple(self) -> tuple[Any, ...]:
        return (
            self.initial_supply,
            self.num_tokens_to_sell,
            self.numeraire,
            self.token_factory,
            self.token_factory_data,
            self.governance_factory,
            self.governance_factory_data,
            self.pool_initializer,
            self.pool_initializer_data,
            self.liquidity_migrator,
            self.liquidity_migrator_data,
            self.integrator,
            bytes(self.salt),
        )


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class EncodedDynamicCreateParams:
    create_params: EncodedCreateParams
    hook_address: ChecksumAddress
    token_address: ChecksumAddress


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class SimulationResult:
    asset_address: ChecksumAddress
    pool_address: ChecksumAddress
    governance_address: ChecksumAddress
    timelock_address: ChecksumAddress
    migration_pool_address: ChecksumAddress
    gas_estimate: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class CreateResult:
    token_address: ChecksumAddress
    pool_address: ChecksumAddress
    transaction_hash: HexBytes
    gas_used: int | None = None


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class MineResult:
    salt: HexBytes
    token_address: ChecksumAddress
    iterations: int
    hook_address: ChecksumAddress | None = None


# On-chain state ---------------------------------------------------------------------------------


@dataclasses.dataclass(slots=True, frozen=True)
class V4PoolKey:
    currency0: ChecksumAddress
    currency1: ChecksumAddress
    fee: int
    tick_spacing: int
    hooks: ChecksumAddress


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class AssetData:
    numeraire: ChecksumAddress
    timelock: ChecksumAddress
    governance: ChecksumAddress
    liquidity_migrator: ChecksumAddress
    pool_initializer: ChecksumAddress
    pool: ChecksumAddress
    migration_pool: ChecksumAddress
    num_tokens_to_sell: int
    total_supply: int
    integrator: ChecksumAddress


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class PoolInfo:
    address: ChecksumAddress
    token_address: ChecksumAddress
    numeraire_address: ChecksumAddress
    fee: int
    liquidity: int
    sqrt_price_x96: int
    tick: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class HookState:
    last_epoch: int
    tick_accumulator: int
    total_tokens_sold: int
    total_proceeds: int
    total_tokens_sold_last_epoch: int
    fees_accrued: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class HookInfo:
    hook_address: ChecksumAddress
    token_address: ChecksumAddress
    numeraire_address: ChecksumAddress
    pool_id: HexBytes
    pool_key: V4PoolKey
    state: HookState
    early_exit: bool
    insufficient_proceeds: bool
    starting_time: int
    ending_time: int
    epoch_length: int
    minimum_proceeds: int
    maximum_proceeds: int
    num_tokens_to_sell: int


class LockablePoolStatus(enum.IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    LOCKED = 2
    EXITED = 3


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class LockablePoolState:
    asset: ChecksumAddress
    numeraire: ChecksumAddress
    tick_lower: int
    tick_upper: int
    max_share_to_be_sold: int
    total_tokens_on_bonding_curve: int
    status: LockablePoolStatus


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class MulticurvePoolState:
    asset: ChecksumAddress
    numeraire: ChecksumAddress
    fee: int
    tick_spacing: int
    status: int
    pool_key: V4PoolKey
    far_tick: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class FeeCollection:
    fees0: int
    fees1: int
    transaction_hash: HexBytes


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class V3Quote:
    """
    A Uniswap V3 quoter result. `amount` is the output amount for exact-input quotes and the
    required input amount for exact-output quotes.
    """

    amount: int
    sqrt_price_x96_after: int
    initialized_ticks_crossed: int
    gas_estimate: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class V4Quote:
    amount: int
    gas_estimate: int


@dataclasses.dataclass(slots=True, frozen=True, kw_only=True)
class VestingData:
    total_amount: int
    released_amount: int
