"""
Stateless ABI encoders for the data payloads passed to `Airlock.create`, and the cross-field checks
run before encoding.
"""

from collections.abc import Iterable, Sequence

import eth_abi.abi
from eth_typing import ChecksumAddress

from doppler_sdk.constants import DEFAULT_GOVERNANCE, WAD
from doppler_sdk.exceptions import (
    BeneficiaryError,
    DopplerValueError,
    InvalidConfiguration,
    NormalizationFailure,
    VestingMismatch,
)
from doppler_sdk.libraries.tick_math import max_usable_tick
from doppler_sdk.logging import logger
from doppler_sdk.types import (
    BeneficiaryShare,
    CustomGovernance,
    CustomMigration,
    Curve,
    DefaultGovernance,
    Doppler404TokenConfig,
    DynamicAuctionConfig,
    DynamicPoolConfig,
    GovernanceConfig,
    MigrationConfig,
    MigrationEncoder,
    MulticurvePoolConfig,
    NoOpGovernance,
    NoOpMigration,
    SaleConfig,
    StandardTokenConfig,
    StaticPoolConfig,
    TokenConfig,
    UniswapV2Migration,
    UniswapV3Migration,
    UniswapV4Migration,
    VestingConfig,
)

BENEFICIARY_TYPE = "(address,uint96)[]"
CURVE_TYPE = "(int24,int24,uint16,uint256)[]"

STATIC_POOL_DATA_TYPE = "(uint24,int24,int24,uint16,uint256)"
LOCKABLE_STATIC_POOL_DATA_TYPE = f"(uint24,int24,int24,uint16,uint256,{BENEFICIARY_TYPE})"
DYNAMIC_POOL_DATA_TYPES = (
    "uint256",  # minimum proceeds
    "uint256",  # maximum proceeds
    "uint256",  # starting time
    "uint256",  # ending time
    "int24",  # starting tick
    "int24",  # ending tick
    "uint256",  # epoch length
    "int24",  # gamma
    "bool",  # is token0
    "uint256",  # price discovery slugs
    "uint24",  # fee
    "int24",  # tick spacing
)
MULTICURVE_POOL_DATA_TYPE = f"(uint24,int24,{CURVE_TYPE},{BENEFICIARY_TYPE})"
SCHEDULED_MULTICURVE_POOL_DATA_TYPE = f"(uint24,int24,{CURVE_TYPE},{BENEFICIARY_TYPE},uint32)"

GOVERNANCE_DATA_TYPES = ("string", "uint48", "uint32", "uint256")
V3_MIGRATION_DATA_TYPES = ("uint24", "int24")
V4_MIGRATION_DATA_TYPES = ("uint24", "int24", "uint32", BENEFICIARY_TYPE)

STANDARD_TOKEN_FACTORY_DATA_TYPES = (
    "string",
    "string",
    "uint256",
    "uint256",
    "address[]",
    "uint256[]",
    "string",
)
DOPPLER404_TOKEN_FACTORY_DATA_TYPES = ("string", "string", "string", "uint256")

# Minimum share of locked fees reserved for the protocol owner
MIN_PROTOCOL_OWNER_SHARES = WAD // 20


# Validation -------------------------------------------------------------------------------------


def validate_token(token: TokenConfig) -> None:
    if not token.name.strip():
        raise InvalidConfiguration(message="Token name is required")
    if not token.symbol.strip():
        raise InvalidConfiguration(message="Token symbol is required")


def validate_sale(sale: SaleConfig) -> None:
    if sale.initial_supply <= 0:
        raise InvalidConfiguration(message="Initial supply must be positive")
    if sale.num_tokens_to_sell <= 0:
        raise InvalidConfiguration(message="Number of tokens to sell must be positive")
    if sale.num_tokens_to_sell > sale.initial_supply:
        raise InvalidConfiguration(message="Cannot sell more tokens than initial supply")


def validate_tick_alignment(tick_spacing: int, *ticks: int) -> None:
    if tick_spacing <= 0:
        raise InvalidConfiguration(message=f"Tick spacing must be positive, got {tick_spacing}")
    if misaligned := [tick for tick in ticks if tick % tick_spacing != 0]:
        raise InvalidConfiguration(
            message=f"Ticks {misaligned} are not multiples of the tick spacing {tick_spacing}"
        )


def validate_tick_range(start_tick: int, end_tick: int, tick_spacing: int) -> None:
    if start_tick >= end_tick:
        raise InvalidConfiguration(
            message=f"Start tick ({start_tick}) must be less than end tick ({end_tick})"
        )
    validate_tick_alignment(tick_spacing, start_tick, end_tick)


def validate_auction_tick_range(
    start_tick: int,
    end_tick: int,
    tick_spacing: int,
    *,
    is_token0: bool,
) -> None:
    """
    Check the direction of a dynamic auction's tick range. The auction lowers the asset's price,
    so the tick falls when the asset is token0 and rises when it is token1.
    """

    if start_tick == end_tick:
        raise InvalidConfiguration(message=f"Start and end tick are both {start_tick}")
    if is_token0 and start_tick < end_tick:
        raise InvalidConfiguration(
            message=f"Start tick ({start_tick}) must be greater than end tick ({end_tick}) when "
            "the asset is token0"
        )
    if not is_token0 and start_tick > end_tick:
        raise InvalidConfiguration(
            message=f"Start tick ({start_tick}) must be less than end tick ({end_tick}) when the "
            "asset is token1"
        )
    validate_tick_alignment(tick_spacing, start_tick, end_tick)


def validate_vesting(vesting: VestingConfig | None, sale: SaleConfig) -> None:
    """
    Check that an explicit vesting allocation is consistent and fits within the unsold supply.
    """

    if vesting is None:
        return

    unsold_supply = sale.initial_supply - sale.num_tokens_to_sell
    if unsold_supply <= 0:
        raise VestingMismatch(message="No tokens available for vesting")

    if vesting.recipients is None and vesting.amounts is None:
        return

    recipients = vesting.recipients or ()
    amounts = vesting.amounts or ()
    if len(recipients) != len(amounts):
        raise VestingMismatch(
            message=f"Vesting recipients and amounts must have the same length, got "
            f"{len(recipients)} recipients and {len(amounts)} amounts"
        )
    if not recipients:
        raise VestingMismatch(message="At least one vesting recipient is required")
    if any(amount <= 0 for amount in amounts):
        raise VestingMismatch(message="Vesting amounts must be positive")

    total_vested = sum(amounts)
    if total_vested > unsold_supply:
        raise VestingMismatch(
            message=f"Total vesting amount {total_vested} exceeds the available unsold supply "
            f"{unsold_supply}"
        )


def sort_beneficiaries(beneficiaries: Iterable[BeneficiaryShare]) -> tuple[BeneficiaryShare, ...]:
    return tuple(
        sorted(
            beneficiaries,
            key=lambda beneficiary: int(beneficiary.beneficiary, 16),
        )
    )


def validate_beneficiaries(
    beneficiaries: Sequence[BeneficiaryShare],
    protocol_owner: ChecksumAddress,
) -> None:
    """
    Check the invariants enforced by the lockable initializers and the V4 migrator: a non-empty
    list, strictly ascending addresses, shares summing to exactly 100%, and the protocol owner
    holding at least 5%.
    """

    if not beneficiaries:
        raise BeneficiaryError(message="At least one beneficiary is required")

    addresses = [int(beneficiary.beneficiary, 16) for beneficiary in beneficiaries]
    if any(current >= following for current, following in zip(addresses, addresses[1:])):
        raise BeneficiaryError(
            message="Beneficiaries must be sorted in strictly ascending order by address"
        )

    total_shares = sum(beneficiary.shares for beneficiary in beneficiaries)
    if total_shares != WAD:
        raise BeneficiaryError(
            message=f"Beneficiary shares must sum to {WAD} (100%), got {total_shares}"
        )

    owner_shares = next(
        (
            beneficiary.shares
            for beneficiary in beneficiaries
            if beneficiary.beneficiary == protocol_owner
        ),
        None,
    )
    if owner_shares is None:
        raise BeneficiaryError(
            message=f"Protocol owner {protocol_owner} must be included as a beneficiary"
        )
    if owner_shares < MIN_PROTOCOL_OWNER_SHARES:
        raise BeneficiaryError(
            message=f"Protocol owner shares must be at least {MIN_PROTOCOL_OWNER_SHARES} (5%), "
            f"got {owner_shares}"
        )


def _beneficiary_tuples(
    beneficiaries: Iterable[BeneficiaryShare],
) -> list[tuple[ChecksumAddress, int]]:
    return [(beneficiary.beneficiary, beneficiary.shares) for beneficiary in beneficiaries]


# Token and governance ---------------------------------------------------------------------------


def vesting_allocation(
    vesting: VestingConfig | None,
    sale: SaleConfig,
    user_address: ChecksumAddress,
) -> tuple[int, list[ChecksumAddress], list[int]]:
    """
    Resolve the (duration, recipients, amounts) triple for the token. Without explicit recipients
    the full unsold supply vests to the user.
    """

    if vesting is None:
        return 0, [], []

    recipients = list(vesting.recipients) if vesting.recipients else [user_address]
    amounts = (
        list(vesting.amounts)
        if vesting.amounts
        else [sale.initial_supply - sale.num_tokens_to_sell]
    )
    return vesting.duration, recipients, amounts


def encode_token_factory_data(
    token: TokenConfig,
    sale: SaleConfig,
    user_address: ChecksumAddress,
    vesting: VestingConfig | None = None,
) -> bytes:
    match token:
        case StandardTokenConfig():
            vesting_duration, recipients, amounts = vesting_allocation(vesting, sale, user_address)
            return eth_abi.abi.encode(
                STANDARD_TOKEN_FACTORY_DATA_TYPES,
                (
                    token.name,
                    token.symbol,
                    token.yearly_mint_rate,
                    vesting_duration,
                    recipients,
                    amounts,
                    token.token_uri,
                ),
            )
        case Doppler404TokenConfig():
            return eth_abi.abi.encode(
                DOPPLER404_TOKEN_FACTORY_DATA_TYPES,
                (token.name, token.symbol, token.base_uri, token.unit),
            )
        case _:
            raise DopplerValueError(message=f"Unsupported token configuration {token!r}")


def encode_governance_data(
    governance: GovernanceConfig,
    token_name: str,
    defaults: str = "v4",
) -> bytes:
    """
    Encode the governance factory data. `defaults` selects the voting parameters used by
    `DefaultGovernance`, either "v3" or "v4". NoOp governance carries no data.
    """

    match governance:
        case NoOpGovernance():
            return b""
        case DefaultGovernance():
            voting_delay, voting_period, proposal_threshold = DEFAULT_GOVERNANCE[defaults]
        case CustomGovernance():
            voting_delay = governance.initial_voting_delay
            voting_period = governance.initial_voting_period
            proposal_threshold = governance.initial_proposal_threshold
        case _:
            raise DopplerValueError(message=f"Unsupported governance configuration {governance!r}")

    return eth_abi.abi.encode(
        GOVERNANCE_DATA_TYPES,
        (token_name, voting_delay, voting_period, proposal_threshold),
    )


# Migration --------------------------------------------------------------------------------------


def encode_migration_data(
    migration: MigrationConfig,
    custom_encoder: MigrationEncoder | None = None,
) -> bytes:
    match migration:
        case UniswapV2Migration() | NoOpMigration():
            return b""
        case UniswapV3Migration(fee=fee, tick_spacing=tick_spacing):
            return eth_abi.abi.encode(V3_MIGRATION_DATA_TYPES, (fee, tick_spacing))
        case UniswapV4Migration():
            return eth_abi.abi.encode(
                V4_MIGRATION_DATA_TYPES,
                (
                    migration.fee,
                    migration.tick_spacing,
                    migration.lock_duration,
                    _beneficiary_tuples(sort_beneficiaries(migration.beneficiaries)),
                ),
            )
        case CustomMigration():
            if custom_encoder is None:
                raise InvalidConfiguration(
                    message="A custom migration requires a migration encoder on the factory"
                )
            return bytes(custom_encoder(migration))
        case _:
            raise InvalidConfiguration(message=f"Unknown migration configuration {migration!r}")


# Pool initializers ------------------------------------------------------------------------------


def encode_static_pool_data(pool: StaticPoolConfig) -> bytes:
    return eth_abi.abi.encode(
        (STATIC_POOL_DATA_TYPE,),
        (
            (
                pool.fee,
                pool.start_tick,
                pool.end_tick,
                pool.num_positions,
                pool.max_share_to_be_sold,
            ),
        ),
    )


def encode_lockable_static_pool_data(pool: StaticPoolConfig) -> bytes:
    return eth_abi.abi.encode(
        (LOCKABLE_STATIC_POOL_DATA_TYPE,),
        (
            (
                pool.fee,
                pool.start_tick,
                pool.end_tick,
                pool.num_positions,
                pool.max_share_to_be_sold,
                _beneficiary_tuples(sort_beneficiaries(pool.beneficiaries or ())),
            ),
        ),
    )


def encode_dynamic_pool_data(
    auction: DynamicAuctionConfig,
    pool: DynamicPoolConfig,
    *,
    gamma: int,
    starting_time: int,
    ending_time: int,
    is_token0: bool,
) -> bytes:
    return eth_abi.abi.encode(
        DYNAMIC_POOL_DATA_TYPES,
        (
            auction.min_proceeds,
            auction.max_proceeds,
            starting_time,
            ending_time,
            auction.start_tick,
            auction.end_tick,
            auction.epoch_length,
            gamma,
            is_token0,
            auction.num_pd_slugs,
            pool.fee,
            pool.tick_spacing,
        ),
    )


def normalize_multicurve_curves(
    curves: Sequence[Curve],
    tick_spacing: int,
) -> tuple[Curve, ...]:
    """
    Return the curves with a trailing fallback curve holding any shortfall below 100%. The
    fallback spans from the highest upper tick to the maximum usable tick.
    """

    if not curves:
        raise NormalizationFailure(message="At least one curve is required")

    if any(curve.shares <= 0 for curve in curves):
        raise NormalizationFailure(message="Every curve must have positive shares")

    if any(curve.tick_lower >= curve.tick_upper for curve in curves):
        raise NormalizationFailure(message="Every curve must have tick_lower below tick_upper")

    validate_tick_alignment(
        tick_spacing,
        *(tick for curve in curves for tick in (curve.tick_lower, curve.tick_upper)),
    )

    if any(curve.tick_lower <= 0 or curve.tick_upper <= 0 for curve in curves):
        logger.warning(
            "Using negative or zero ticks in multicurve configuration. Please verify this is "
            "intentional before proceeding."
        )

    total_shares = sum(curve.shares for curve in curves)
    if total_shares > WAD:
        raise NormalizationFailure(
            message=f"Total shares {total_shares} exceed {WAD} (100%)"
        )
    if total_shares == WAD:
        return tuple(curves)

    fallback_tick_lower = max(curve.tick_upper for curve in curves)
    fallback_tick_upper = max_usable_tick(tick_spacing)
    if fallback_tick_lower >= fallback_tick_upper:
        raise NormalizationFailure(
            message=f"Cannot place a fallback curve above tick {fallback_tick_lower}"
        )

    fallback = Curve(
        tick_lower=fallback_tick_lower,
        tick_upper=fallback_tick_upper,
        num_positions=curves[-1].num_positions,
        shares=WAD - total_shares,
    )
    logger.debug(f"Appended fallback curve {fallback} to normalize multicurve shares")
    return (*curves, fallback)


def encode_multicurve_pool_data(
    pool: MulticurvePoolConfig,
    start_time: int | None = None,
) -> bytes:
    """
    Encode the multicurve initializer data. A `start_time` selects the scheduled initializer
    layout, which appends the uint32 starting time.
    """

    curves = [
        (curve.tick_lower, curve.tick_upper, curve.num_positions, curve.shares)
        for curve in normalize_multicurve_curves(pool.curves, pool.tick_spacing)
    ]
    beneficiaries = _beneficiary_tuples(sort_beneficiaries(pool.beneficiaries or ()))

    if start_time is None:
        return eth_abi.abi.encode(
            (MULTICURVE_POOL_DATA_TYPE,),
            ((pool.fee, pool.tick_spacing, curves, beneficiaries),),
        )
    return eth_abi.abi.encode(
        (SCHEDULED_MULTICURVE_POOL_DATA_TYPE,),
        ((pool.fee, pool.tick_spacing, curves, beneficiaries, start_time),),
    )
