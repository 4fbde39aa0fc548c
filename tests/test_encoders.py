import eth_abi.abi
import pytest

from doppler_sdk.constants import DEFAULT_GOVERNANCE, WAD
from doppler_sdk.exceptions import (
    BeneficiaryError,
    InvalidConfiguration,
    NormalizationFailure,
    VestingMismatch,
)
from doppler_sdk.factory.encoders import (
    DYNAMIC_POOL_DATA_TYPES,
    GOVERNANCE_DATA_TYPES,
    LOCKABLE_STATIC_POOL_DATA_TYPE,
    MULTICURVE_POOL_DATA_TYPE,
    SCHEDULED_MULTICURVE_POOL_DATA_TYPE,
    STANDARD_TOKEN_FACTORY_DATA_TYPES,
    STATIC_POOL_DATA_TYPE,
    V4_MIGRATION_DATA_TYPES,
    encode_dynamic_pool_data,
    encode_governance_data,
    encode_lockable_static_pool_data,
    encode_migration_data,
    encode_multicurve_pool_data,
    encode_static_pool_data,
    encode_token_factory_data,
    normalize_multicurve_curves,
    sort_beneficiaries,
    validate_auction_tick_range,
    validate_beneficiaries,
    validate_sale,
    validate_tick_alignment,
    validate_tick_range,
    validate_token,
    validate_vesting,
    vesting_allocation,
)
from doppler_sdk.libraries.tick_math import max_usable_tick
from doppler_sdk.logging import logger
from doppler_sdk.types import (
    BeneficiaryShare,
    Curve,
    CustomGovernance,
    CustomMigration,
    DefaultGovernance,
    Doppler404TokenConfig,
    DynamicAuctionConfig,
    DynamicPoolConfig,
    MulticurvePoolConfig,
    NoOpGovernance,
    NoOpMigration,
    SaleConfig,
    StandardTokenConfig,
    StaticPoolConfig,
    UniswapV2Migration,
    UniswapV3Migration,
    UniswapV4Migration,
    VestingConfig,
)

from .conftest import NUMERAIRE, PROTOCOL_OWNER, USER

RECIPIENT = "0x3333333333333333333333333333333333333333"

SALE = SaleConfig(initial_supply=1_000, num_tokens_to_sell=900, numeraire=NUMERAIRE)
TOKEN = StandardTokenConfig(name="Test Token", symbol="TEST", token_uri="ipfs://test")


# Validation ---------------------------------------------------------------------------------------


def test_validate_token():
    validate_token(TOKEN)
    with pytest.raises(InvalidConfiguration, match="name"):
        validate_token(StandardTokenConfig(name=" ", symbol="TEST", token_uri=""))
    with pytest.raises(InvalidConfiguration, match="symbol"):
        validate_token(Doppler404TokenConfig(name="Test", symbol="", base_uri=""))


@pytest.mark.parametrize(
    ("initial_supply", "num_tokens_to_sell"),
    [
        (0, 0),
        (1_000, 0),
        (1_000, 1_001),
    ],
)
def test_validate_sale(initial_supply: int, num_tokens_to_sell: int):
    with pytest.raises(InvalidConfiguration):
        validate_sale(
            SaleConfig(
                initial_supply=initial_supply,
                num_tokens_to_sell=num_tokens_to_sell,
                numeraire=NUMERAIRE,
            )
        )


def test_validate_tick_range():
    validate_tick_range(-120, 120, tick_spacing=60)
    with pytest.raises(InvalidConfiguration, match="less than"):
        validate_tick_range(120, 120, tick_spacing=60)
    with pytest.raises(InvalidConfiguration, match="multiples"):
        validate_tick_range(-100, 100, tick_spacing=60)


def test_validate_tick_alignment():
    validate_tick_alignment(10, -202_100, -188_200, 0)
    with pytest.raises(InvalidConfiguration, match=r"\[7, 61\]"):
        validate_tick_alignment(60, 0, 7, 61)
    with pytest.raises(InvalidConfiguration, match="positive"):
        validate_tick_alignment(0, 0)


@pytest.mark.parametrize(
    ("start_tick", "end_tick", "is_token0"),
    [
        (-60, -120, True),
        (-120, -60, False),
    ],
)
def test_validate_auction_tick_range_follows_token_ordering(
    start_tick: int,
    end_tick: int,
    is_token0: bool,
):
    validate_auction_tick_range(start_tick, end_tick, 60, is_token0=is_token0)
    with pytest.raises(InvalidConfiguration, match="token0" if is_token0 else "token1"):
        validate_auction_tick_range(end_tick, start_tick, 60, is_token0=is_token0)


def test_validate_auction_tick_range_rejects_empty_range():
    with pytest.raises(InvalidConfiguration, match="both"):
        validate_auction_tick_range(-60, -60, 60, is_token0=True)


def test_validate_vesting_accepts_valid_allocations():
    validate_vesting(None, SALE)
    validate_vesting(VestingConfig(duration=100), SALE)
    validate_vesting(
        VestingConfig(duration=100, recipients=(USER, RECIPIENT), amounts=(60, 40)),
        SALE,
    )


@pytest.mark.parametrize(
    ("vesting", "match"),
    [
        (VestingConfig(duration=1, recipients=(USER,), amounts=(50, 50)), "same length"),
        (VestingConfig(duration=1, recipients=(), amounts=()), "At least one"),
        (VestingConfig(duration=1, recipients=(USER,), amounts=(0,)), "positive"),
        (VestingConfig(duration=1, recipients=(USER,), amounts=(101,)), "exceeds"),
        (VestingConfig(duration=1, recipients=None, amounts=(50,)), "same length"),
    ],
)
def test_validate_vesting_mismatches(vesting: VestingConfig, match: str):
    with pytest.raises(VestingMismatch, match=match):
        validate_vesting(vesting, SALE)


def test_validate_vesting_without_unsold_supply():
    with pytest.raises(VestingMismatch, match="No tokens available"):
        validate_vesting(
            VestingConfig(duration=1),
            SaleConfig(initial_supply=1_000, num_tokens_to_sell=1_000, numeraire=NUMERAIRE),
        )


def test_sort_beneficiaries():
    shares = sort_beneficiaries(
        [
            BeneficiaryShare(beneficiary=RECIPIENT, shares=1),
            BeneficiaryShare(beneficiary=USER, shares=2),
            BeneficiaryShare(beneficiary=PROTOCOL_OWNER, shares=3),
        ]
    )
    assert [share.shares for share in shares] == [2, 3, 1]


def test_validate_beneficiaries(beneficiaries: tuple[BeneficiaryShare, ...]):
    validate_beneficiaries(beneficiaries, PROTOCOL_OWNER)


@pytest.mark.parametrize(
    ("entries", "match"),
    [
        ([], "At least one"),
        ([(PROTOCOL_OWNER, WAD // 20), (USER, WAD - WAD // 20)], "ascending"),
        ([(USER, WAD // 2), (USER, WAD // 2)], "ascending"),
        ([(USER, WAD // 2), (PROTOCOL_OWNER, WAD // 20)], "sum"),
        ([(USER, WAD // 2), (RECIPIENT, WAD // 2)], "must be included"),
        ([(USER, WAD - WAD // 100), (PROTOCOL_OWNER, WAD // 100)], "at least"),
    ],
)
def test_invalid_beneficiaries(entries: list[tuple[str, int]], match: str):
    with pytest.raises(BeneficiaryError, match=match):
        validate_beneficiaries(
            [BeneficiaryShare(beneficiary=address, shares=shares) for address, shares in entries],
            PROTOCOL_OWNER,
        )


# Token and governance -----------------------------------------------------------------------------


def test_vesting_allocation_defaults_to_user():
    assert vesting_allocation(None, SALE, USER) == (0, [], [])
    assert vesting_allocation(VestingConfig(duration=100), SALE, USER) == (100, [USER], [100])


def test_encode_standard_token_factory_data():
    encoded = encode_token_factory_data(
        TOKEN,
        SALE,
        USER,
        VestingConfig(duration=100, recipients=(RECIPIENT,), amounts=(75,)),
    )
    name, symbol, yearly_mint_rate, duration, recipients, amounts, token_uri = eth_abi.abi.decode(
        STANDARD_TOKEN_FACTORY_DATA_TYPES, encoded
    )
    assert (name, symbol, token_uri) == ("Test Token", "TEST", "ipfs://test")
    assert yearly_mint_rate == TOKEN.yearly_mint_rate
    assert duration == 100
    assert [recipient.lower() for recipient in recipients] == [RECIPIENT]
    assert list(amounts) == [75]


def test_encode_doppler404_token_factory_data():
    encoded = encode_token_factory_data(
        Doppler404TokenConfig(name="Test NFT", symbol="TNFT", base_uri="ipfs://base/", unit=250),
        SALE,
        USER,
    )
    assert eth_abi.abi.decode(["string", "string", "string", "uint256"], encoded) == (
        "Test NFT",
        "TNFT",
        "ipfs://base/",
        250,
    )


def test_encode_governance_data():
    assert encode_governance_data(NoOpGovernance(), "Test Token") == b""

    for defaults in ("v3", "v4"):
        assert eth_abi.abi.decode(
            GOVERNANCE_DATA_TYPES,
            encode_governance_data(DefaultGovernance(), "Test Token", defaults),
        ) == ("Test Token", *DEFAULT_GOVERNANCE[defaults])

    custom = CustomGovernance(
        initial_voting_delay=10,
        initial_voting_period=20,
        initial_proposal_threshold=30,
    )
    assert eth_abi.abi.decode(
        GOVERNANCE_DATA_TYPES, encode_governance_data(custom, "Test Token")
    ) == ("Test Token", 10, 20, 30)


# Migration ----------------------------------------------------------------------------------------


def test_encode_migration_data():
    assert encode_migration_data(UniswapV2Migration()) == b""
    assert encode_migration_data(NoOpMigration()) == b""
    assert encode_migration_data(UniswapV3Migration(fee=3000, tick_spacing=60)) == (
        eth_abi.abi.encode(["uint24", "int24"], [3000, 60])
    )


def test_encode_v4_migration_data_sorts_beneficiaries():
    migration = UniswapV4Migration(
        fee=3000,
        tick_spacing=60,
        lock_duration=86_400,
        beneficiaries=(
            BeneficiaryShare(beneficiary=PROTOCOL_OWNER, shares=WAD // 20),
            BeneficiaryShare(beneficiary=USER, shares=WAD - WAD // 20),
        ),
    )
    fee, tick_spacing, lock_duration, beneficiaries = eth_abi.abi.decode(
        V4_MIGRATION_DATA_TYPES, encode_migration_data(migration)
    )
    assert (fee, tick_spacing, lock_duration) == (3000, 60, 86_400)
    assert [(address.lower(), shares) for address, shares in beneficiaries] == [
        (USER.lower(), WAD - WAD // 20),
        (PROTOCOL_OWNER.lower(), WAD // 20),
    ]


def test_custom_migration_uses_encoder():
    migration = CustomMigration(migrator=RECIPIENT, options={"rate": 7})

    def encoder(config):
        assert config is migration
        return eth_abi.abi.encode(["uint256"], [config.options["rate"]])

    assert encode_migration_data(migration, encoder) == eth_abi.abi.encode(["uint256"], [7])

    with pytest.raises(InvalidConfiguration, match="migration encoder"):
        encode_migration_data(migration)


def test_unknown_migration():
    with pytest.raises(InvalidConfiguration):
        encode_migration_data("uniswapV5")


# Pool initializers --------------------------------------------------------------------------------


def test_encode_static_pool_data():
    pool = StaticPoolConfig(
        start_tick=175_000,
        end_tick=225_000,
        fee=10_000,
        num_positions=15,
        max_share_to_be_sold=WAD // 4,
    )
    assert eth_abi.abi.decode([STATIC_POOL_DATA_TYPE], encode_static_pool_data(pool)) == (
        (10_000, 175_000, 225_000, 15, WAD // 4),
    )


def test_encode_lockable_static_pool_data(beneficiaries: tuple[BeneficiaryShare, ...]):
    pool = StaticPoolConfig(
        start_tick=175_000,
        end_tick=225_000,
        fee=10_000,
        num_positions=15,
        max_share_to_be_sold=WAD // 4,
        beneficiaries=tuple(reversed(beneficiaries)),
    )
    ((fee, start_tick, end_tick, num_positions, max_share, encoded_beneficiaries),) = (
        eth_abi.abi.decode([LOCKABLE_STATIC_POOL_DATA_TYPE], encode_lockable_static_pool_data(pool))
    )
    assert (fee, start_tick, end_tick, num_positions, max_share) == (
        10_000,
        175_000,
        225_000,
        15,
        WAD // 4,
    )
    assert [address.lower() for address, _ in encoded_beneficiaries] == [
        USER.lower(),
        PROTOCOL_OWNER.lower(),
    ]


def test_encode_dynamic_pool_data():
    encoded = encode_dynamic_pool_data(
        DynamicAuctionConfig(
            duration_days=7,
            epoch_length=43_200,
            start_tick=-100_020,
            end_tick=-200_040,
            min_proceeds=10**20,
            max_proceeds=10**21,
        ),
        DynamicPoolConfig(fee=3000, tick_spacing=60),
        gamma=7_200,
        starting_time=1_000,
        ending_time=605_800,
        is_token0=True,
    )
    assert eth_abi.abi.decode(DYNAMIC_POOL_DATA_TYPES, encoded) == (
        10**20,
        10**21,
        1_000,
        605_800,
        -100_020,
        -200_040,
        43_200,
        7_200,
        True,
        5,
        3000,
        60,
    )


CURVES = (
    Curve(tick_lower=0, tick_upper=60_000, num_positions=8, shares=WAD // 4),
    Curve(tick_lower=60_000, tick_upper=120_000, num_positions=6, shares=WAD // 4),
)


def test_normalize_multicurve_curves_adds_fallback():
    curves = normalize_multicurve_curves(CURVES, tick_spacing=60)
    assert curves[:2] == CURVES
    assert curves[2] == Curve(
        tick_lower=120_000,
        tick_upper=max_usable_tick(60),
        num_positions=6,
        shares=WAD // 2,
    )


def test_normalize_multicurve_curves_keeps_complete_curves():
    complete = (
        *CURVES,
        Curve(tick_lower=120_000, tick_upper=180_000, num_positions=1, shares=WAD // 2),
    )
    assert normalize_multicurve_curves(complete, tick_spacing=60) == complete


def test_normalize_warns_about_non_positive_ticks(monkeypatch: pytest.MonkeyPatch):
    warnings: list[str] = []
    monkeypatch.setattr(logger, "warning", warnings.append)

    curves = (Curve(tick_lower=-60, tick_upper=60, num_positions=1, shares=WAD),)
    assert normalize_multicurve_curves(curves, tick_spacing=60) == curves
    assert len(warnings) == 1
    assert "negative or zero ticks" in warnings[0]


@pytest.mark.parametrize(
    "curves",
    [
        (),
        (Curve(tick_lower=0, tick_upper=60, num_positions=1, shares=0),),
        (Curve(tick_lower=60, tick_upper=60, num_positions=1, shares=WAD),),
        (Curve(tick_lower=0, tick_upper=60, num_positions=1, shares=WAD + 1),),
        (Curve(tick_lower=0, tick_upper=max_usable_tick(60), num_positions=1, shares=WAD // 2),),
    ],
)
def test_normalize_multicurve_curves_failures(curves: tuple[Curve, ...]):
    with pytest.raises(NormalizationFailure):
        normalize_multicurve_curves(curves, tick_spacing=60)


def test_normalize_multicurve_curves_rejects_misaligned_ticks():
    curves = (Curve(tick_lower=7, tick_upper=61, num_positions=1, shares=WAD // 2),)
    with pytest.raises(InvalidConfiguration, match="multiples of the tick spacing 60"):
        normalize_multicurve_curves(curves, tick_spacing=60)

    # Aligned for a finer spacing
    curves = (Curve(tick_lower=10, tick_upper=60, num_positions=1, shares=WAD),)
    assert normalize_multicurve_curves(curves, tick_spacing=10) == curves


def test_encode_multicurve_pool_data(beneficiaries: tuple[BeneficiaryShare, ...]):
    pool = MulticurvePoolConfig(
        fee=3000,
        tick_spacing=60,
        curves=CURVES,
        beneficiaries=tuple(reversed(beneficiaries)),
    )
    ((fee, tick_spacing, curves, encoded_beneficiaries),) = eth_abi.abi.decode(
        [MULTICURVE_POOL_DATA_TYPE], encode_multicurve_pool_data(pool)
    )
    assert (fee, tick_spacing) == (3000, 60)
    assert len(curves) == 3
    assert sum(curve[3] for curve in curves) == WAD
    assert [address.lower() for address, _ in encoded_beneficiaries] == [
        USER.lower(),
        PROTOCOL_OWNER.lower(),
    ]


def test_encode_scheduled_multicurve_pool_data():
    pool = MulticurvePoolConfig(fee=3000, tick_spacing=60, curves=CURVES)
    ((*_, encoded_beneficiaries, start_time),) = eth_abi.abi.decode(
        [SCHEDULED_MULTICURVE_POOL_DATA_TYPE],
        encode_multicurve_pool_data(pool, start_time=1_800_000_000),
    )
    assert start_time == 1_800_000_000
    assert encoded_beneficiaries == ()

