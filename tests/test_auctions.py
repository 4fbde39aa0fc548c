import eth_abi.abi
import pytest

from doppler_sdk.auctions import (
    DynamicAuction,
    LockableV3Pool,
    MulticurvePool,
    ScheduledMulticurvePool,
    StaticAuction,
    create_airlock_beneficiary,
    get_airlock_beneficiary,
    get_airlock_owner,
    get_asset_data,
    has_graduated,
)
from doppler_sdk.auctions.airlock import ASSET_DATA_TYPES
from doppler_sdk.auctions.dynamic_auction import HOOK_STATE_TYPES, POOL_KEY_TYPES, current_epoch
from doppler_sdk.auctions.lockable_pool import LOCKABLE_STATE_TYPES
from doppler_sdk.auctions.multicurve_pool import MULTICURVE_STATE_TYPES
from doppler_sdk.auctions.static_auction import SLOT0_TYPES
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.connection import connection_manager, set_web3
from doppler_sdk.constants import WAD, ZERO_ADDRESS
from doppler_sdk.exceptions import DopplerValueError, ExternalCallError, MissingModuleAddress
from doppler_sdk.functions import compute_pool_id
from doppler_sdk.types import HookState, LockablePoolStatus

from .conftest import CHAIN_ID, MODULES, NUMERAIRE, PROTOCOL_OWNER, USER, FakeWeb3

ASSET = get_checksum_address("0x5000000000000000000000000000000000000005")
POOL = get_checksum_address("0x6000000000000000000000000000000000000006")
HOOK = get_checksum_address("0x7000000000000000000000000000000000003fe0")
Q96 = 2**96


def asset_data(
    liquidity_migrator: str = "0x000000000000000000000000000000000000000b",
    pool: str = POOL,
) -> list:
    return [
        NUMERAIRE,
        "0x0000000000000000000000000000000000000003",  # timelock
        "0x0000000000000000000000000000000000000004",  # governance
        liquidity_migrator,
        "0x0000000000000000000000000000000000000005",  # pool initializer
        pool,
        "0x0000000000000000000000000000000000000006",  # migration pool
        9 * 10**26,
        10**27,
        ZERO_ADDRESS,
    ]


def respond_with_asset_data(fake_w3: FakeWeb3, liquidity_migrator: str | None = None) -> None:
    """
    Only ASSET is registered with the airlock, other tokens return empty asset data.
    """

    def response(args: bytes) -> list:
        (token,) = eth_abi.abi.decode(["address"], args)
        if get_checksum_address(token) != ASSET:
            return asset_data(liquidity_migrator=ZERO_ADDRESS, pool=ZERO_ADDRESS)
        if liquidity_migrator is not None:
            return asset_data(liquidity_migrator=liquidity_migrator)
        return asset_data()

    fake_w3.respond("getAssetData(address)", ASSET_DATA_TYPES, response)


# Airlock ------------------------------------------------------------------------------------------


def test_get_airlock_owner(fake_w3: FakeWeb3):
    assert get_airlock_owner(fake_w3, CHAIN_ID, MODULES) == PROTOCOL_OWNER
    assert fake_w3.eth.calls[0]["to"] == MODULES.airlock


def test_get_airlock_owner_without_airlock_address(fake_w3: FakeWeb3):
    with pytest.raises(MissingModuleAddress):
        get_airlock_owner(fake_w3, 999_999)


def test_airlock_beneficiary(fake_w3: FakeWeb3):
    assert create_airlock_beneficiary(PROTOCOL_OWNER).shares == WAD // 20
    beneficiary = get_airlock_beneficiary(fake_w3, CHAIN_ID, overrides=MODULES)
    assert beneficiary.beneficiary == PROTOCOL_OWNER
    assert beneficiary.shares == WAD // 20


def test_get_asset_data_and_graduation(fake_w3: FakeWeb3):
    respond_with_asset_data(fake_w3)
    data = get_asset_data(fake_w3, CHAIN_ID, ASSET, MODULES)
    assert data.numeraire == NUMERAIRE
    assert data.pool == POOL
    assert data.total_supply == 10**27
    assert data.integrator == ZERO_ADDRESS
    assert not has_graduated(data)

    respond_with_asset_data(fake_w3, liquidity_migrator=ZERO_ADDRESS)
    assert has_graduated(get_asset_data(fake_w3, CHAIN_ID, ASSET, MODULES))


def test_get_asset_data_wraps_call_errors(fake_w3: FakeWeb3):
    fake_w3.revert("getAssetData(address)")
    with pytest.raises(ExternalCallError, match="eth_call"):
        get_asset_data(fake_w3, CHAIN_ID, ASSET, MODULES)


# Contract readers ---------------------------------------------------------------------------------


def test_reader_chain_id_from_client(fake_w3: FakeWeb3):
    reader = StaticAuction(POOL, w3=fake_w3)
    assert reader.chain_id == CHAIN_ID
    assert reader.w3 is fake_w3
    assert repr(reader) == f"StaticAuction(address={POOL}, chain_id={CHAIN_ID})"


def test_reader_chain_id_from_connection_manager(fake_w3: FakeWeb3):
    with pytest.raises(DopplerValueError):
        StaticAuction(POOL)

    set_web3(fake_w3)
    reader = StaticAuction(POOL)
    assert reader.chain_id == CHAIN_ID
    assert reader.w3 is fake_w3

    connection_manager.connections.clear()
    with pytest.raises(DopplerValueError, match="does not have a registered Web3 instance"):
        _ = reader.w3


# Static auctions ----------------------------------------------------------------------------------


@pytest.fixture
def static_pool(fake_w3: FakeWeb3) -> StaticAuction:
    fake_w3.respond("slot0()", SLOT0_TYPES, [2 * Q96, 13_860, 0, 1, 1, 0, True])
    fake_w3.respond("liquidity()", ["uint128"], [123_456])
    fake_w3.respond("fee()", ["uint24"], [10_000])
    respond_with_asset_data(fake_w3)
    return StaticAuction(POOL, chain_id=CHAIN_ID, w3=fake_w3, modules=MODULES)


def test_static_pool_info_with_asset_as_token1(static_pool: StaticAuction, fake_w3: FakeWeb3):
    fake_w3.respond("token0()", ["address"], [NUMERAIRE])
    fake_w3.respond("token1()", ["address"], [ASSET])

    info = static_pool.get_pool_info()
    assert info.token_address == ASSET
    assert info.numeraire_address == NUMERAIRE
    assert (info.fee, info.liquidity, info.tick) == (10_000, 123_456, 13_860)
    assert static_pool.get_total_liquidity() == 123_456
    assert not static_pool.has_graduated()


def test_static_current_price(static_pool: StaticAuction, fake_w3: FakeWeb3):
    fake_w3.respond("token0()", ["address"], [NUMERAIRE])
    fake_w3.respond("token1()", ["address"], [ASSET])
    assert static_pool.get_token_address() == ASSET

    # The pool price is token1 per token0, so the asset price in numeraire is its reciprocal
    assert static_pool.get_current_price() == pytest.approx(0.25)


# Dynamic auctions ---------------------------------------------------------------------------------


@pytest.fixture
def dynamic_auction(fake_w3: FakeWeb3) -> DynamicAuction:
    fake_w3.respond("state()", HOOK_STATE_TYPES, [3, -1_200, 10**24, 5 * 10**19, 10**23, 7])
    fake_w3.respond("poolKey()", POOL_KEY_TYPES, [NUMERAIRE, ASSET, 3000, 60, HOOK])
    fake_w3.respond("isToken0()", ["bool"], [False])
    fake_w3.respond("earlyExit()", ["bool"], [False])
    fake_w3.respond("insufficientProceeds()", ["bool"], [False])
    fake_w3.respond("startingTime()", ["uint256"], [1_000_000])
    fake_w3.respond("endingTime()", ["uint256"], [1_000_000 + 7 * 86_400])
    fake_w3.respond("epochLength()", ["uint256"], [43_200])
    fake_w3.respond("minimumProceeds()", ["uint256"], [10**20])
    fake_w3.respond("maximumProceeds()", ["uint256"], [10**21])
    fake_w3.respond("numTokensToSell()", ["uint256"], [9 * 10**26])
    fake_w3.respond("startingTick()", ["int24"], [-100_020])
    fake_w3.respond("endingTick()", ["int24"], [-200_040])
    fake_w3.respond("gamma()", ["int24"], [1_200])
    return DynamicAuction(HOOK, chain_id=CHAIN_ID, w3=fake_w3, modules=MODULES)


def test_dynamic_auction_state(dynamic_auction: DynamicAuction):
    assert dynamic_auction.get_state() == HookState(
        last_epoch=3,
        tick_accumulator=-1_200,
        total_tokens_sold=10**24,
        total_proceeds=5 * 10**19,
        total_tokens_sold_last_epoch=10**23,
        fees_accrued=7,
    )
    assert dynamic_auction.get_total_proceeds() == 5 * 10**19
    assert not dynamic_auction.has_ended_early()


def test_dynamic_auction_hook_info(dynamic_auction: DynamicAuction):
    info = dynamic_auction.get_hook_info()
    assert info.hook_address == HOOK
    assert info.token_address == ASSET
    assert info.numeraire_address == NUMERAIRE
    assert info.pool_id == compute_pool_id(NUMERAIRE, ASSET, 3000, 60, HOOK)
    assert info.pool_id == dynamic_auction.get_pool_id()
    assert info.epoch_length == 43_200
    assert info.num_tokens_to_sell == 9 * 10**26
    assert dynamic_auction.get_token_address() == ASSET


def test_dynamic_auction_graduation(dynamic_auction: DynamicAuction, fake_w3: FakeWeb3):
    respond_with_asset_data(fake_w3, liquidity_migrator=ZERO_ADDRESS)
    assert dynamic_auction.has_graduated()


@pytest.mark.parametrize(
    ("timestamp", "epoch", "tick"),
    [
        (0, 0, -100_020),
        (1_000_000, 0, -100_020),
        (1_000_000 + 43_199, 0, -100_020),
        (1_000_000 + 43_200, 1, -101_220),
        (1_000_000 + 5 * 43_200 + 1, 5, -106_020),
    ],
)
def test_dynamic_auction_epoch_and_tick(
    dynamic_auction: DynamicAuction,
    timestamp: int,
    epoch: int,
    tick: int,
):
    assert dynamic_auction.get_current_epoch(timestamp) == epoch
    assert dynamic_auction.get_current_tick(timestamp) == tick


def test_current_epoch_with_zero_length():
    assert current_epoch(starting_time=0, epoch_length=0, timestamp=100) == 0


# Multicurve pools ---------------------------------------------------------------------------------


def respond_with_multicurve_state(fake_w3: FakeWeb3) -> None:
    fake_w3.respond(
        "getState(address)",
        MULTICURVE_STATE_TYPES,
        [NUMERAIRE, 1, (ASSET, NUMERAIRE, 3000, 60, ZERO_ADDRESS), 887_220],
    )


def test_multicurve_state(fake_w3: FakeWeb3):
    respond_with_multicurve_state(fake_w3)
    pool = MulticurvePool(ASSET, chain_id=CHAIN_ID, w3=fake_w3, modules=MODULES)

    state = pool.get_state()
    assert state.asset == ASSET
    assert state.numeraire == NUMERAIRE
    assert (state.fee, state.tick_spacing, state.status, state.far_tick) == (3000, 60, 1, 887_220)
    assert pool.get_pool_id() == compute_pool_id(ASSET, NUMERAIRE, 3000, 60, ZERO_ADDRESS)
    assert pool.get_token_address() == ASSET
    assert pool.get_numeraire_address() == NUMERAIRE
    assert fake_w3.eth.calls[0]["to"] == MODULES.v4_multicurve_initializer


def test_scheduled_multicurve_uses_scheduled_initializer(fake_w3: FakeWeb3):
    respond_with_multicurve_state(fake_w3)
    pool = ScheduledMulticurvePool(ASSET, chain_id=CHAIN_ID, w3=fake_w3, modules=MODULES)
    assert pool.initializer == MODULES.v4_scheduled_multicurve_initializer
    pool.get_state()
    assert fake_w3.eth.calls[0]["to"] == MODULES.v4_scheduled_multicurve_initializer


def test_multicurve_collect_fees(fake_w3: FakeWeb3):
    respond_with_multicurve_state(fake_w3)
    fake_w3.respond("collectFees(bytes32)", ["uint128", "uint128"], [111, 222])
    pool = MulticurvePool(ASSET, chain_id=CHAIN_ID, w3=fake_w3, modules=MODULES)

    collection = pool.collect_fees(USER)

    assert (collection.fees0, collection.fees1) == (111, 222)
    (sent,) = fake_w3.eth.sent
    assert sent["from"] == USER
    assert sent["to"] == MODULES.v4_multicurve_initializer
    assert bytes(sent["data"])[4:] == bytes(pool.get_pool_id())


def test_multicurve_collect_fees_reverts(fake_w3: FakeWeb3):
    respond_with_multicurve_state(fake_w3)
    fake_w3.revert("collectFees(bytes32)", "execution reverted: NotBeneficiary")
    pool = MulticurvePool(ASSET, chain_id=CHAIN_ID, w3=fake_w3, modules=MODULES)
    with pytest.raises(ExternalCallError, match="NotBeneficiary"):
        pool.collect_fees(USER)
    assert fake_w3.eth.sent == []


# Lockable pools -----------------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("status", "locked"),
    [
        (LockablePoolStatus.INITIALIZED, False),
        (LockablePoolStatus.LOCKED, True),
        (LockablePoolStatus.EXITED, False),
    ],
)
def test_lockable_pool_state(fake_w3: FakeWeb3, status: LockablePoolStatus, locked: bool):
    fake_w3.respond(
        "getState(address)",
        LOCKABLE_STATE_TYPES,
        [ASSET, NUMERAIRE, 175_000, 225_000, WAD // 4, 10**26, status.value],
    )
    pool = LockableV3Pool(POOL, chain_id=CHAIN_ID, w3=fake_w3, modules=MODULES)

    state = pool.get_state()
    assert state.asset == ASSET
    assert (state.tick_lower, state.tick_upper) == (175_000, 225_000)
    assert state.status is status
    assert pool.is_locked() is locked
    assert fake_w3.eth.calls[0]["to"] == MODULES.lockable_v3_initializer
