import dataclasses
from dataclasses import dataclass

from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.config import settings
from doppler_sdk.constants import ZERO_ADDRESS, ChainIds
from doppler_sdk.exceptions import (
    DopplerValueError,
    MissingBytecode,
    MissingModuleAddress,
    UnsupportedChain,
)
from doppler_sdk.logging import logger
from doppler_sdk.types import ModuleAddressOverrides


@dataclass(slots=True, frozen=True, kw_only=True)
class ChainAddresses:
    """
    Deployed contract addresses for one chain. Modules that are not deployed are `None`.
    """

    chain_id: int
    airlock: ChecksumAddress | None = None
    token_factory: ChecksumAddress | None = None
    v3_initializer: ChecksumAddress | None = None
    v3_quoter: ChecksumAddress | None = None
    lockable_v3_initializer: ChecksumAddress | None = None
    v4_initializer: ChecksumAddress | None = None
    v4_multicurve_initializer: ChecksumAddress | None = None
    v4_scheduled_multicurve_initializer: ChecksumAddress | None = None
    doppler_lens: ChecksumAddress | None = None
    doppler_deployer: ChecksumAddress | None = None
    pool_manager: ChecksumAddress | None = None
    doppler404_factory: ChecksumAddress | None = None
    v2_migrator: ChecksumAddress | None = None
    v3_migrator: ChecksumAddress | None = None
    v4_migrator: ChecksumAddress | None = None
    v4_migrator_hook: ChecksumAddress | None = None
    no_op_migrator: ChecksumAddress | None = None
    governance_factory: ChecksumAddress | None = None
    no_op_governance_factory: ChecksumAddress | None = None
    streamable_fees_locker: ChecksumAddress | None = None
    universal_router: ChecksumAddress | None = None
    univ2_router02: ChecksumAddress | None = None
    permit2: ChecksumAddress | None = None
    bundler: ChecksumAddress | None = None
    weth: ChecksumAddress | None = None
    uniswap_v4_quoter: ChecksumAddress | None = None


MODULE_ROLES: tuple[str, ...] = tuple(
    field.name for field in dataclasses.fields(ChainAddresses) if field.name != "chain_id"
)


def _chain_addresses(chain_id: int, **addresses: str) -> ChainAddresses:
    # The zero address marks a module that is not yet deployed
    return ChainAddresses(
        chain_id=chain_id,
        **{
            role: checksummed
            for role, address in addresses.items()
            if (checksummed := get_checksum_address(address)) != ZERO_ADDRESS
        },
    )


PERMIT2 = "0x000000000022D473030F116dDEE9F6B43aC78BA3"
OP_STACK_WETH = "0x4200000000000000000000000000000000000006"


CHAIN_ADDRESSES: dict[int, ChainAddresses] = {
    ChainIds.MAINNET: _chain_addresses(
        ChainIds.MAINNET,
        permit2=PERMIT2,
        weth="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        uniswap_v4_quoter="0x52f0e24d1c21c8a0cb1e5a5dd6198556bd9e1203",
    ),
    ChainIds.BASE: _chain_addresses(
        ChainIds.BASE,
        token_factory="0xFAafdE6a5b658684cC5eb0C5c2c755B00A246F45",
        v3_quoter="0x3d4e44Eb1374240CE5F1B871ab261CD16335B76a",
        pool_manager="0x498581ff718922c3f8e6a244956af099b2652b2b",
        governance_factory="0xb4deE32EB70A5E55f3D2d861F49Fb3D79f7a14d9",
        no_op_governance_factory="0xe7dfbd5b0a2c3b4464653a9becdc489229ef090e",
        universal_router="0x6ff5693b99212da76ad316178a184ab56d299b43",
        univ2_router02="0x4752ba5dbc23f44d87826276bf6fd6b1c372ad24",
        permit2=PERMIT2,
        weth=OP_STACK_WETH,
        uniswap_v4_quoter="0x0d5e0f971ed27fbff6c2837bf31316121532048d",
    ),
    ChainIds.BASE_SEPOLIA: _chain_addresses(
        ChainIds.BASE_SEPOLIA,
        token_factory="0xc69ba223c617f7d936b3cf2012aa644815dbe9ff",
        doppler404_factory="0xdd8cea2890f1b3498436f19ec8da8fecc2cb7af7",
        v3_quoter="0xC5290058841028F1614F3A6F0F5816cAd0df5E27",
        v4_initializer="0x8e891d249f1ecbffa6143c03eb1b12843aef09d3",
        v4_multicurve_initializer="0x359b5952a254baaa0105381825daedb8986bb55c",
        doppler_deployer="0x60a039e4add40ca95e0475c11e8a4182d06c9aa0",
        pool_manager="0x05E73354cFDd6745C338b50BcFDfA3Aa6fA03408",
        v3_migrator="0xb2ec6559704467306d04322a5dc082b2af4562dd",
        v4_migrator="0xb2ec6559704467306d04322a5dc082b2af4562dd",
        v4_migrator_hook="0x508812fcdd4972a59b66eb2cad3772279c052000",
        no_op_governance_factory="0x916b8987e4ad325c10d58ed8dc2036a6ff5eb228",
        streamable_fees_locker="0x4da7d7a8034510c0ffd38a9252237ae8dba3cb61",
        universal_router="0x492E6456D9528771018DeB9E87ef7750EF184104",
        univ2_router02="0x1689E7B1F10000AE47eBfE339a4f69dECd19F602",
        permit2=PERMIT2,
        bundler="0x69DB7c20cDdA49Bed2bFb21e16Fa218330C50661",
        weth=OP_STACK_WETH,
        uniswap_v4_quoter="0x4A6513c898fe1B2d0E78d3b0e0A4a151589B1cBa",
    ),
    ChainIds.INK: _chain_addresses(
        ChainIds.INK,
        airlock="0x014E1c0bd34f3B10546E554CB33B3293fECDD056",
        v3_quoter="0x96b572D2d880cf2Fa2563651BD23ADE6f5516652",
        v4_initializer="0xC99b485499f78995C6F1640dbB1413c57f8BA684",
        doppler_lens="0x3972c00f7ed4885e145823eb7c655375d275a1c5",
        pool_manager="0x360e68faccca8ca495c1b759fd9eee466db9fb32",
        universal_router="0x112908dac86e20e7241b0927479ea3bf935d1fa0",
        univ2_router02="0xB3FB126ACDd5AdCA2f50Ac644a7a2303745f18b4",
        permit2=PERMIT2,
        weth=OP_STACK_WETH,
        uniswap_v4_quoter="0x3972c00f7ed4885e145823eb7c655375d275a1c5",
    ),
    ChainIds.UNICHAIN: _chain_addresses(
        ChainIds.UNICHAIN,
        v3_quoter="0x385A5cf5F83e99f7BB2852b6A19C3538b9FA7658",
        v4_initializer="0x2F2BAcd46d3F5c9EE052Ab392b73711dB89129DB",
        doppler_lens="0x333e3c607b141b18ff6de9f258db6e77fe7491e0",
        doppler_deployer="0x06FEFD02F0b6d9f57F52cfacFc113665Dfa20F0f",
        pool_manager="0x1f98400000000000000000000000000000000004",
        universal_router="0xef740bf23acae26f6492b10de645d6b98dc8eaf3",
        univ2_router02="0x284f11109359a7e1306c3e447ef14d38400063ff",
        permit2=PERMIT2,
        weth=OP_STACK_WETH,
        uniswap_v4_quoter="0x333e3c607b141b18ff6de9f258db6e77fe7491e0",
    ),
    ChainIds.UNICHAIN_SEPOLIA: _chain_addresses(
        ChainIds.UNICHAIN_SEPOLIA,
        airlock="0x651ab94B4777e2e4cdf96082d90C65bd947b73A4",
        token_factory="0xC5E5a19a2ee32831Fcb8a81546979AF43936EbaA",
        v3_initializer="0x7Fb9a622186B4660A5988C223ebb9d3690dD5007",
        v3_quoter="0x6Dd37329A1A225a6Fca658265D460423DCafBF89",
        v4_initializer="0x992375478626E67F4e639d3298EbCAaE51C3dF0b",
        doppler_lens="0x56dcd40a3f2d466f48e7f48bdbe5cc9b92ae4472",
        doppler_deployer="0x2f2bacd46d3f5c9ee052ab392b73711db89129db",
        pool_manager="0x00B036B58a818B1BC34d502D3fE730Db729e62AC",
        v2_migrator="0x44C448E38A2C3D206c9132E7f645510dFbBC946b",
        v3_migrator="0x44C448E38A2C3D206c9132E7f645510dFbBC946b",
        v4_migrator="0x44C448E38A2C3D206c9132E7f645510dFbBC946b",
        governance_factory="0x1E4332EEfAE9e4967C2D186f7b2d439D778e81cC",
        universal_router="0xf70536B3bcC1bD1a972dc186A2cf84cC6da6Be5D",
        univ2_router02="0x284f11109359a7e1306c3e447ef14d38400063ff",
        permit2=PERMIT2,
        bundler="0x63f8C8F9beFaab2FaCD7Ece0b0242f78B920Ee90",
        weth=OP_STACK_WETH,
        uniswap_v4_quoter="0x56dcd40a3f2d466f48e7f48bdbe5cc9b92ae4472",
    ),
    ChainIds.MONAD_TESTNET: _chain_addresses(
        ChainIds.MONAD_TESTNET,
        pool_manager="0xe93882f395B0b24180855c68Ab19B2d78573ceBc",
        v4_migrator="0xBEd386a1Fc62B6598c9b8d2BF634471B6Fe75EB7",
        streamable_fees_locker="0x91231cDdD8d6C86Df602070a3081478e074b97b7",
        permit2=PERMIT2,
    ),
}


def get_addresses(chain_id: int) -> ChainAddresses:
    try:
        return CHAIN_ADDRESSES[chain_id]
    except KeyError:
        raise UnsupportedChain(chain_id=chain_id) from None


def register_chain_addresses(addresses: ChainAddresses) -> None:
    """
    Add deployed module addresses for a chain. Roles already known for the chain are replaced by
    the non-empty values of `addresses`.
    """

    if (existing := CHAIN_ADDRESSES.get(addresses.chain_id)) is None:
        CHAIN_ADDRESSES[addresses.chain_id] = addresses
        return

    CHAIN_ADDRESSES[addresses.chain_id] = dataclasses.replace(
        existing,
        **{
            role: address
            for role in MODULE_ROLES
            if (address := getattr(addresses, role)) is not None
        },
    )


def resolve_module_address(
    role: str,
    chain_id: int,
    overrides: ModuleAddressOverrides | None = None,
) -> ChecksumAddress:
    """
    Resolve the contract address for a module role. The call-site override wins, followed by the
    configured override for the chain, then the built-in registry.
    """

    if role not in MODULE_ROLES:
        raise DopplerValueError(message=f"Unknown module role {role!r}")

    if overrides is not None and (address := overrides.get(role)) is not None:
        logger.debug(f"Using call-site override for {role} on chain {chain_id}: {address}")
        return address

    if (address := settings.module_overrides.get(chain_id, {}).get(role)) is not None:
        logger.debug(f"Using configured override for {role} on chain {chain_id}: {address}")
        return get_checksum_address(address)

    if (chain_id in CHAIN_ADDRESSES) and (
        address := getattr(CHAIN_ADDRESSES[chain_id], role)
    ) is not None:
        return address

    raise MissingModuleAddress(role=role, chain_id=chain_id)


# Contract creation bytecode, keyed by contract name
BYTECODES: dict[str, HexBytes] = {}

DERC20 = "DERC20"
DN404 = "DN404"
DOPPLER_HOOK = "Doppler"


def register_bytecode(name: str, bytecode: str | bytes) -> None:
    if name in BYTECODES:
        raise DopplerValueError(message=f"Bytecode for {name!r} is already registered.")
    BYTECODES[name] = HexBytes(bytecode)


def get_bytecode(name: str) -> HexBytes:
    try:
        return BYTECODES[name]
    except KeyError:
        raise MissingBytecode(name=name) from None
