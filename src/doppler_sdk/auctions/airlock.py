from eth_typing import ChecksumAddress
from web3 import Web3

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.constants import WAD, ZERO_ADDRESS
from doppler_sdk.deployments import resolve_module_address
from doppler_sdk.functions import encode_function_calldata, raw_call
from doppler_sdk.logging import logger
from doppler_sdk.types import AssetData, BeneficiaryShare, ModuleAddressOverrides

AIRLOCK_OWNER_SHARES = WAD // 20

ASSET_DATA_TYPES = [
    "address",  # numeraire
    "address",  # timelock
    "address",  # governance
    "address",  # liquidity migrator
    "address",  # pool initializer
    "address",  # pool
    "address",  # migration pool
    "uint256",  # tokens to sell
    "uint256",  # total supply
    "address",  # integrator
]


def get_airlock_owner(
    w3: Web3,
    chain_id: int,
    overrides: ModuleAddressOverrides | None = None,
) -> ChecksumAddress:
    airlock = resolve_module_address("airlock", chain_id, overrides)
    (owner,) = raw_call(
        w3=w3,
        address=airlock,
        calldata=encode_function_calldata(
            function_prototype="owner()",
            function_arguments=None,
        ),
        return_types=["address"],
    )
    logger.debug(f"Airlock {airlock} owner: {owner}")
    return get_checksum_address(owner)


def create_airlock_beneficiary(
    owner: str,
    shares: int = AIRLOCK_OWNER_SHARES,
) -> BeneficiaryShare:
    """
    Build the beneficiary entry reserving the protocol owner's share of locked fees, 5% by default.
    """

    return BeneficiaryShare(beneficiary=owner, shares=shares)


def get_airlock_beneficiary(
    w3: Web3,
    chain_id: int,
    shares: int = AIRLOCK_OWNER_SHARES,
    overrides: ModuleAddressOverrides | None = None,
) -> BeneficiaryShare:
    return create_airlock_beneficiary(get_airlock_owner(w3, chain_id, overrides), shares)


def get_asset_data(
    w3: Web3,
    chain_id: int,
    asset: str,
    overrides: ModuleAddressOverrides | None = None,
) -> AssetData:
    airlock = resolve_module_address("airlock", chain_id, overrides)
    (
        numeraire,
        timelock,
        governance,
        liquidity_migrator,
        pool_initializer,
        pool,
        migration_pool,
        num_tokens_to_sell,
        total_supply,
        integrator,
    ) = raw_call(
        w3=w3,
        address=airlock,
        calldata=encode_function_calldata(
            function_prototype="getAssetData(address)",
            function_arguments=[get_checksum_address(asset)],
        ),
        return_types=ASSET_DATA_TYPES,
    )
    return AssetData(
        numeraire=get_checksum_address(numeraire),
        timelock=get_checksum_address(timelock),
        governance=get_checksum_address(governance),
        liquidity_migrator=get_checksum_address(liquidity_migrator),
        pool_initializer=get_checksum_address(pool_initializer),
        pool=get_checksum_address(pool),
        migration_pool=get_checksum_address(migration_pool),
        num_tokens_to_sell=num_tokens_to_sell,
        total_supply=total_supply,
        integrator=get_checksum_address(integrator),
    )


def has_graduated(asset_data: AssetData) -> bool:
    """
    The airlock clears the liquidity migrator once an asset's liquidity has been migrated.
    """

    return asset_data.liquidity_migrator == ZERO_ADDRESS
