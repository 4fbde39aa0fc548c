import time
from typing import Any, Self

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.types import TxParams

from doppler_sdk.auctions.airlock import get_airlock_owner
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.config import settings
from doppler_sdk.connection import connection_manager
from doppler_sdk.constants import DAY_SECONDS, NO_OP_ENABLED_CHAIN_IDS, TICK_SPACINGS
from doppler_sdk.deployments import resolve_module_address
from doppler_sdk.exceptions import ExternalCallError, InvalidConfiguration, MiningError
from doppler_sdk.factory.encoders import (
    encode_dynamic_pool_data,
    encode_governance_data,
    encode_lockable_static_pool_data,
    encode_migration_data,
    encode_multicurve_pool_data,
    encode_static_pool_data,
    encode_token_factory_data,
    sort_beneficiaries,
    validate_auction_tick_range,
    validate_beneficiaries,
    validate_sale,
    validate_tick_range,
    validate_token,
    validate_vesting,
)
from doppler_sdk.functions import (
    encode_function_calldata,
    generate_default_salt,
    is_token0_expected,
    raw_call,
)
from doppler_sdk.libraries.gamma import compute_optimal_gamma
from doppler_sdk.logging import logger
from doppler_sdk.mining import (
    compute_hook_init_code_hash,
    compute_token_init_code_hash,
    mine_hook_salt,
)
from doppler_sdk.mining.token_miner import TokenVariant
from doppler_sdk.types import (
    BeneficiaryShare,
    CreateResult,
    CustomMigration,
    Doppler404TokenConfig,
    DynamicAuctionParams,
    EncodedCreateParams,
    EncodedDynamicCreateParams,
    GovernanceConfig,
    MigrationConfig,
    MigrationEncoder,
    ModuleAddressOverrides,
    MulticurveParams,
    NoOpGovernance,
    NoOpMigration,
    SimulationResult,
    StaticAuctionParams,
    TokenConfig,
    UniswapV2Migration,
    UniswapV3Migration,
    UniswapV4Migration,
)

AIRLOCK_CREATE_PROTOTYPE = (
    "create((uint256,uint256,address,address,bytes,address,bytes,address,bytes,address,bytes,"
    "address,bytes32))"
)
AIRLOCK_CREATE_RETURN_TYPES = [
    "address",  # asset
    "address",  # pool or hook
    "address",  # governance
    "address",  # timelock
    "address",  # migration pool
]


class DopplerFactory:
    """
    Encodes, simulates, and submits `Airlock.create` calls for one chain.

    Read and write calls go through the supplied `Web3` client, or the client registered for the
    chain with the connection manager. Encoding never touches the network unless the protocol
    owner or the latest block timestamp must be fetched.
    """

    def __init__(
        self,
        chain_id: int,
        w3: Web3 | None = None,
        *,
        protocol_owner: str | None = None,
        custom_migration_encoder: MigrationEncoder | None = None,
    ) -> None:
        self.chain_id = chain_id
        self._w3 = w3
        self.protocol_owner = (
            get_checksum_address(protocol_owner) if protocol_owner is not None else None
        )
        self.custom_migration_encoder = custom_migration_encoder

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain_id={self.chain_id})"

    @property
    def w3(self) -> Web3:
        if self._w3 is not None:
            return self._w3
        return connection_manager.get_web3(self.chain_id)

    def with_custom_migration_encoder(self, encoder: MigrationEncoder) -> Self:
        self.custom_migration_encoder = encoder
        return self

    def _resolve(self, role: str, modules: ModuleAddressOverrides | None) -> ChecksumAddress:
        address = resolve_module_address(role, self.chain_id, modules)
        logger.debug(f"Resolved {role} to {address} on chain {self.chain_id}")
        return address

    def resolve_protocol_owner(
        self,
        modules: ModuleAddressOverrides | None = None,
    ) -> ChecksumAddress:
        """
        Return the protocol owner, read from the airlock if it was not given to the factory.
        """

        if self.protocol_owner is None:
            self.protocol_owner = get_airlock_owner(self.w3, self.chain_id, modules)
        return self.protocol_owner

    def _validated_beneficiaries(
        self,
        beneficiaries: tuple[BeneficiaryShare, ...],
        modules: ModuleAddressOverrides,
    ) -> tuple[BeneficiaryShare, ...]:
        sorted_beneficiaries = sort_beneficiaries(beneficiaries)
        validate_beneficiaries(sorted_beneficiaries, self.resolve_protocol_owner(modules))
        return sorted_beneficiaries

    def _block_timestamp(self, block_timestamp: int | None) -> int:
        if block_timestamp is not None:
            return block_timestamp

        w3 = self._w3 or connection_manager.connections.get(self.chain_id)
        if w3 is None:
            return int(time.time())

        try:
            return int(w3.eth.get_block("latest")["timestamp"])
        except Web3Exception as exc:
            raise ExternalCallError(operation="get_block(latest)", error=str(exc)) from exc

    # Payload sections ---------------------------------------------------------------------------

    def encode_migration_data(self, migration: MigrationConfig) -> bytes:
        return encode_migration_data(migration, self.custom_migration_encoder)

    def _migration(
        self,
        migration: MigrationConfig,
        modules: ModuleAddressOverrides,
        *,
        force_no_op: bool = False,
    ) -> tuple[ChecksumAddress, bytes]:
        if force_no_op and not isinstance(migration, NoOpMigration):
            logger.warning(
                f"Lockable beneficiaries are configured; replacing the requested "
                f"{type(migration).__name__} with the NoOp migrator."
            )
            migration = NoOpMigration()

        match migration:
            case UniswapV2Migration():
                migrator = self._resolve("v2_migrator", modules)
            case UniswapV3Migration():
                migrator = self._resolve("v3_migrator", modules)
            case UniswapV4Migration():
                migrator = self._resolve("v4_migrator", modules)
                self._validated_beneficiaries(migration.beneficiaries, modules)
            case NoOpMigration():
                migrator = self._resolve("no_op_migrator", modules)
            case CustomMigration():
                migrator = migration.migrator
            case _:
                raise InvalidConfiguration(message=f"Unknown migration configuration {migration!r}")

        return migrator, self.encode_migration_data(migration)

    def _governance(
        self,
        governance: GovernanceConfig,
        token_name: str,
        modules: ModuleAddressOverrides,
        defaults: str,
    ) -> tuple[ChecksumAddress, bytes]:
        if isinstance(governance, NoOpGovernance):
            if self.chain_id not in NO_OP_ENABLED_CHAIN_IDS:
                raise InvalidConfiguration(
                    message=f"NoOp governance is not available on chain {self.chain_id}"
                )
            return self._resolve("no_op_governance_factory", modules), b""

        return (
            self._resolve("governance_factory", modules),
            encode_governance_data(governance, token_name, defaults),
        )

    def _token_factory(
        self,
        token: TokenConfig,
        modules: ModuleAddressOverrides,
    ) -> tuple[ChecksumAddress, TokenVariant]:
        if isinstance(token, Doppler404TokenConfig):
            return self._resolve("doppler404_factory", modules), "doppler404"
        return self._resolve("token_factory", modules), "standard"

    # Encoding -----------------------------------------------------------------------------------

    def encode_create_static_auction_params(
        self,
        params: StaticAuctionParams,
        *,
        salt: bytes | None = None,
    ) -> EncodedCreateParams:
        """
        Validate and encode a static (Uniswap V3) auction. Beneficiaries on the pool select the
        lockable initializer and force the NoOp migrator.
        """

        validate_token(params.token)
        validate_sale(params.sale)
        try:
            tick_spacing = TICK_SPACINGS[params.pool.fee]
        except KeyError:
            raise InvalidConfiguration(
                message=f"No standard tick spacing for fee {params.pool.fee}"
            ) from None
        validate_tick_range(params.pool.start_tick, params.pool.end_tick, tick_spacing)
        validate_vesting(params.vesting, params.sale)

        modules = params.modules
        beneficiaries = params.pool.beneficiaries
        lockable = bool(beneficiaries)
        if beneficiaries:
            self._validated_beneficiaries(beneficiaries, modules)
            pool_initializer = self._resolve("lockable_v3_initializer", modules)
            pool_initializer_data = encode_lockable_static_pool_data(params.pool)
        else:
            pool_initializer = self._resolve("v3_initializer", modules)
            pool_initializer_data = encode_static_pool_data(params.pool)

        token_factory, _ = self._token_factory(params.token, modules)
        governance_factory, governance_factory_data = self._governance(
            params.governance, params.token.name, modules, "v3"
        )
        liquidity_migrator, liquidity_migrator_data = self._migration(
            params.migration, modules, force_no_op=lockable
        )

        return EncodedCreateParams(
            initial_supply=params.sale.initial_supply,
            num_tokens_to_sell=params.sale.num_tokens_to_sell,
            numeraire=params.sale.numeraire,
            token_factory=token_factory,
            token_factory_data=encode_token_factory_data(
                params.token, params.sale, params.user_address, params.vesting
            ),
            governance_factory=governance_factory,
            governance_factory_data=governance_factory_data,
            pool_initializer=pool_initializer,
            pool_initializer_data=pool_initializer_data,
            liquidity_migrator=liquidity_migrator,
            liquidity_migrator_data=liquidity_migrator_data,
            integrator=params.integrator,
            salt=HexBytes(salt) if salt is not None else generate_default_salt(params.user_address),
        )

    def encode_create_dynamic_auction_params(
        self,
        params: DynamicAuctionParams,
        *,
        max_iterations: int | None = None,
    ) -> EncodedDynamicCreateParams:
        """
        Validate and encode a dynamic (Uniswap V4 Doppler hook) auction.

        The salt is mined so the hook address carries the Doppler permission flags and the token
        sorts on the expected side of the numeraire.
        """

        auction = params.auction
        pool = params.pool
        sale = params.sale
        modules = params.modules

        validate_token(params.token)
        validate_sale(sale)
        validate_vesting(params.vesting, sale)
        if auction.duration_days <= 0:
            raise InvalidConfiguration(message="Auction duration must be positive")
        if auction.epoch_length <= 0:
            raise InvalidConfiguration(message="Epoch length must be positive")
        if pool.tick_spacing <= 0:
            raise InvalidConfiguration(message="Tick spacing must be positive")

        is_token0 = is_token0_expected(sale.numeraire)
        validate_auction_tick_range(
            auction.start_tick, auction.end_tick, pool.tick_spacing, is_token0=is_token0
        )

        duration = auction.duration_days * DAY_SECONDS
        if duration % auction.epoch_length != 0:
            raise InvalidConfiguration(message="Epoch length must divide total duration evenly")

        if auction.gamma is None:
            gamma = compute_optimal_gamma(
                auction.start_tick,
                auction.end_tick,
                duration,
                auction.epoch_length,
                pool.tick_spacing,
            )
        else:
            gamma = auction.gamma
        if gamma % pool.tick_spacing != 0:
            raise InvalidConfiguration(message="Gamma must be divisible by tick spacing")

        starting_time = self._block_timestamp(params.block_timestamp) + params.start_time_offset
        ending_time = starting_time + duration

        airlock = self._resolve("airlock", modules)
        pool_initializer = self._resolve("v4_initializer", modules)
        token_factory, token_variant = self._token_factory(params.token, modules)
        token_factory_data = encode_token_factory_data(
            params.token, sale, params.user_address, params.vesting
        )

        pool_initializer_data = encode_dynamic_pool_data(
            auction,
            pool,
            gamma=gamma,
            starting_time=starting_time,
            ending_time=ending_time,
            is_token0=is_token0,
        )

        mined = mine_hook_salt(
            token_factory=token_factory,
            token_init_code_hash=compute_token_init_code_hash(
                token_factory_data,
                sale.initial_supply,
                airlock,
                airlock,
                token_variant=token_variant,
            ),
            hook_deployer=self._resolve("doppler_deployer", modules),
            hook_init_code_hash=compute_hook_init_code_hash(
                pool_manager=self._resolve("pool_manager", modules),
                num_tokens_to_sell=sale.num_tokens_to_sell,
                min_proceeds=auction.min_proceeds,
                max_proceeds=auction.max_proceeds,
                starting_time=starting_time,
                ending_time=ending_time,
                start_tick=auction.start_tick,
                end_tick=auction.end_tick,
                epoch_length=auction.epoch_length,
                gamma=gamma,
                is_token0=is_token0,
                num_pd_slugs=auction.num_pd_slugs,
                pool_initializer=pool_initializer,
                fee=pool.fee,
            ),
            numeraire=sale.numeraire,
            is_token0=is_token0,
            max_iterations=max_iterations,
        )
        if mined.hook_address is None:
            raise MiningError(message="Hook salt search did not produce a hook address")

        governance_factory, governance_factory_data = self._governance(
            params.governance, params.token.name, modules, "v4"
        )
        liquidity_migrator, liquidity_migrator_data = self._migration(params.migration, modules)

        return EncodedDynamicCreateParams(
            create_params=EncodedCreateParams(
                initial_supply=sale.initial_supply,
                num_tokens_to_sell=sale.num_tokens_to_sell,
                numeraire=sale.numeraire,
                token_factory=token_factory,
                token_factory_data=token_factory_data,
                governance_factory=governance_factory,
                governance_factory_data=governance_factory_data,
                pool_initializer=pool_initializer,
                pool_initializer_data=pool_initializer_data,
                liquidity_migrator=liquidity_migrator,
                liquidity_migrator_data=liquidity_migrator_data,
                integrator=params.integrator,
                salt=mined.salt,
            ),
            hook_address=mined.hook_address,
            token_address=mined.token_address,
        )

    def encode_create_multicurve_params(
        self,
        params: MulticurveParams,
        *,
        salt: bytes | None = None,
    ) -> EncodedCreateParams:
        """
        Validate and encode a multicurve (Uniswap V4) pool. A start time routes the call to the
        scheduled initializer. Beneficiaries force the NoOp migrator.
        """

        validate_token(params.token)
        validate_sale(params.sale)
        validate_vesting(params.vesting, params.sale)

        modules = params.modules
        beneficiaries = params.pool.beneficiaries
        lockable = bool(beneficiaries)
        if beneficiaries:
            self._validated_beneficiaries(beneficiaries, modules)

        if params.start_time is None:
            pool_initializer = self._resolve("v4_multicurve_initializer", modules)
        else:
            pool_initializer = self._resolve("v4_scheduled_multicurve_initializer", modules)

        token_factory, _ = self._token_factory(params.token, modules)
        governance_factory, governance_factory_data = self._governance(
            params.governance, params.token.name, modules, "v4"
        )
        liquidity_migrator, liquidity_migrator_data = self._migration(
            params.migration, modules, force_no_op=lockable
        )

        return EncodedCreateParams(
            initial_supply=params.sale.initial_supply,
            num_tokens_to_sell=params.sale.num_tokens_to_sell,
            numeraire=params.sale.numeraire,
            token_factory=token_factory,
            token_factory_data=encode_token_factory_data(
                params.token, params.sale, params.user_address, params.vesting
            ),
            governance_factory=governance_factory,
            governance_factory_data=governance_factory_data,
            pool_initializer=pool_initializer,
            pool_initializer_data=encode_multicurve_pool_data(params.pool, params.start_time),
            liquidity_migrator=liquidity_migrator,
            liquidity_migrator_data=liquidity_migrator_data,
            integrator=params.integrator,
            salt=HexBytes(salt) if salt is not None else generate_default_salt(params.user_address),
        )

    # Simulation and submission ------------------------------------------------------------------

    def _create_transaction(
        self,
        create_params: EncodedCreateParams,
        user_address: ChecksumAddress,
        modules: ModuleAddressOverrides,
    ) -> TxParams:
        calldata = encode_function_calldata(
            function_prototype=AIRLOCK_CREATE_PROTOTYPE,
            function_arguments=[create_params.as_tuple()],
        )
        logger.debug(f"Encoded Airlock.create calldata ({len(calldata)} bytes)")
        return TxParams(
            {
                "from": user_address,
                "to": self._resolve("airlock", modules),
                "data": HexBytes(calldata),
            }
        )

    def _simulate(self, transaction: TxParams) -> SimulationResult:
        w3 = self.w3
        asset, pool, governance, timelock, migration_pool = raw_call(
            w3=w3,
            address=transaction["to"],  # type: ignore[arg-type]
            calldata=bytes(transaction["data"]),  # type: ignore[arg-type]
            return_types=AIRLOCK_CREATE_RETURN_TYPES,
            from_address=transaction["from"],  # type: ignore[arg-type]
        )
        try:
            gas_estimate = w3.eth.estimate_gas(transaction)
        except Web3Exception as exc:
            raise ExternalCallError(
                operation="Airlock.create gas estimate", error=str(exc)
            ) from exc

        return SimulationResult(
            asset_address=get_checksum_address(asset),
            pool_address=get_checksum_address(pool),
            governance_address=get_checksum_address(governance),
            timelock_address=get_checksum_address(timelock),
            migration_pool_address=get_checksum_address(migration_pool),
            gas_estimate=gas_estimate,
        )

    def _submit(self, transaction: TxParams, gas: int | None) -> CreateResult:
        simulation = self._simulate(transaction)

        w3 = self.w3
        transaction["gas"] = gas if gas is not None else settings.transactions.create_gas_limit
        try:
            transaction_hash = HexBytes(w3.eth.send_transaction(transaction))
            receipt: Any = w3.eth.wait_for_transaction_receipt(transaction_hash)
        except Web3Exception as exc:
            raise ExternalCallError(operation="Airlock.create", error=str(exc)) from exc

        if receipt["status"] != 1:
            raise ExternalCallError(
                operation="Airlock.create",
                error=f"transaction {transaction_hash.to_0x_hex()} reverted",
            )

        logger.info(
            f"Created asset {simulation.asset_address} with pool {simulation.pool_address} "
            f"in transaction {transaction_hash.to_0x_hex()}"
        )
        return CreateResult(
            token_address=simulation.asset_address,
            pool_address=simulation.pool_address,
            transaction_hash=transaction_hash,
            gas_used=receipt.get("gasUsed"),
        )

    def simulate_create_static_auction(self, params: StaticAuctionParams) -> SimulationResult:
        return self._simulate(
            self._create_transaction(
                self.encode_create_static_auction_params(params),
                params.user_address,
                params.modules,
            )
        )

    def simulate_create_dynamic_auction(
        self,
        params: DynamicAuctionParams,
        *,
        max_iterations: int | None = None,
    ) -> SimulationResult:
        encoded = self.encode_create_dynamic_auction_params(params, max_iterations=max_iterations)
        return self._simulate(
            self._create_transaction(encoded.create_params, params.user_address, params.modules)
        )

    def simulate_create_multicurve(self, params: MulticurveParams) -> SimulationResult:
        return self._simulate(
            self._create_transaction(
                self.encode_create_multicurve_params(params),
                params.user_address,
                params.modules,
            )
        )

    def create_static_auction(self, params: StaticAuctionParams) -> CreateResult:
        return self._submit(
            self._create_transaction(
                self.encode_create_static_auction_params(params),
                params.user_address,
                params.modules,
            ),
            params.gas,
        )

    def create_dynamic_auction(
        self,
        params: DynamicAuctionParams,
        *,
        max_iterations: int | None = None,
    ) -> CreateResult:
        encoded = self.encode_create_dynamic_auction_params(params, max_iterations=max_iterations)
        return self._submit(
            self._create_transaction(encoded.create_params, params.user_address, params.modules),
            params.gas,
        )

    def create_multicurve(self, params: MulticurveParams) -> CreateResult:
        return self._submit(
            self._create_transaction(
                self.encode_create_multicurve_params(params),
                params.user_address,
                params.modules,
            ),
            params.gas,
        )
