import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Self

import pydantic
from eth_typing import ChecksumAddress

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.constants import (
    DEFAULT_DOPPLER404_UNIT,
    DEFAULT_LOCK_DURATION,
    DEFAULT_V4_YEARLY_MINT_RATE,
    NO_OP_ENABLED_CHAIN_IDS,
    ZERO_ADDRESS,
)
from doppler_sdk.exceptions import InvalidConfiguration, MissingConfiguration
from doppler_sdk.factory.encoders import sort_beneficiaries
from doppler_sdk.types import (
    BeneficiaryShare,
    CustomGovernance,
    CustomMigration,
    DefaultGovernance,
    Doppler404TokenConfig,
    GovernanceConfig,
    MigrationConfig,
    ModuleAddressOverrides,
    NoOpGovernance,
    NoOpMigration,
    SaleConfig,
    StandardTokenConfig,
    TokenConfig,
    UniswapV2Migration,
    UniswapV3Migration,
    UniswapV4Migration,
    VestingConfig,
)

type BeneficiaryInput = BeneficiaryShare | tuple[str, int] | Mapping[str, Any]

MIGRATION_TYPES = (
    UniswapV2Migration,
    UniswapV3Migration,
    UniswapV4Migration,
    NoOpMigration,
    CustomMigration,
)


def to_beneficiary_shares(
    beneficiaries: Iterable[BeneficiaryInput],
) -> tuple[BeneficiaryShare, ...]:
    """
    Convert beneficiary entries to `BeneficiaryShare` objects sorted by ascending address. Entries
    may be `BeneficiaryShare` instances, (address, shares) pairs, or mappings with `beneficiary`
    and `shares` keys.
    """

    shares: list[BeneficiaryShare] = []
    try:
        for beneficiary in beneficiaries:
            match beneficiary:
                case BeneficiaryShare():
                    shares.append(beneficiary)
                case (address, amount):
                    shares.append(BeneficiaryShare(beneficiary=address, shares=amount))
                case Mapping():
                    shares.append(BeneficiaryShare.model_validate(beneficiary))
                case _:
                    raise InvalidConfiguration(message=f"Invalid beneficiary {beneficiary!r}")
    except (pydantic.ValidationError, ValueError) as exc:
        raise InvalidConfiguration(message=f"Invalid beneficiary: {exc}") from exc
    return sort_beneficiaries(shares)


def migration_from_kind(kind: str, **options: Any) -> MigrationConfig:
    """
    Build a migration configuration from its tag: "uniswapV2", "uniswapV3", "uniswapV4", "noOp",
    or "custom".
    """

    try:
        match kind:
            case "uniswapV2":
                return UniswapV2Migration(**options)
            case "uniswapV3":
                return UniswapV3Migration(**options)
            case "uniswapV4":
                return UniswapV4Migration(
                    fee=options["fee"],
                    tick_spacing=options["tick_spacing"],
                    beneficiaries=to_beneficiary_shares(options.get("beneficiaries", ())),
                    lock_duration=options.get("lock_duration", DEFAULT_LOCK_DURATION),
                )
            case "noOp":
                return NoOpMigration(**options)
            case "custom":
                return CustomMigration(
                    migrator=get_checksum_address(options["migrator"]),
                    options=options.get("options", {}),
                )
            case _:
                raise InvalidConfiguration(message=f"Unknown migration type {kind!r}")
    except (KeyError, TypeError) as exc:
        raise InvalidConfiguration(message=f"Invalid {kind} migration options: {exc}") from exc


class BaseAuctionBuilder:
    """
    Shared configuration for all auction builders. Setters mutate the builder and return it, so
    calls may be chained in any order before `build()`.
    """

    DEFAULT_YEARLY_MINT_RATE = DEFAULT_V4_YEARLY_MINT_RATE
    DEFAULT_VESTING_DURATION = 0

    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        self.token: TokenConfig | None = None
        self.sale: SaleConfig | None = None
        self.vesting: VestingConfig | None = None
        self.governance: GovernanceConfig | None = None
        self.migration: MigrationConfig | None = None
        self.user_address: ChecksumAddress | None = None
        self.integrator: ChecksumAddress = ZERO_ADDRESS
        self.modules = ModuleAddressOverrides()
        self.gas: int | None = None

    @classmethod
    def for_chain(cls, chain_id: int) -> Self:
        return cls(chain_id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain_id={self.chain_id})"

    def token_config(
        self,
        name: str,
        symbol: str,
        *,
        kind: str = "standard",
        token_uri: str = "",
        yearly_mint_rate: int | None = None,
        base_uri: str = "",
        unit: int | None = None,
    ) -> Self:
        match kind:
            case "standard":
                self.token = StandardTokenConfig(
                    name=name,
                    symbol=symbol,
                    token_uri=token_uri,
                    yearly_mint_rate=(
                        yearly_mint_rate
                        if yearly_mint_rate is not None
                        else self.DEFAULT_YEARLY_MINT_RATE
                    ),
                )
            case "doppler404":
                self.token = Doppler404TokenConfig(
                    name=name,
                    symbol=symbol,
                    base_uri=base_uri,
                    unit=unit if unit is not None else DEFAULT_DOPPLER404_UNIT,
                )
            case _:
                raise InvalidConfiguration(message=f"Unknown token type {kind!r}")
        return self

    def sale_config(
        self,
        initial_supply: int,
        num_tokens_to_sell: int,
        numeraire: str,
    ) -> Self:
        self.sale = SaleConfig(
            initial_supply=initial_supply,
            num_tokens_to_sell=num_tokens_to_sell,
            numeraire=get_checksum_address(numeraire),
        )
        return self

    def with_vesting(
        self,
        duration: int | None = None,
        *,
        cliff_duration: int = 0,
        recipients: Sequence[str] | None = None,
        amounts: Sequence[int] | None = None,
    ) -> Self:
        """
        Vest the unsold supply. Without explicit recipients, all of it vests to the user address.
        Recipient and amount consistency is checked when the parameters are encoded.
        """

        self.vesting = VestingConfig(
            duration=duration if duration is not None else self.DEFAULT_VESTING_DURATION,
            cliff_duration=cliff_duration,
            recipients=(
                tuple(get_checksum_address(recipient) for recipient in recipients)
                if recipients is not None
                else None
            ),
            amounts=tuple(amounts) if amounts is not None else None,
        )
        return self

    def without_vesting(self) -> Self:
        self.vesting = None
        return self

    def with_governance(
        self,
        kind: str = "default",
        *,
        initial_voting_delay: int | None = None,
        initial_voting_period: int | None = None,
        initial_proposal_threshold: int | None = None,
    ) -> Self:
        match kind:
            case "default":
                self.governance = DefaultGovernance()
            case "custom":
                if (
                    initial_voting_delay is None
                    or initial_voting_period is None
                    or initial_proposal_threshold is None
                ):
                    raise InvalidConfiguration(
                        message="Custom governance requires the voting delay, voting period, "
                        "and proposal threshold"
                    )
                self.governance = CustomGovernance(
                    initial_voting_delay=initial_voting_delay,
                    initial_voting_period=initial_voting_period,
                    initial_proposal_threshold=initial_proposal_threshold,
                )
            case "noOp":
                if self.chain_id not in NO_OP_ENABLED_CHAIN_IDS:
                    raise InvalidConfiguration(
                        message=f"NoOp governance is not available on chain {self.chain_id}"
                    )
                self.governance = NoOpGovernance()
            case _:
                raise InvalidConfiguration(message=f"Unknown governance type {kind!r}")
        return self

    def with_migration(self, migration: MigrationConfig | str, **options: Any) -> Self:
        """
        Set the migration, either as a migration configuration object or as a type tag with its
        options, e.g. `with_migration("uniswapV3", fee=3000, tick_spacing=60)`.
        """

        if isinstance(migration, str):
            migration = migration_from_kind(migration, **options)
        elif options:
            raise InvalidConfiguration(
                message="Options may only be given with a migration type tag"
            )
        elif not isinstance(migration, MIGRATION_TYPES):
            raise InvalidConfiguration(message=f"Unknown migration configuration {migration!r}")

        if isinstance(migration, UniswapV4Migration):
            migration = dataclasses.replace(
                migration,
                beneficiaries=sort_beneficiaries(migration.beneficiaries),
            )

        self.migration = migration
        return self

    def with_user_address(self, address: str) -> Self:
        self.user_address = get_checksum_address(address)
        return self

    def with_integrator(self, address: str | None = None) -> Self:
        self.integrator = get_checksum_address(address) if address is not None else ZERO_ADDRESS
        return self

    def with_gas_limit(self, gas: int | None) -> Self:
        if gas is not None and gas <= 0:
            raise InvalidConfiguration(message=f"Gas limit must be positive, got {gas}")
        self.gas = gas
        return self

    def with_modules(self, **addresses: str | None) -> Self:
        """
        Override module addresses by role, e.g. `with_modules(airlock="0x...")`.
        """

        try:
            self.modules = self.modules.merge(**addresses)
        except TypeError as exc:
            raise InvalidConfiguration(message=f"Unknown module role: {exc}") from exc
        return self

    def with_airlock(self, address: str) -> Self:
        return self.with_modules(airlock=address)

    def with_token_factory(self, address: str) -> Self:
        return self.with_modules(token_factory=address)

    def with_governance_factory(self, address: str) -> Self:
        return self.with_modules(governance_factory=address)

    def with_v2_migrator(self, address: str) -> Self:
        return self.with_modules(v2_migrator=address)

    def with_v3_migrator(self, address: str) -> Self:
        return self.with_modules(v3_migrator=address)

    def with_v4_migrator(self, address: str) -> Self:
        return self.with_modules(v4_migrator=address)

    def with_no_op_migrator(self, address: str) -> Self:
        return self.with_modules(no_op_migrator=address)

    def _require[T](self, value: T | None, section: str) -> T:
        if value is None:
            raise MissingConfiguration(section=section)
        return value
