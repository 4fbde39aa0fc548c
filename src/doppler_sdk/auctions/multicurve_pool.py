from eth_typing import ChecksumAddress
from hexbytes import HexBytes

from doppler_sdk.auctions.base import ContractReader
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.deployments import resolve_module_address
from doppler_sdk.functions import compute_pool_id, encode_function_calldata, raw_call
from doppler_sdk.logging import logger
from doppler_sdk.types import FeeCollection, MulticurvePoolState, V4PoolKey

MULTICURVE_STATE_TYPES = [
    "address",  # numeraire
    "uint8",  # status
    "(address,address,uint24,int24,address)",  # pool key
    "int24",  # far tick
]


class MulticurvePool(ContractReader):
    """
    A multicurve pool, addressed by its asset. State is held by the multicurve initializer.
    """

    INITIALIZER_ROLE = "v4_multicurve_initializer"

    @property
    def initializer(self) -> ChecksumAddress:
        return resolve_module_address(self.INITIALIZER_ROLE, self.chain_id, self.modules)

    def get_state(self) -> MulticurvePoolState:
        numeraire, status, (currency0, currency1, fee, tick_spacing, hooks), far_tick = self._call(
            "getState(address)",
            MULTICURVE_STATE_TYPES,
            [self.address],
            address=self.initializer,
        )
        pool_key = V4PoolKey(
            currency0=get_checksum_address(currency0),
            currency1=get_checksum_address(currency1),
            fee=fee,
            tick_spacing=tick_spacing,
            hooks=get_checksum_address(hooks),
        )
        return MulticurvePoolState(
            asset=self.address,
            numeraire=get_checksum_address(numeraire),
            fee=fee,
            tick_spacing=tick_spacing,
            status=status,
            pool_key=pool_key,
            far_tick=far_tick,
        )

    def get_pool_id(self) -> HexBytes:
        pool_key = self.get_state().pool_key
        return compute_pool_id(
            pool_key.currency0,
            pool_key.currency1,
            pool_key.fee,
            pool_key.tick_spacing,
            pool_key.hooks,
        )

    def get_token_address(self) -> ChecksumAddress:
        return self.get_state().asset

    def get_numeraire_address(self) -> ChecksumAddress:
        return self.get_state().numeraire

    def collect_fees(self, sender: str) -> FeeCollection:
        """
        Collect the pool fees and distribute them to the beneficiaries. The collected amounts are
        simulated before the transaction is sent from `sender`.
        """

        initializer = self.initializer
        pool_id = self.get_pool_id()
        sender = get_checksum_address(sender)
        calldata = encode_function_calldata(
            function_prototype="collectFees(bytes32)",
            function_arguments=[bytes(pool_id)],
        )

        fees0, fees1 = raw_call(
            w3=self.w3,
            address=initializer,
            calldata=calldata,
            return_types=["uint128", "uint128"],
            from_address=sender,
        )
        transaction_hash = self._send(sender, calldata, "collectFees", address=initializer)

        logger.info(
            f"Collected fees ({fees0}, {fees1}) for pool {pool_id.to_0x_hex()} in transaction "
            f"{transaction_hash.to_0x_hex()}"
        )
        return FeeCollection(fees0=fees0, fees1=fees1, transaction_hash=transaction_hash)


class ScheduledMulticurvePool(MulticurvePool):
    """
    A multicurve pool created through the scheduled initializer.
    """

    INITIALIZER_ROLE = "v4_scheduled_multicurve_initializer"
