"""
Price quotes across Uniswap V2, V3, and V4, read through `eth_call` against the router and quoter
contracts deployed on each chain.
"""

from collections.abc import Sequence
from typing import Any

from eth_typing import ChecksumAddress
from web3 import Web3

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.connection import connection_manager
from doppler_sdk.deployments import resolve_module_address
from doppler_sdk.exceptions import DopplerValueError
from doppler_sdk.functions import encode_function_calldata, raw_call
from doppler_sdk.types import ModuleAddressOverrides, V3Quote, V4PoolKey, V4Quote

V3_QUOTE_EXACT_INPUT_PROTOTYPE = "quoteExactInputSingle((address,address,uint256,uint24,uint160))"
V3_QUOTE_EXACT_OUTPUT_PROTOTYPE = "quoteExactOutputSingle((address,address,uint256,uint24,uint160))"
V3_QUOTE_RETURN_TYPES = [
    "uint256",  # amount out (exact input) or amount in (exact output)
    "uint160",  # sqrtPriceX96 after
    "uint32",  # initialized ticks crossed
    "uint256",  # gas estimate
]

V2_AMOUNTS_OUT_PROTOTYPE = "getAmountsOut(uint256,address[])"
V2_AMOUNTS_IN_PROTOTYPE = "getAmountsIn(uint256,address[])"

V4_QUOTE_PARAMS_TYPE = "((address,address,uint24,int24,address),bool,uint128,bytes)"
V4_QUOTE_EXACT_INPUT_PROTOTYPE = f"quoteExactInputSingle({V4_QUOTE_PARAMS_TYPE})"
V4_QUOTE_EXACT_OUTPUT_PROTOTYPE = f"quoteExactOutputSingle({V4_QUOTE_PARAMS_TYPE})"
V4_QUOTE_RETURN_TYPES = ["uint256", "uint256"]


def _check_amount(amount: int) -> None:
    if amount <= 0:
        raise DopplerValueError(message=f"Quote amount must be positive, got {amount}")


def _check_path(path: Sequence[str]) -> list[ChecksumAddress]:
    if len(path) < 2:
        raise DopplerValueError(message="A swap path needs at least two tokens")
    return [get_checksum_address(token) for token in path]


class Quoter:
    """
    Quotes swaps on the Uniswap deployments registered for one chain.

    V3 quotes use the QuoterV2 contract, V2 quotes use the V2 router, and V4 quotes use the
    Doppler lens quoter, which also prices pools with a Doppler hook.
    """

    def __init__(
        self,
        chain_id: int,
        w3: Web3 | None = None,
        modules: ModuleAddressOverrides | None = None,
    ) -> None:
        self.chain_id = chain_id
        self._w3 = w3
        self.modules = modules

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(chain_id={self.chain_id})"

    @property
    def w3(self) -> Web3:
        if self._w3 is not None:
            return self._w3
        return connection_manager.get_web3(self.chain_id)

    def _quote(
        self,
        role: str,
        function_prototype: str,
        function_arguments: Sequence[Any],
        return_types: list[str],
    ) -> tuple[Any, ...]:
        return raw_call(
            w3=self.w3,
            address=resolve_module_address(role, self.chain_id, self.modules),
            calldata=encode_function_calldata(
                function_prototype=function_prototype,
                function_arguments=function_arguments,
            ),
            return_types=return_types,
        )

    # Uniswap V3 ---------------------------------------------------------------------------------

    def _quote_v3(
        self,
        function_prototype: str,
        token_in: str,
        token_out: str,
        amount: int,
        fee: int,
        sqrt_price_limit_x96: int,
    ) -> V3Quote:
        _check_amount(amount)
        quoted_amount, sqrt_price_x96_after, ticks_crossed, gas_estimate = self._quote(
            "v3_quoter",
            function_prototype,
            [
                (
                    get_checksum_address(token_in),
                    get_checksum_address(token_out),
                    amount,
                    fee,
                    sqrt_price_limit_x96,
                )
            ],
            V3_QUOTE_RETURN_TYPES,
        )
        return V3Quote(
            amount=quoted_amount,
            sqrt_price_x96_after=sqrt_price_x96_after,
            initialized_ticks_crossed=ticks_crossed,
            gas_estimate=gas_estimate,
        )

    def quote_exact_input_v3(
        self,
        token_in: str,
        token_out: str,
        amount_in: int,
        fee: int,
        sqrt_price_limit_x96: int = 0,
    ) -> V3Quote:
        """
        Quote the output of swapping exactly `amount_in` of `token_in` in a single V3 pool.
        """

        return self._quote_v3(
            V3_QUOTE_EXACT_INPUT_PROTOTYPE,
            token_in,
            token_out,
            amount_in,
            fee,
            sqrt_price_limit_x96,
        )

    def quote_exact_output_v3(
        self,
        token_in: str,
        token_out: str,
        amount_out: int,
        fee: int,
        sqrt_price_limit_x96: int = 0,
    ) -> V3Quote:
        """
        Quote the input of `token_in` required to receive exactly `amount_out` of `token_out`.
        """

        return self._quote_v3(
            V3_QUOTE_EXACT_OUTPUT_PROTOTYPE,
            token_in,
            token_out,
            amount_out,
            fee,
            sqrt_price_limit_x96,
        )

    # Uniswap V2 ---------------------------------------------------------------------------------

    def quote_exact_input_v2(self, amount_in: int, path: Sequence[str]) -> list[int]:
        """
        Return the amount at each hop of `path` when swapping exactly `amount_in` of the first
        token.
        """

        _check_amount(amount_in)
        (amounts,) = self._quote(
            "univ2_router02",
            V2_AMOUNTS_OUT_PROTOTYPE,
            [amount_in, _check_path(path)],
            ["uint256[]"],
        )
        return list(amounts)

    def quote_exact_output_v2(self, amount_out: int, path: Sequence[str]) -> list[int]:
        _check_amount(amount_out)
        (amounts,) = self._quote(
            "univ2_router02",
            V2_AMOUNTS_IN_PROTOTYPE,
            [amount_out, _check_path(path)],
            ["uint256[]"],
        )
        return list(amounts)

    # Uniswap V4 ---------------------------------------------------------------------------------

    def _quote_v4(
        self,
        function_prototype: str,
        pool_key: V4PoolKey,
        zero_for_one: bool,
        exact_amount: int,
        hook_data: bytes,
    ) -> V4Quote:
        _check_amount(exact_amount)
        quoted_amount, gas_estimate = self._quote(
            "doppler_lens",
            function_prototype,
            [
                (
                    (
                        pool_key.currency0,
                        pool_key.currency1,
                        pool_key.fee,
                        pool_key.tick_spacing,
                        pool_key.hooks,
                    ),
                    zero_for_one,
                    exact_amount,
                    hook_data,
                )
            ],
            V4_QUOTE_RETURN_TYPES,
        )
        return V4Quote(amount=quoted_amount, gas_estimate=gas_estimate)

    def quote_exact_input_v4(
        self,
        pool_key: V4PoolKey,
        zero_for_one: bool,
        exact_amount: int,
        hook_data: bytes = b"",
    ) -> V4Quote:
        return self._quote_v4(
            V4_QUOTE_EXACT_INPUT_PROTOTYPE, pool_key, zero_for_one, exact_amount, hook_data
        )

    def quote_exact_output_v4(
        self,
        pool_key: V4PoolKey,
        zero_for_one: bool,
        exact_amount: int,
        hook_data: bytes = b"",
    ) -> V4Quote:
        return self._quote_v4(
            V4_QUOTE_EXACT_OUTPUT_PROTOTYPE, pool_key, zero_for_one, exact_amount, hook_data
        )
