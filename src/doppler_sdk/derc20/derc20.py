from typing import cast

from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3.types import BlockIdentifier

from doppler_sdk.auctions.base import ContractReader
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.exceptions import DopplerValueError
from doppler_sdk.functions import encode_function_calldata, raw_call
from doppler_sdk.logging import logger
from doppler_sdk.types import VestingData


class Derc20Token(ContractReader):
    """
    A DERC20 token, the ERC-20 asset deployed by the Doppler token factory. On top of the ERC-20
    and votes interfaces, it tracks vesting allocations, an annual inflation mint, and the pool
    lock held until migration.
    """

    # ERC-20 metadata and balances -------------------------------------------------------------

    def get_name(self) -> str:
        return cast("str", self._call_single("name()", "string"))

    def get_symbol(self) -> str:
        return cast("str", self._call_single("symbol()", "string"))

    def get_decimals(self) -> int:
        return cast("int", self._call_single("decimals()", "uint8"))

    def get_token_uri(self) -> str:
        return cast("str", self._call_single("tokenURI()", "string"))

    def get_total_supply(self) -> int:
        return cast("int", self._call_single("totalSupply()", "uint256"))

    def get_balance(
        self,
        account: str,
        block_identifier: BlockIdentifier | None = None,
    ) -> int:
        """
        Retrieve the token balance for the given account.
        """

        (balance,) = raw_call(
            w3=self.w3,
            address=self.address,
            calldata=encode_function_calldata(
                function_prototype="balanceOf(address)",
                function_arguments=[get_checksum_address(account)],
            ),
            return_types=["uint256"],
            block_identifier=block_identifier,
        )
        return cast("int", balance)

    def get_allowance(self, owner: str, spender: str) -> int:
        return cast(
            "int",
            self._call_single(
                "allowance(address,address)",
                "uint256",
                [get_checksum_address(owner), get_checksum_address(spender)],
            ),
        )

    # Votes ------------------------------------------------------------------------------------

    def get_delegates(self, account: str) -> ChecksumAddress:
        return get_checksum_address(
            self._call_single("delegates(address)", "address", [get_checksum_address(account)])
        )

    def get_votes(self, account: str) -> int:
        return cast(
            "int",
            self._call_single("getVotes(address)", "uint256", [get_checksum_address(account)]),
        )

    def get_past_votes(self, account: str, timepoint: int) -> int:
        return cast(
            "int",
            self._call_single(
                "getPastVotes(address,uint256)",
                "uint256",
                [get_checksum_address(account), timepoint],
            ),
        )

    # Vesting ----------------------------------------------------------------------------------

    def get_vesting_duration(self) -> int:
        return cast("int", self._call_single("vestingDuration()", "uint256"))

    def get_vesting_start(self) -> int:
        return cast("int", self._call_single("vestingStart()", "uint256"))

    def get_vested_total_amount(self) -> int:
        return cast("int", self._call_single("vestedTotalAmount()", "uint256"))

    def get_vesting_data(self, account: str) -> VestingData:
        total_amount, released_amount = self._call(
            "getVestingDataOf(address)",
            ["uint256", "uint256"],
            [get_checksum_address(account)],
        )
        return VestingData(total_amount=total_amount, released_amount=released_amount)

    def get_available_vested_amount(self, account: str) -> int:
        """
        The vested amount that `account` can release now.
        """

        return cast(
            "int",
            self._call_single(
                "computeAvailableVestedAmount(address)",
                "uint256",
                [get_checksum_address(account)],
            ),
        )

    # Inflation and pool lock ------------------------------------------------------------------

    def get_yearly_mint_rate(self) -> int:
        return cast("int", self._call_single("yearlyMintRate()", "uint256"))

    def get_current_year_start(self) -> int:
        return cast("int", self._call_single("currentYearStart()", "uint256"))

    def get_last_mint_timestamp(self) -> int:
        return cast("int", self._call_single("lastMintTimestamp()", "uint256"))

    def get_pool(self) -> ChecksumAddress:
        return get_checksum_address(self._call_single("pool()", "address"))

    def is_pool_unlocked(self) -> bool:
        return cast("bool", self._call_single("isPoolUnlocked()", "bool"))

    # Transactions -----------------------------------------------------------------------------

    def _transact(
        self,
        sender: str,
        function_prototype: str,
        function_arguments: list[object],
        return_types: list[str],
        gas: int | None,
    ) -> HexBytes:
        sender = get_checksum_address(sender)
        function_name = function_prototype.split("(")[0]

        # Surface reverts before anything is sent
        self._call(
            function_prototype,
            return_types,
            function_arguments,
            from_address=sender,
        )
        transaction_hash = self._send(
            sender,
            encode_function_calldata(
                function_prototype=function_prototype,
                function_arguments=function_arguments,
            ),
            f"{function_name} on {self.address}",
            gas=gas,
        )
        logger.info(f"Sent {function_name} on {self.address} in {transaction_hash.to_0x_hex()}")
        return transaction_hash

    def approve(self, sender: str, spender: str, amount: int, gas: int | None = None) -> HexBytes:
        if amount < 0:
            raise DopplerValueError(message=f"Approval amount must be non-negative, got {amount}")
        return self._transact(
            sender,
            "approve(address,uint256)",
            [get_checksum_address(spender), amount],
            ["bool"],
            gas,
        )

    def delegate(self, sender: str, delegatee: str, gas: int | None = None) -> HexBytes:
        """
        Delegate the voting power of `sender` to `delegatee`.
        """

        return self._transact(
            sender,
            "delegate(address)",
            [get_checksum_address(delegatee)],
            [],
            gas,
        )

    def release(self, sender: str, gas: int | None = None) -> HexBytes:
        """
        Release all vested tokens currently available to `sender`.
        """

        return self._transact(sender, "release()", [], [], gas)
