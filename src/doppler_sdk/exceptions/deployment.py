from typing import Any

from doppler_sdk.exceptions.base import DopplerError

"""
Exceptions defined here are raised by the chain address and bytecode registries.
"""


class DeploymentError(DopplerError):
    """
    Exception raised inside deployment registries.
    """


class UnsupportedChain(DeploymentError):
    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(message=f"Unsupported chain ID: {chain_id}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.chain_id,)


class MissingModuleAddress(DeploymentError):
    """
    Raised when a module role has neither an override nor a deployed address on the chain.
    """

    def __init__(self, role: str, chain_id: int) -> None:
        self.role = role
        self.chain_id = chain_id
        super().__init__(message=f"No {role} address is deployed or configured on chain {chain_id}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.role, self.chain_id)


class MissingBytecode(DeploymentError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            message=f"No init bytecode registered for {name!r}. Register it with "
            "register_bytecode() or pass it explicitly."
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.name,)
