from typing import Any

from doppler_sdk.exceptions.base import DopplerError


class MiningError(DopplerError):
    """
    Exception raised inside the CREATE2 salt miners.
    """


class SaltNotFound(MiningError):
    """
    Raised when no salt produced a matching address within the iteration bound.
    """

    def __init__(self, prefix: str, max_iterations: int) -> None:
        self.prefix = prefix
        self.max_iterations = max_iterations
        super().__init__(
            message=f"Could not find salt matching prefix {prefix} "
            f"within {max_iterations} iterations"
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.prefix, self.max_iterations)
