from doppler_sdk.exceptions.base import DopplerError


class EVMRevertError(DopplerError):
    """
    Raised when an operation mirroring on-chain arithmetic would revert.
    """

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(message=f"EVM Revert: {error}")

    def __reduce__(self) -> tuple[type["EVMRevertError"], tuple[str]]:
        return self.__class__, (self.error,)
