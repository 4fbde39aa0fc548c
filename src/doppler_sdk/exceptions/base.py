class DopplerError(Exception):
    """
    Base exception used as the parent class for all exceptions raised by this package.

    Calling code should catch `DopplerError` and derived classes separately before general
    exceptions, e.g.:

    ```
    try:
        doppler_sdk.some_function()
    except SpecificDopplerError:
        ... # handle a specific exception
    except DopplerError:
        ... # handle non-specific doppler_sdk exception
    except Exception:
        ... # handle exceptions raised by 3rd party dependencies or Python built-ins
    ```

    An optional string-formatted message may be attached to the exception and retrieved by accessing
    the `.message` attribute.
    """

    message: str | None = None

    def __init__(self, message: str | None = None) -> None:
        if message:
            self.message = message
            super().__init__(message)


class DopplerValueError(DopplerError): ...


class DopplerTypeError(DopplerError): ...


class ExternalCallError(DopplerError):
    """
    Raised when a call through the external RPC client fails. The original exception is chained
    as `__cause__`.
    """

    def __init__(self, operation: str, error: str) -> None:
        self.operation = operation
        self.error = error
        super().__init__(message=f"{operation} failed: {error}")

    def __reduce__(self) -> tuple[type["ExternalCallError"], tuple[str, str]]:
        return self.__class__, (self.operation, self.error)
