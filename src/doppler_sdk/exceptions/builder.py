from typing import Any

from doppler_sdk.exceptions.base import DopplerError

"""
Exceptions defined here are raised while configuring and building auction parameters.
"""


class BuilderError(DopplerError):
    """
    Exception raised inside parameter builders.
    """


class MissingConfiguration(BuilderError):
    """
    Raised by `build()` when a required configuration section has not been provided.
    """

    def __init__(self, section: str) -> None:
        self.section = section
        super().__init__(message=f"Missing required configuration: {section}")

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.section,)


class InvalidConfiguration(BuilderError):
    """
    Raised when a configuration value is malformed or inconsistent with other settings.
    """


class InvalidSchedule(BuilderError):
    """
    Raised when a scheduled start time cannot be represented as a uint32 timestamp.
    """

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(
            message=f"Invalid schedule start time {value!r}: must be a non-negative integer "
            "timestamp that fits in 32 bits."
        )

    def __reduce__(self) -> tuple[Any, ...]:
        return self.__class__, (self.value,)


class NormalizationFailure(BuilderError):
    """
    Raised when multicurve shares cannot be normalized to exactly 100%.
    """
