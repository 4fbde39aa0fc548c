from doppler_sdk.exceptions.base import DopplerError

"""
Exceptions defined here are raised by cross-field checks performed at encode and simulate time.
"""


class ValidationError(DopplerError):
    """
    Exception raised when a built parameter object violates a cross-field rule.
    """


class VestingMismatch(ValidationError):
    """
    Raised when vesting recipients and amounts are inconsistent with each other or with the
    unsold supply.
    """


class BeneficiaryError(ValidationError):
    """
    Raised when a beneficiary list is unsorted, does not sum to 100%, or omits the protocol owner
    share.
    """
