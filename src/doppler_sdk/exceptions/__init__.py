from doppler_sdk.exceptions.base import (
    DopplerError,
    DopplerTypeError,
    DopplerValueError,
    ExternalCallError,
)
from doppler_sdk.exceptions.builder import (
    BuilderError,
    InvalidConfiguration,
    InvalidSchedule,
    MissingConfiguration,
    NormalizationFailure,
)
from doppler_sdk.exceptions.deployment import (
    DeploymentError,
    MissingBytecode,
    MissingModuleAddress,
    UnsupportedChain,
)
from doppler_sdk.exceptions.evm import EVMRevertError
from doppler_sdk.exceptions.mining import MiningError, SaltNotFound
from doppler_sdk.exceptions.validation import BeneficiaryError, ValidationError, VestingMismatch

from . import base, builder, deployment, evm, mining, validation

__all__ = (
    "BeneficiaryError",
    "BuilderError",
    "DeploymentError",
    "DopplerError",
    "DopplerTypeError",
    "DopplerValueError",
    "EVMRevertError",
    "ExternalCallError",
    "InvalidConfiguration",
    "InvalidSchedule",
    "MiningError",
    "MissingBytecode",
    "MissingConfiguration",
    "MissingModuleAddress",
    "NormalizationFailure",
    "SaltNotFound",
    "UnsupportedChain",
    "ValidationError",
    "VestingMismatch",
    "base",
    "builder",
    "deployment",
    "evm",
    "mining",
    "validation",
)
