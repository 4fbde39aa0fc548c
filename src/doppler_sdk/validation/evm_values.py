from typing import Annotated

from pydantic import Field

from doppler_sdk.constants import (
    MAX_INT24,
    MAX_UINT16,
    MAX_UINT24,
    MAX_UINT96,
    MAX_UINT256,
    MIN_INT24,
    MIN_UINT16,
    MIN_UINT24,
    MIN_UINT96,
    MIN_UINT256,
)

type ValidatedInt24 = Annotated[int, Field(strict=True, ge=MIN_INT24, le=MAX_INT24)]

type ValidatedUint16NonZero = Annotated[int, Field(strict=True, gt=MIN_UINT16, le=MAX_UINT16)]
type ValidatedUint24 = Annotated[int, Field(strict=True, ge=MIN_UINT24, le=MAX_UINT24)]
type ValidatedUint96 = Annotated[int, Field(strict=True, ge=MIN_UINT96, le=MAX_UINT96)]
type ValidatedUint256 = Annotated[int, Field(strict=True, ge=MIN_UINT256, le=MAX_UINT256)]
