import pydantic
import pytest
from hexbytes import HexBytes

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.constants import MAX_INT24, MAX_UINT96, MIN_INT24, WAD
from doppler_sdk.types import BeneficiaryShare, Curve, EncodedCreateParams, ModuleAddressOverrides

from .conftest import NUMERAIRE, USER


def test_curve_validation():
    curve = Curve(tick_lower=MIN_INT24, tick_upper=MAX_INT24, num_positions=1, shares=WAD)
    assert curve.num_positions == 1

    with pytest.raises(pydantic.ValidationError):
        curve.shares = 0


@pytest.mark.parametrize(
    "fields",
    [
        {"tick_lower": MIN_INT24 - 1},
        {"tick_upper": MAX_INT24 + 1},
        {"num_positions": 0},
        {"num_positions": 2**16},
        {"shares": -1},
        # Values are not coerced
        {"shares": "1"},
        {"tick_lower": 1.0},
    ],
)
def test_curve_rejects_out_of_range_values(fields: dict):
    values = {"tick_lower": 0, "tick_upper": 60, "num_positions": 1, "shares": WAD} | fields
    with pytest.raises(pydantic.ValidationError):
        Curve(**values)


def test_beneficiary_share_checksums_address():
    share = BeneficiaryShare(beneficiary=NUMERAIRE.lower(), shares=WAD)
    assert share.beneficiary == NUMERAIRE

    with pytest.raises(pydantic.ValidationError):
        BeneficiaryShare(beneficiary=USER, shares=MAX_UINT96 + 1)


def test_module_address_overrides():
    overrides = ModuleAddressOverrides()
    assert overrides.get("airlock") is None
    assert overrides.get("not_a_role") is None

    merged = overrides.merge(airlock="0xa000000000000000000000000000000000000001")
    assert merged.airlock == get_checksum_address("0xa000000000000000000000000000000000000001")
    assert overrides.airlock is None

    assert merged.merge(airlock=None).airlock is None

    with pytest.raises(TypeError):
        overrides.merge(flux_capacitor="0xa000000000000000000000000000000000000001")


def test_encoded_create_params_as_tuple():
    address = get_checksum_address("0xa000000000000000000000000000000000000001")
    params = EncodedCreateParams(
        initial_supply=10**27,
        num_tokens_to_sell=9 * 10**26,
        numeraire=NUMERAIRE,
        token_factory=address,
        token_factory_data=b"\x01",
        governance_factory=address,
        governance_factory_data=b"",
        pool_initializer=address,
        pool_initializer_data=b"\x02",
        liquidity_migrator=address,
        liquidity_migrator_data=b"",
        integrator=address,
        salt=HexBytes(bytes(32)),
    )
    as_tuple = params.as_tuple()
    assert len(as_tuple) == 13
    assert as_tuple[:3] == (10**27, 9 * 10**26, NUMERAIRE)
    assert as_tuple[-1] == bytes(32)
    assert type(as_tuple[-1]) is bytes
