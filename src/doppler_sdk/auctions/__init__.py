from .airlock import (
    create_airlock_beneficiary,
    get_airlock_beneficiary,
    get_airlock_owner,
    get_asset_data,
    has_graduated,
)
from .dynamic_auction import DynamicAuction
from .lockable_pool import LockableV3Pool
from .multicurve_pool import MulticurvePool, ScheduledMulticurvePool
from .static_auction import StaticAuction

__all__ = (
    "DynamicAuction",
    "LockableV3Pool",
    "MulticurvePool",
    "ScheduledMulticurvePool",
    "StaticAuction",
    "create_airlock_beneficiary",
    "get_airlock_beneficiary",
    "get_airlock_owner",
    "get_asset_data",
    "has_graduated",
)
