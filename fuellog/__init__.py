"""
Vehicle fuel log tracking.

This package provides the fuel log engine:
- Vehicle, Refuel, ServiceRecord: the tracked records
- Settings: currency, active vehicle, accepted price band
- RecordStore: in-memory storage of all records
- validate_refuel / validate_service / validate_vehicle: candidate checks
- check_ordering: odometer must increase with date
- compute_stats / compute_per_record_consumption: tank-to-tank consumption
- audit_and_migrate: schema upgrade and integrity repair on load
- FuelTracker: the service tying it all together
"""

from .errors import FuelLogError, ValidationError, OrderingConflict, CorruptStore
from .vehicle import Vehicle
from .refuel import Refuel
from .service import ServiceRecord, ServiceType
from .settings import Settings
from .store import RecordStore, DATA_VERSION, seed_store
from .validation import (
    ValidationResult,
    validate_refuel,
    validate_service,
    validate_vehicle,
)
from .chronology import OrderingResult, check_ordering
from .consumption import (
    Season,
    SeasonBucket,
    Segment,
    ConsumptionStats,
    compute_stats,
    compute_per_record_consumption,
)
from .audit import IntegrityViolation, AuditResult, audit_and_migrate
from .loader import LoadResult, open_store, save_store, parse_store
from .sync import PushScheduler
from .logs import RecentLogBuffer, configure_logging
from .export import refuels_to_csv
from .tracker import FuelTracker

__all__ = [
    "FuelLogError",
    "ValidationError",
    "OrderingConflict",
    "CorruptStore",
    "Vehicle",
    "Refuel",
    "ServiceRecord",
    "ServiceType",
    "Settings",
    "RecordStore",
    "DATA_VERSION",
    "seed_store",
    "ValidationResult",
    "validate_refuel",
    "validate_service",
    "validate_vehicle",
    "OrderingResult",
    "check_ordering",
    "Season",
    "SeasonBucket",
    "Segment",
    "ConsumptionStats",
    "compute_stats",
    "compute_per_record_consumption",
    "IntegrityViolation",
    "AuditResult",
    "audit_and_migrate",
    "LoadResult",
    "open_store",
    "save_store",
    "parse_store",
    "PushScheduler",
    "RecentLogBuffer",
    "configure_logging",
    "refuels_to_csv",
    "FuelTracker",
]
