"""FuelTracker - the single service instance that owns a record store."""

import copy
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .audit import AuditResult, audit_and_migrate
from .chronology import OrderingResult, check_ordering
from .consumption import (
    ConsumptionStats,
    compute_per_record_consumption,
    compute_stats,
)
from .documents import settings_to_dict, store_to_document
from .errors import CorruptStore, OrderingConflict, ValidationError
from .loader import LoadResult, open_store, save_store
from .refuel import Refuel
from .service import (
    ServiceRecord,
    ServiceType,
    expired_services,
    expiring_services,
    service_costs,
)
from .settings import Settings
from .store import RecordStore, generate_id
from .sync import PushScheduler
from .validation import (
    ValidationResult,
    is_missing,
    is_number,
    parse_bool,
    parse_date,
    validate_refuel,
    validate_service,
    validate_vehicle,
)
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

VEHICLE_FIELDS = ("name", "manufacturer", "type", "engine", "tank_size")
REFUEL_FIELDS = (
    "vehicle_id",
    "date",
    "odometer",
    "liters",
    "price_per_liter",
    "total_price",
    "full_tank",
    "notes",
)
SERVICE_FIELDS = (
    "vehicle_id",
    "type",
    "date",
    "description",
    "valid_until",
    "odometer",
    "cost",
    "note",
)


def _fields(obj: Any, names) -> Dict[str, Any]:
    return {name: getattr(obj, name) for name in names}


def _with_total(candidate: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in total price from liters x price per liter when it was left out."""
    liters = candidate.get("liters")
    price = candidate.get("price_per_liter")
    if is_missing(candidate.get("total_price")) and is_number(liters) and is_number(price):
        candidate["total_price"] = round(liters * price, 2)
    return candidate


def _clean_text(value: Any) -> Optional[str]:
    if is_missing(value):
        return None
    return str(value).strip()


class FuelTracker:
    """
    Entry point for callers (CLI, web API, sync).

    Writes go through the validator, then the chronology guard, then the
    store; each successful write is persisted and, with cloud sync on,
    schedules a debounced remote push. Persistence and push failures are
    logged and turned into user notices rather than raised.
    """

    def __init__(
        self,
        store: RecordStore,
        persist: Optional[Callable[[RecordStore], None]] = None,
        scheduler: Optional[PushScheduler] = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self._persist = persist
        self.scheduler = scheduler
        self._today = today
        self.notices: List[str] = []
        self.load_result: Optional[LoadResult] = None

    @classmethod
    def open(
        cls,
        filename: Union[str, Path],
        scheduler: Optional[PushScheduler] = None,
        now: Optional[datetime] = None,
        today: Callable[[], date] = date.today,
        persist: bool = True,
    ) -> "FuelTracker":
        """Load (auditing and migrating) the store file and track it.

        With persist=False neither loading nor later writes touch the file.
        """
        result = open_store(filename, now, persist=persist)
        tracker = cls(
            result.store,
            persist=(lambda store: save_store(filename, store)) if persist else None,
            scheduler=scheduler,
            today=today,
        )
        tracker.load_result = result
        tracker.notices.extend(result.notices)
        return tracker

    @property
    def settings(self) -> Settings:
        return self.store.settings

    def save(self) -> bool:
        """Persist the store and schedule a remote push. False if persisting failed."""
        if self._persist is not None:
            try:
                self._persist(self.store)
            except Exception:
                logger.exception("Failed to save data")
                self.notices.append("Failed to save data")
                return False
        if self.scheduler is not None and self.settings.cloud_sync:
            self.scheduler.schedule(self.export_data)
        return True

    # =========================================================================
    # Vehicles
    # =========================================================================

    @property
    def vehicles(self) -> List[Vehicle]:
        return list(self.store.vehicles)

    def get_vehicle(self, vehicle_id: str) -> Optional[Vehicle]:
        return self.store.get_vehicle(vehicle_id)

    @property
    def active_vehicle(self) -> Optional[Vehicle]:
        return self.store.active_vehicle

    def _require_vehicle(self, vehicle_id: str) -> Vehicle:
        vehicle = self.store.get_vehicle(vehicle_id)
        if vehicle is None:
            raise KeyError(f"Vehicle '{vehicle_id}' not found")
        return vehicle

    def add_vehicle(self, candidate: Mapping[str, Any]) -> Vehicle:
        """Create a vehicle. The first vehicle becomes the active one."""
        result = validate_vehicle(candidate)
        if not result:
            raise ValidationError(result.reasons)
        vehicle = Vehicle(
            id=generate_id(),
            name=_clean_text(candidate["name"]),
            manufacturer=_clean_text(candidate.get("manufacturer")),
            type=_clean_text(candidate.get("type")),
            engine=_clean_text(candidate.get("engine")),
            tank_size=candidate.get("tank_size"),
        )
        self.store.add_vehicle(vehicle)
        self.save()
        logger.info("Vehicle added: %s (%s)", vehicle.name, vehicle.id)
        return vehicle

    def update_vehicle(self, vehicle_id: str, changes: Mapping[str, Any]) -> Vehicle:
        vehicle = self._require_vehicle(vehicle_id)
        candidate = {**_fields(vehicle, VEHICLE_FIELDS), **changes}
        result = validate_vehicle(candidate)
        if not result:
            raise ValidationError(result.reasons)
        for name in VEHICLE_FIELDS:
            value = candidate[name]
            setattr(vehicle, name, value if name == "tank_size" else _clean_text(value))
        self.save()
        logger.info("Vehicle updated: %s", vehicle_id)
        return vehicle

    def delete_vehicle(self, vehicle_id: str) -> bool:
        """Delete a vehicle with all its refuels and services."""
        if not self.store.remove_vehicle(vehicle_id):
            logger.warning("Vehicle not found for deletion: %s", vehicle_id)
            return False
        self.save()
        logger.info("Vehicle deleted: %s", vehicle_id)
        return True

    def set_active_vehicle(self, vehicle_id: str) -> None:
        self._require_vehicle(vehicle_id)
        self.settings.active_vehicle_id = vehicle_id
        self.save()

    # =========================================================================
    # Refuels
    # =========================================================================

    def list_refuels(self, vehicle_id: str) -> List[Refuel]:
        return self.store.list_refuels(vehicle_id)

    def validate_refuel(self, candidate: Mapping[str, Any]) -> ValidationResult:
        """Validate a refuel candidate against the settings and its vehicle."""
        vehicle_id = candidate.get("vehicle_id")
        vehicle = self.store.get_vehicle(vehicle_id)
        result = validate_refuel(candidate, self.settings, vehicle, self._today())
        if not is_missing(vehicle_id) and vehicle is None:
            result.reasons.append(f"Vehicle '{vehicle_id}' not found")
        return result

    def check_ordering(self, refuel: Refuel) -> OrderingResult:
        """Check a refuel against its vehicle's other refuels, by date."""
        return check_ordering(refuel, self.store.list_refuels(refuel.vehicle_id))

    def _admit_refuel(self, refuel_id: str, candidate: Dict[str, Any]) -> Refuel:
        result = self.validate_refuel(candidate)
        if not result:
            raise ValidationError(result.reasons)
        refuel = Refuel(
            id=refuel_id,
            vehicle_id=candidate["vehicle_id"],
            date=parse_date(candidate["date"]).isoformat(),
            odometer=int(candidate["odometer"]),
            liters=float(candidate["liters"]),
            price_per_liter=float(candidate["price_per_liter"]),
            total_price=float(candidate["total_price"]),
            full_tank=parse_bool(candidate.get("full_tank")) is not False,
            notes=_clean_text(candidate.get("notes")),
        )
        ordering = self.check_ordering(refuel)
        if not ordering:
            raise OrderingConflict(ordering.conflicting_record, ordering.reason)
        return refuel

    def add_refuel(self, candidate: Mapping[str, Any]) -> Refuel:
        """
        Validate, order-check and store a new refuel.

        Raises ValidationError or OrderingConflict when rejected.
        """
        refuel = self._admit_refuel(generate_id(), _with_total(dict(candidate)))
        self.store.add_refuel(refuel)
        self.save()
        logger.info("Refuel added: %s for vehicle %s", refuel.id, refuel.vehicle_id)
        return refuel

    def update_refuel(self, refuel_id: str, changes: Mapping[str, Any]) -> Refuel:
        """Edit a refuel. Its own stored version is ignored by the ordering check."""
        existing = self.store.get_refuel(refuel_id)
        if existing is None:
            raise KeyError(f"Refuel '{refuel_id}' not found")
        candidate = {**_fields(existing, REFUEL_FIELDS), **changes}
        if ("liters" in changes or "price_per_liter" in changes) and "total_price" not in changes:
            candidate["total_price"] = None
        refuel = self._admit_refuel(refuel_id, _with_total(candidate))
        self.store.replace_refuel(refuel)
        self.save()
        logger.info("Refuel updated: %s", refuel_id)
        return refuel

    def delete_refuel(self, refuel_id: str) -> bool:
        if not self.store.remove_refuel(refuel_id):
            logger.warning("Refuel not found for deletion: %s", refuel_id)
            return False
        self.save()
        logger.info("Refuel deleted: %s", refuel_id)
        return True

    # =========================================================================
    # Services
    # =========================================================================

    def list_services(self, vehicle_id: str) -> List[ServiceRecord]:
        return self.store.list_services(vehicle_id)

    def _admit_service(self, service_id: str, candidate: Mapping[str, Any]) -> ServiceRecord:
        result = validate_service(candidate)
        vehicle_id = candidate.get("vehicle_id")
        if not is_missing(vehicle_id) and self.store.get_vehicle(vehicle_id) is None:
            result.reasons.append(f"Vehicle '{vehicle_id}' not found")
        if not result:
            raise ValidationError(result.reasons)
        valid_until = candidate.get("valid_until")
        service_type = candidate.get("type")
        odometer = candidate.get("odometer")
        return ServiceRecord(
            id=service_id,
            vehicle_id=vehicle_id,
            type=(
                service_type
                if isinstance(service_type, ServiceType)
                else ServiceType.parse(service_type)
            ),
            date=parse_date(candidate["date"]).isoformat(),
            description=_clean_text(candidate["description"]),
            valid_until=None if is_missing(valid_until) else parse_date(valid_until).isoformat(),
            odometer=None if is_missing(odometer) else int(odometer),
            cost=candidate.get("cost") or 0,
            note=_clean_text(candidate.get("note")),
        )

    def add_service(self, candidate: Mapping[str, Any]) -> ServiceRecord:
        service = self._admit_service(generate_id(), candidate)
        self.store.add_service(service)
        self.save()
        logger.info("Service record added: %s (%s)", service.id, service.type.value)
        return service

    def update_service(self, service_id: str, changes: Mapping[str, Any]) -> ServiceRecord:
        existing = self.store.get_service(service_id)
        if existing is None:
            raise KeyError(f"Service record '{service_id}' not found")
        candidate = {**_fields(existing, SERVICE_FIELDS), **changes}
        service = self._admit_service(service_id, candidate)
        self.store.replace_service(service)
        self.save()
        logger.info("Service record updated: %s", service_id)
        return service

    def delete_service(self, service_id: str) -> bool:
        if not self.store.remove_service(service_id):
            return False
        self.save()
        logger.info("Service record deleted: %s", service_id)
        return True

    def expiring_services(self, vehicle_id: str, days_ahead: int = 30) -> List[ServiceRecord]:
        return expiring_services(self.list_services(vehicle_id), self._today(), days_ahead)

    def expired_services(self, vehicle_id: str) -> List[ServiceRecord]:
        return expired_services(self.list_services(vehicle_id), self._today())

    def service_costs(self, vehicle_id: str) -> Dict[str, Any]:
        return service_costs(self.list_services(vehicle_id))

    # =========================================================================
    # Analytics
    # =========================================================================

    def compute_stats(self, vehicle_id: str) -> Optional[ConsumptionStats]:
        """Lifetime and seasonal figures; None when there is insufficient data."""
        logger.debug("Calculating stats for %s", vehicle_id)
        return compute_stats(self.store.list_refuels(vehicle_id))

    def compute_per_record_consumption(self, vehicle_id: str) -> Dict[str, Optional[float]]:
        """Refuel id -> consumption, or None where it is indeterminate."""
        return compute_per_record_consumption(self.store.list_refuels(vehicle_id))

    # =========================================================================
    # Settings, export and import
    # =========================================================================

    def update_settings(self, **changes: Any) -> Settings:
        for name, value in changes.items():
            if name == "extra" or not hasattr(self.settings, name):
                raise KeyError(f"Unknown setting '{name}'")
            setattr(self.settings, name, value)
        self.save()
        logger.info("Settings updated: %s", changes)
        return self.settings

    def export_data(self) -> Dict[str, Any]:
        """Deep copy of the store as a plain document."""
        return copy.deepcopy(store_to_document(self.store))

    def import_data(self, data: Any) -> AuditResult:
        """
        Replace the store with an imported document (e.g. a backup or a
        remote pull). A missing services collection is treated as empty.
        """
        if not isinstance(data, Mapping):
            raise CorruptStore("Import data must be a mapping")
        if not isinstance(data.get("vehicles"), list) or not isinstance(
            data.get("refuels"), list
        ):
            raise CorruptStore("Import data must contain vehicle and refuel lists")
        services = data.get("services")
        imported_settings = data.get("settings")
        if not isinstance(imported_settings, Mapping):
            imported_settings = {}
        document = {
            "version": data.get("version") or self.store.version,
            "vehicles": data["vehicles"],
            "refuels": data["refuels"],
            "services": services if isinstance(services, list) else [],
            "settings": {
                **settings_to_dict(self.settings),
                **imported_settings,
            },
        }
        result = audit_and_migrate(document)
        self.store = result.store
        self.save()
        logger.info(
            "Data imported: %d vehicles, %d refuels",
            len(self.store.vehicles),
            len(self.store.refuels),
        )
        return result
