"""Conversion between entity objects and the persisted store document (camelCase keys)."""

import datetime
from typing import Any, Dict, Optional

from .refuel import Refuel
from .service import ServiceRecord, ServiceType
from .settings import Settings
from .store import DATA_VERSION, RecordStore
from .vehicle import Vehicle
from .validation import parse_bool

SETTINGS_KEYS = {
    "currency": "currency",
    "activeVehicleId": "active_vehicle_id",
    "minPrice": "min_price",
    "maxPrice": "max_price",
    "darkMode": "dark_mode",
    "darkModeAuto": "dark_mode_auto",
    "notifications": "notifications",
    "cloudSync": "cloud_sync",
}


def _date_str(value: Any) -> Optional[str]:
    """Normalize YAML date scalars to ISO strings."""
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    return str(value)


def _number(value: Any) -> Any:
    """Numeric strings from older stores become numbers; anything else is kept."""
    if isinstance(value, str):
        try:
            as_float = float(value)
        except ValueError:
            return value
        return int(as_float) if as_float.is_integer() else as_float
    return value


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def vehicle_from_dict(d: Dict[str, Any]) -> Vehicle:
    return Vehicle(
        id=str(d["id"]),
        name=str(d["name"]),
        manufacturer=d.get("manufacturer"),
        type=d.get("type"),
        engine=d.get("engine"),
        tank_size=_number(d.get("tankSize")),
        is_default=parse_bool(d.get("isDefault")) is True,
    )


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    d = _drop_none(
        {
            "id": vehicle.id,
            "name": vehicle.name,
            "manufacturer": vehicle.manufacturer,
            "type": vehicle.type,
            "engine": vehicle.engine,
            "tankSize": vehicle.tank_size,
        }
    )
    d["isDefault"] = vehicle.is_default
    return d


def refuel_from_dict(d: Dict[str, Any]) -> Refuel:
    return Refuel(
        id=str(d["id"]),
        vehicle_id=str(d["vehicleId"]),
        date=_date_str(d.get("date")),
        odometer=_number(d.get("odometer")),
        liters=_number(d.get("liters")),
        price_per_liter=_number(d.get("pricePerLiter")),
        total_price=_number(d.get("totalPrice")),
        full_tank=parse_bool(d.get("isFullTank")) is not False,
        notes=d.get("notes"),
    )


def refuel_to_dict(refuel: Refuel) -> Dict[str, Any]:
    d = {
        "id": refuel.id,
        "vehicleId": refuel.vehicle_id,
        "date": refuel.date,
        "odometer": refuel.odometer,
        "liters": refuel.liters,
        "pricePerLiter": refuel.price_per_liter,
        "totalPrice": refuel.total_price,
        "isFullTank": refuel.full_tank,
    }
    if refuel.notes:
        d["notes"] = refuel.notes
    return d


def service_from_dict(d: Dict[str, Any]) -> ServiceRecord:
    return ServiceRecord(
        id=str(d["id"]),
        vehicle_id=str(d["vehicleId"]),
        type=ServiceType.parse(d.get("type")),
        date=_date_str(d.get("date")),
        description=d.get("description") or "",
        valid_until=_date_str(d.get("validUntil")),
        odometer=_number(d.get("odometer")),
        cost=_number(d.get("cost")) or 0,
        note=d.get("note"),
    )


def service_to_dict(service: ServiceRecord) -> Dict[str, Any]:
    d = {
        "id": service.id,
        "vehicleId": service.vehicle_id,
        "type": service.type.value,
        "date": service.date,
        "description": service.description,
    }
    if service.valid_until is not None:
        d["validUntil"] = service.valid_until
    if service.odometer is not None:
        d["odometer"] = service.odometer
    d["cost"] = service.cost
    if service.note:
        d["note"] = service.note
    return d


def settings_from_dict(d: Optional[Dict[str, Any]]) -> Settings:
    d = dict(d or {})
    settings = Settings()
    for key, attr in SETTINGS_KEYS.items():
        if key in d:
            setattr(settings, attr, d.pop(key))
    settings.extra = d
    return settings


def settings_to_dict(settings: Settings) -> Dict[str, Any]:
    d = dict(settings.extra)
    for key, attr in SETTINGS_KEYS.items():
        d[key] = getattr(settings, attr)
    return d


def store_from_document(doc: Dict[str, Any]) -> RecordStore:
    """Build a RecordStore from an audited document."""
    return RecordStore(
        vehicles=[vehicle_from_dict(v) for v in doc.get("vehicles") or []],
        refuels=[refuel_from_dict(r) for r in doc.get("refuels") or []],
        services=[service_from_dict(s) for s in doc.get("services") or []],
        settings=settings_from_dict(doc.get("settings")),
        version=str(doc.get("version") or DATA_VERSION),
    )


def store_to_document(store: RecordStore) -> Dict[str, Any]:
    """Plain, serializable document for a RecordStore."""
    return {
        "version": store.version,
        "settings": settings_to_dict(store.settings),
        "vehicles": [vehicle_to_dict(v) for v in store.vehicles],
        "refuels": [refuel_to_dict(r) for r in store.refuels],
        "services": [service_to_dict(s) for s in store.services],
    }
