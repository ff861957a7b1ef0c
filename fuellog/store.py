"""RecordStore - in-memory owner of vehicles, refuels, services and settings."""

import secrets
import time
from typing import List, Optional

from .refuel import Refuel
from .service import ServiceRecord
from .settings import Settings
from .validation import is_number
from .vehicle import Vehicle

DATA_VERSION = "2.3.0"


def _newest_first_key(refuel: Refuel):
    odometer = refuel.odometer if is_number(refuel.odometer) else -1
    return (str(refuel.date), odometer)


def generate_id() -> str:
    """Opaque, roughly time-ordered record identifier."""
    return f"{int(time.time() * 1000):x}{secrets.token_hex(4)}"


class RecordStore:
    """
    Storage and retrieval for all entities. No validation happens here;
    callers run candidates through the validator and chronology guard first.
    """

    def __init__(
        self,
        vehicles: Optional[List[Vehicle]] = None,
        refuels: Optional[List[Refuel]] = None,
        services: Optional[List[ServiceRecord]] = None,
        settings: Optional[Settings] = None,
        version: str = DATA_VERSION,
    ):
        self.vehicles = vehicles or []
        self.refuels = refuels or []
        self.services = services or []
        self.settings = settings or Settings()
        self.version = version

    # -- Vehicles -------------------------------------------------------------

    def get_vehicle(self, vehicle_id: Optional[str]) -> Optional[Vehicle]:
        for vehicle in self.vehicles:
            if vehicle.id == vehicle_id:
                return vehicle
        return None

    @property
    def active_vehicle(self) -> Optional[Vehicle]:
        """Configured active vehicle; first vehicle when none is configured."""
        if not self.settings.active_vehicle_id:
            return self.vehicles[0] if self.vehicles else None
        return self.get_vehicle(self.settings.active_vehicle_id)

    def add_vehicle(self, vehicle: Vehicle) -> None:
        self.vehicles.append(vehicle)
        if len(self.vehicles) == 1:
            self.settings.active_vehicle_id = vehicle.id

    def remove_vehicle(self, vehicle_id: str) -> bool:
        """Remove a vehicle and every record it owns."""
        before = len(self.vehicles)
        self.vehicles = [v for v in self.vehicles if v.id != vehicle_id]
        if len(self.vehicles) == before:
            return False
        self.refuels = [r for r in self.refuels if r.vehicle_id != vehicle_id]
        self.services = [s for s in self.services if s.vehicle_id != vehicle_id]
        if self.settings.active_vehicle_id == vehicle_id:
            self.settings.active_vehicle_id = (
                self.vehicles[0].id if self.vehicles else None
            )
        return True

    # -- Refuels --------------------------------------------------------------

    def list_refuels(self, vehicle_id: str) -> List[Refuel]:
        """Refuels for a vehicle, newest first."""
        owned = [r for r in self.refuels if r.vehicle_id == vehicle_id]
        return sorted(owned, key=_newest_first_key, reverse=True)

    def get_refuel(self, refuel_id: str) -> Optional[Refuel]:
        for refuel in self.refuels:
            if refuel.id == refuel_id:
                return refuel
        return None

    def add_refuel(self, refuel: Refuel) -> None:
        self.refuels.append(refuel)

    def replace_refuel(self, refuel: Refuel) -> None:
        """Replace the stored refuel with the same id."""
        for index, existing in enumerate(self.refuels):
            if existing.id == refuel.id:
                self.refuels[index] = refuel
                return
        raise KeyError(f"Refuel '{refuel.id}' not found")

    def remove_refuel(self, refuel_id: str) -> bool:
        before = len(self.refuels)
        self.refuels = [r for r in self.refuels if r.id != refuel_id]
        return len(self.refuels) < before

    # -- Services -------------------------------------------------------------

    def list_services(self, vehicle_id: str) -> List[ServiceRecord]:
        """Service records for a vehicle, newest first."""
        owned = [s for s in self.services if s.vehicle_id == vehicle_id]
        return sorted(owned, key=lambda s: str(s.date), reverse=True)

    def get_service(self, service_id: str) -> Optional[ServiceRecord]:
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    def add_service(self, service: ServiceRecord) -> None:
        self.services.append(service)

    def replace_service(self, service: ServiceRecord) -> None:
        for index, existing in enumerate(self.services):
            if existing.id == service.id:
                self.services[index] = service
                return
        raise KeyError(f"Service record '{service.id}' not found")

    def remove_service(self, service_id: str) -> bool:
        before = len(self.services)
        self.services = [s for s in self.services if s.id != service_id]
        return len(self.services) < before


def seed_store() -> RecordStore:
    """Fresh store with one sample vehicle so a first run shows something."""
    store = RecordStore()
    store.add_vehicle(
        Vehicle(
            id=generate_id(),
            name="Sample Car",
            manufacturer="Škoda",
            type="Octavia",
            engine="2.0 TDI",
            tank_size=50,
            is_default=True,
        )
    )
    return store
