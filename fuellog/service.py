"""Service records: repairs, vignettes, insurance, inspections."""

from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional


class ServiceType(Enum):
    """Service record categories."""

    SERVICE = "service"
    VIGNETTE = "vignette"
    INSURANCE = "insurance"
    INSPECTION = "inspection"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ServiceType":
        """Map a stored category string to a type; unknown values are OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class ServiceRecord:
    """An auxiliary cost event for a vehicle. Odometer is informational only."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        type: ServiceType,
        date: str,
        description: str,
        valid_until: Optional[str] = None,
        odometer: Optional[int] = None,
        cost: float = 0,
        note: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.type = type
        self.date = date
        self.description = description
        self.valid_until = valid_until
        self.odometer = odometer
        self.cost = cost or 0
        self.note = note

    @property
    def expiry(self) -> Optional[date]:
        """Parsed valid-until date, if any."""
        if not self.valid_until:
            return None
        try:
            return date.fromisoformat(self.valid_until)
        except ValueError:
            return None


def expiring_services(
    services: Iterable[ServiceRecord], today: date, days_ahead: int = 30
) -> List[ServiceRecord]:
    """Records whose validity ends within the next `days_ahead` days, soonest first."""
    horizon = today + timedelta(days=days_ahead)
    matching = [s for s in services if s.expiry and today <= s.expiry <= horizon]
    return sorted(matching, key=lambda s: s.expiry)


def expired_services(services: Iterable[ServiceRecord], today: date) -> List[ServiceRecord]:
    """Records whose validity has already ended, most recently expired first."""
    matching = [s for s in services if s.expiry and s.expiry < today]
    return sorted(matching, key=lambda s: s.expiry, reverse=True)


def service_costs(services: Iterable[ServiceRecord]) -> Dict[str, object]:
    """Total cost, cost per category, and record count."""
    by_type = {t.value: 0.0 for t in ServiceType}
    total = 0.0
    count = 0
    for record in services:
        cost = float(record.cost or 0)
        total += cost
        by_type[record.type.value] += cost
        count += 1
    return {"total": total, "by_type": by_type, "count": count}
