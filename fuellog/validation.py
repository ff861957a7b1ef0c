"""
Candidate record validation.

Validators are pure: they look at a candidate mapping (raw field values as
entered by the user, snake_case keys) plus the settings and owning vehicle,
and return a ValidationResult listing every violation found. They never
raise and never touch the store.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, List, Mapping, Optional

from dateutil.parser import isoparse

from .settings import Settings
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

MAX_ODOMETER = 9_999_999
MIN_LITERS, MAX_LITERS = 0.01, 1000
MIN_PRICE, MAX_PRICE = 0.01, 1000
MIN_TANK_SIZE, MAX_TANK_SIZE = 1, 500

REFUEL_REQUIRED = (
    "vehicle_id",
    "date",
    "odometer",
    "liters",
    "price_per_liter",
    "total_price",
)
SERVICE_REQUIRED = ("vehicle_id", "date", "description")

LABELS = {
    "vehicle_id": "Vehicle",
    "date": "Date",
    "odometer": "Odometer",
    "liters": "Liters",
    "price_per_liter": "Price per liter",
    "total_price": "Total price",
    "description": "Description",
    "valid_until": "Valid until",
    "cost": "Cost",
    "name": "Name",
    "tank_size": "Tank size",
}


@dataclass
class ValidationResult:
    """Outcome of validating a candidate record."""

    reasons: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.reasons

    def __bool__(self) -> bool:
        return self.valid


def is_missing(value: Any) -> bool:
    """Absent or blank; zero counts as present."""
    return value is None or (isinstance(value, str) and not value.strip())


def is_number(value: Any) -> bool:
    """Real, finite number. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


# Year-only and year-month forms are not dates.
ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}($|[T ])")

TRUE_STRINGS = ("true", "yes", "1")
FALSE_STRINGS = ("false", "no", "0")


def parse_bool(value: Any) -> Optional[bool]:
    """Real booleans and "true"/"false" style strings; None for anything else."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    return None


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (or date/datetime object); None if it is not a valid date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not ISO_DATE.match(text):
        return None
    try:
        return isoparse(text).date()
    except (ValueError, OverflowError):
        return None


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _check_required(candidate: Mapping[str, Any], fields, reasons: List[str]) -> None:
    missing = [f for f in fields if is_missing(candidate.get(f))]
    if missing:
        logger.debug("Missing required fields: %s", missing)
        reasons.append(
            "Missing required fields: " + ", ".join(LABELS[f] for f in missing)
        )


def _check_range(
    candidate: Mapping[str, Any], key: str, low: float, high: float, reasons: List[str]
) -> bool:
    """Append a reason unless the field is a number within [low, high]. Missing is skipped."""
    value = candidate.get(key)
    if is_missing(value):
        return False
    if not is_number(value):
        reasons.append(f"{LABELS[key]} must be a number")
        return False
    if value < low or value > high:
        reasons.append(f"{LABELS[key]} must be between {_fmt(low)} and {_fmt(high)}")
        return False
    return True


def validate_refuel(
    candidate: Mapping[str, Any],
    settings: Settings,
    vehicle: Optional[Vehicle] = None,
    today: Optional[date] = None,
) -> ValidationResult:
    """
    Check a refuel candidate before it is admitted to the store.

    All violations are collected:
    - required fields present
    - odometer a whole number within 0..9,999,999
    - liters within 0.01..1000, and not above the vehicle's tank size
    - price per liter within 0.01..1000 and inside the configured price band
    - total price positive
    - date a valid calendar date not later than today
    """
    today = today or date.today()
    result = ValidationResult()
    reasons = result.reasons

    _check_required(candidate, REFUEL_REQUIRED, reasons)

    if _check_range(candidate, "odometer", 0, MAX_ODOMETER, reasons):
        if not float(candidate["odometer"]).is_integer():
            reasons.append("Odometer must be a whole number")

    if _check_range(candidate, "liters", MIN_LITERS, MAX_LITERS, reasons):
        liters = candidate["liters"]
        if vehicle is not None and vehicle.tank_size and liters > vehicle.tank_size:
            reasons.append(
                f"Liters exceed the tank size of {vehicle.name} ({_fmt(vehicle.tank_size)} l)"
            )

    if _check_range(candidate, "price_per_liter", MIN_PRICE, MAX_PRICE, reasons):
        price = candidate["price_per_liter"]
        low, high = settings.price_band
        if price < low or price > high:
            reasons.append(f"Price per liter outside the accepted band ({_fmt(low)}-{_fmt(high)})")

    total = candidate.get("total_price")
    if not is_missing(total) and (not is_number(total) or total <= 0):
        reasons.append("Total price must be a positive number")

    full_tank = candidate.get("full_tank")
    if not is_missing(full_tank) and parse_bool(full_tank) is None:
        reasons.append("Full tank must be true or false")

    raw_date = candidate.get("date")
    if not is_missing(raw_date):
        parsed = parse_date(raw_date)
        if parsed is None:
            reasons.append("Date is not a valid date")
        elif parsed > today:
            reasons.append("Date cannot be in the future")

    if reasons:
        logger.warning("Refuel rejected: %s", reasons)
    return result


def validate_service(candidate: Mapping[str, Any]) -> ValidationResult:
    """Check a service record candidate."""
    result = ValidationResult()
    reasons = result.reasons

    _check_required(candidate, SERVICE_REQUIRED, reasons)

    if not is_missing(candidate.get("date")) and parse_date(candidate["date"]) is None:
        reasons.append("Date is not a valid date")
    valid_until = candidate.get("valid_until")
    if not is_missing(valid_until) and parse_date(valid_until) is None:
        reasons.append("Valid until is not a valid date")

    cost = candidate.get("cost")
    if not is_missing(cost) and (not is_number(cost) or cost < 0):
        reasons.append("Cost must be a non-negative number")
    _check_range(candidate, "odometer", 0, MAX_ODOMETER, reasons)

    if reasons:
        logger.warning("Service record rejected: %s", reasons)
    return result


def validate_vehicle(candidate: Mapping[str, Any]) -> ValidationResult:
    """Check a vehicle candidate: a name, and a sane tank size if one is given."""
    result = ValidationResult()
    if is_missing(candidate.get("name")):
        result.reasons.append("Missing required fields: Name")
    if _check_range(candidate, "tank_size", MIN_TANK_SIZE, MAX_TANK_SIZE, result.reasons):
        if not float(candidate["tank_size"]).is_integer():
            result.reasons.append("Tank size must be a whole number")
    return result
