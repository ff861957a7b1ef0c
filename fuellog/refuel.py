"""Refuel class for fill-up records."""

from datetime import date
from typing import Optional


class Refuel:
    """A single refueling event for one vehicle."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        date: str,
        odometer: int,
        liters: float,
        price_per_liter: float,
        total_price: float,
        full_tank: bool = True,
        notes: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.date = date
        self.odometer = odometer
        self.liters = liters
        self.price_per_liter = price_per_liter
        self.total_price = total_price
        self.full_tank = full_tank
        self.notes = notes

    @property
    def date_value(self) -> Optional[date]:
        """Parsed calendar date, or None if the stored date is malformed."""
        try:
            return date.fromisoformat(self.date)
        except (TypeError, ValueError):
            return None

    def __repr__(self) -> str:
        kind = "full" if self.full_tank else "partial"
        return f"Refuel({self.id!r}, {self.date}, {self.odometer}, {self.liters}L {kind})"
