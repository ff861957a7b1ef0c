"""Exception types raised by the fuel log engine."""

from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from .refuel import Refuel


class FuelLogError(Exception):
    """Base class for all fuel log errors."""


class ValidationError(FuelLogError):
    """A candidate record was rejected by the validator."""

    def __init__(self, reasons: List[str]):
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons) or "Invalid record")


class OrderingConflict(FuelLogError):
    """A refuel would break odometer/date monotonicity against a neighbor."""

    def __init__(self, conflicting_record: "Refuel", reason: str):
        self.conflicting_record = conflicting_record
        self.reason = reason
        super().__init__(reason)


class CorruptStore(FuelLogError):
    """Persisted store data could not be parsed into a store document."""
