"""Vehicle class for the cars a fuel log tracks."""

from typing import Optional


class Vehicle:
    """A tracked vehicle. Owns refuel and service records by id."""

    def __init__(
        self,
        id: str,
        name: str,
        manufacturer: Optional[str] = None,
        type: Optional[str] = None,
        engine: Optional[str] = None,
        tank_size: Optional[float] = None,
        is_default: bool = False,
    ):
        self.id = id
        self.name = name
        self.manufacturer = manufacturer
        self.type = type
        self.engine = engine
        self.tank_size = tank_size
        self.is_default = is_default or False

    @property
    def label(self) -> str:
        """Human-readable vehicle label."""
        details = " ".join(p for p in (self.manufacturer, self.type) if p)
        return f"{self.name} ({details})" if details else self.name
