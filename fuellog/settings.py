"""Per-install settings persisted alongside the record store."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_MIN_PRICE = 25
DEFAULT_MAX_PRICE = 45


@dataclass
class Settings:
    """User settings. Every field has a default so a fresh install works."""

    currency: str = "Kč"
    active_vehicle_id: Optional[str] = None
    min_price: Optional[float] = DEFAULT_MIN_PRICE
    max_price: Optional[float] = DEFAULT_MAX_PRICE
    dark_mode: bool = False
    dark_mode_auto: bool = True
    notifications: bool = True
    cloud_sync: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def price_band(self):
        """Accepted (min, max) price per liter; unset bounds fall back to 0 and 1000."""
        return (self.min_price or 0, self.max_price or 1000)
