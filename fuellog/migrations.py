"""
Versioned schema migrations for the persisted store document.

Each step is tagged with the version that introduced it and is applied, in
order, to documents tagged with an older version. Steps only add missing
fields with defaults and are idempotent, so re-running one is harmless.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple

from .store import DATA_VERSION

logger = logging.getLogger(__name__)

LEGACY_VERSION = "1.0.0"


@dataclass(frozen=True)
class Migration:
    version: str
    description: str
    apply: Callable[[Dict[str, Any]], None]


def parse_version(version: Any) -> Tuple[int, ...]:
    """'2.1.0' -> (2, 1, 0). Unparseable tags sort before every real version."""
    try:
        return tuple(int(part) for part in str(version).split("."))
    except ValueError:
        return (0,)


def _settings(doc: Dict[str, Any]) -> Dict[str, Any]:
    if doc.get("settings") is None:
        doc["settings"] = {}
    return doc["settings"]


def _add_dark_mode_auto(doc: Dict[str, Any]) -> None:
    _settings(doc).setdefault("darkModeAuto", True)


def _add_price_band(doc: Dict[str, Any]) -> None:
    settings = _settings(doc)
    settings.setdefault("currency", "Kč")
    settings.setdefault("minPrice", 25)
    settings.setdefault("maxPrice", 45)
    settings.setdefault("notifications", True)


def _add_services(doc: Dict[str, Any]) -> None:
    if doc.get("services") is None:
        doc["services"] = []


def _add_sync_and_tank_flags(doc: Dict[str, Any]) -> None:
    _settings(doc).setdefault("cloudSync", False)
    # Older logs only held full fills.
    for refuel in doc.get("refuels") or []:
        if isinstance(refuel, dict):
            refuel.setdefault("isFullTank", True)
    for vehicle in doc.get("vehicles") or []:
        if isinstance(vehicle, dict):
            vehicle.setdefault("isDefault", False)


MIGRATIONS: List[Migration] = [
    Migration("2.0.0", "add automatic dark mode setting", _add_dark_mode_auto),
    Migration("2.1.0", "add currency, price band and notification settings", _add_price_band),
    Migration("2.2.0", "add service records collection", _add_services),
    Migration("2.3.0", "add cloud sync setting and full-tank flags", _add_sync_and_tank_flags),
]


def pending_migrations(version: Any) -> List[Migration]:
    """Steps newer than the given version, oldest first."""
    current = parse_version(version)
    steps = sorted(MIGRATIONS, key=lambda m: parse_version(m.version))
    return [m for m in steps if parse_version(m.version) > current]


def migrate(doc: Dict[str, Any]) -> bool:
    """
    Upgrade a store document in place to DATA_VERSION.

    Returns True if the document was upgraded. A failing step is logged and
    leaves the version tag untouched; the document is used as-is.
    """
    old_version = doc.get("version") or LEGACY_VERSION
    if parse_version(old_version) >= parse_version(DATA_VERSION):
        logger.debug("No migration needed (version %s)", old_version)
        return False

    logger.info("Migrating store from %s to %s", old_version, DATA_VERSION)
    try:
        for step in pending_migrations(old_version):
            logger.info("Applying migration %s: %s", step.version, step.description)
            step.apply(doc)
    except Exception:
        logger.exception("Migration from %s failed", old_version)
        return False

    doc["version"] = DATA_VERSION
    logger.info("Migration to %s completed", DATA_VERSION)
    return True
