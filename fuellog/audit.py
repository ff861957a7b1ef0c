"""
Integrity audit run once over a loaded store document.

Migrates the document to the current schema, then drops records that are
missing key fields or that belong to a vehicle which no longer exists.
Every drop is logged with the offending record and reported back so the
caller can persist the cleaned store.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .documents import store_from_document
from .migrations import migrate
from .store import RecordStore
from .validation import is_missing

logger = logging.getLogger(__name__)

COLLECTIONS = ("vehicles", "refuels", "services")

REQUIRED_KEYS = {
    "vehicles": ("id", "name"),
    "refuels": ("id", "vehicleId", "odometer"),
    "services": ("id", "vehicleId", "date"),
}


@dataclass
class IntegrityViolation:
    """A record removed or repaired by the audit. Reported, never raised."""

    collection: str
    reason: str
    record: Any


@dataclass
class AuditResult:
    store: RecordStore
    violations: List[IntegrityViolation] = field(default_factory=list)
    migrated: bool = False

    @property
    def changed(self) -> bool:
        """True when the cleaned store differs from what was persisted."""
        return self.migrated or bool(self.violations)


def _drop(violations, collection: str, reason: str, record: Any) -> None:
    logger.warning("Removed %s record (%s): %r", collection, reason, record)
    violations.append(IntegrityViolation(collection, reason, record))


def _ensure_collections(doc: Dict[str, Any], violations) -> None:
    for name in COLLECTIONS:
        value = doc.get(name)
        if value is None:
            doc[name] = []
        elif not isinstance(value, list):
            _drop(violations, name, "collection is not a list", value)
            doc[name] = []
    if doc.get("settings") is not None and not isinstance(doc["settings"], dict):
        _drop(violations, "settings", "settings is not a mapping", doc["settings"])
        doc["settings"] = {}


def _filter_fields(doc: Dict[str, Any], collection: str, violations) -> None:
    kept = []
    for record in doc[collection]:
        if not isinstance(record, dict):
            _drop(violations, collection, "not a mapping", record)
            continue
        missing = [k for k in REQUIRED_KEYS[collection] if is_missing(record.get(k))]
        if missing:
            _drop(violations, collection, f"missing {', '.join(missing)}", record)
            continue
        kept.append(record)
    doc[collection] = kept


def _filter_orphans(doc: Dict[str, Any], collection: str, vehicle_ids, violations) -> None:
    kept = []
    for record in doc[collection]:
        if str(record["vehicleId"]) not in vehicle_ids:
            _drop(violations, collection, "orphaned (unknown vehicle)", record)
            continue
        kept.append(record)
    doc[collection] = kept


def audit_document(doc: Dict[str, Any]) -> List[IntegrityViolation]:
    """Clean a migrated store document in place; return what was removed."""
    violations: List[IntegrityViolation] = []
    _ensure_collections(doc, violations)

    for collection in COLLECTIONS:
        _filter_fields(doc, collection, violations)

    vehicle_ids = {str(v["id"]) for v in doc["vehicles"]}
    _filter_orphans(doc, "refuels", vehicle_ids, violations)
    _filter_orphans(doc, "services", vehicle_ids, violations)

    settings = doc.get("settings") or {}
    active = settings.get("activeVehicleId")
    if active is not None and str(active) not in vehicle_ids:
        replacement = doc["vehicles"][0]["id"] if doc["vehicles"] else None
        logger.warning(
            "Active vehicle %r no longer exists; using %r", active, replacement
        )
        violations.append(
            IntegrityViolation("settings", "active vehicle does not exist", active)
        )
        settings["activeVehicleId"] = replacement
        doc["settings"] = settings

    if violations:
        logger.warning("Data integrity issues fixed: %d", len(violations))
    return violations


def audit_and_migrate(raw: Mapping[str, Any]) -> AuditResult:
    """
    Migrate and audit a raw store document, returning the cleaned store.

    The input is not modified.
    """
    doc = copy.deepcopy(dict(raw))
    migrated = migrate(doc)
    violations = audit_document(doc)
    return AuditResult(
        store=store_from_document(doc), violations=violations, migrated=migrated
    )
