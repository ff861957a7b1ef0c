"""YAML loading and saving of the record store."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .audit import IntegrityViolation, audit_and_migrate
from .documents import store_to_document
from .errors import CorruptStore
from .store import RecordStore, seed_store

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """A loaded store plus what happened while loading it."""

    store: RecordStore
    violations: List[IntegrityViolation] = field(default_factory=list)
    migrated: bool = False
    backup_path: Optional[Path] = None
    notices: List[str] = field(default_factory=list)


def parse_store(raw: Union[bytes, str]) -> Dict[str, Any]:
    """Parse persisted store data. JSON backups parse too, being valid YAML."""
    try:
        data = yaml.load(raw, Loader=yaml.SafeLoader)
    except yaml.YAMLError as e:
        raise CorruptStore(f"Store is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise CorruptStore(f"Store must be a mapping, got {type(data).__name__}")
    return data


def dump_document(data: Dict[str, Any], fp) -> None:
    yaml.dump(
        data,
        fp,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=120,
    )


def save_store(filename: Union[str, Path], store: RecordStore) -> None:
    """Write the whole store to a YAML file."""
    with open(filename, "w", encoding="utf-8") as fp:
        dump_document(store_to_document(store), fp)
    logger.debug("Store saved to %s", filename)


def backup_corrupt(
    filename: Union[str, Path], raw: bytes, now: Optional[datetime] = None
) -> Path:
    """Preserve unreadable store bytes beside the store under a timestamped name."""
    path = Path(filename)
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    backup = path.with_name(f"{path.stem}.corrupted-{stamp}{path.suffix}")
    backup.write_bytes(raw)
    logger.info("Corrupted store backed up to %s", backup)
    return backup


def open_store(
    filename: Union[str, Path], now: Optional[datetime] = None, persist: bool = True
) -> LoadResult:
    """
    Load, migrate and audit the store at startup.

    - Missing file: a seeded default store is created and saved.
    - Unparseable file: raw bytes are backed up, a seeded default store
      replaces it, and a notice is returned for the user.
    - Otherwise the audited store is returned, and saved again if the
      migration or the audit changed anything.

    With persist=False nothing is written: no seed, no backup, no re-save.
    """
    path = Path(filename)
    if not path.exists():
        logger.info("No store at %s, seeding initial data", path)
        store = seed_store()
        if persist:
            save_store(path, store)
        return LoadResult(store=store)

    raw = path.read_bytes()
    try:
        document = parse_store(raw)
    except CorruptStore:
        logger.exception("Failed to parse store %s", path)
        store = seed_store()
        if not persist:
            return LoadResult(store=store, notices=["Data is corrupted; showing default data"])
        backup = backup_corrupt(path, raw, now)
        save_store(path, store)
        return LoadResult(
            store=store,
            backup_path=backup,
            notices=[f"Data was corrupted and has been reset; a backup is at {backup}"],
        )

    result = audit_and_migrate(document)
    notices = []
    if result.migrated:
        notices.append(f"Data upgraded to version {result.store.version}")
    if result.violations:
        notices.append(f"Repaired {len(result.violations)} data integrity issue(s)")
    if result.changed and persist:
        save_store(path, result.store)
    logger.info(
        "Store loaded: %d vehicles, %d refuels, %d services",
        len(result.store.vehicles),
        len(result.store.refuels),
        len(result.store.services),
    )
    return LoadResult(
        store=result.store,
        violations=result.violations,
        migrated=result.migrated,
        notices=notices,
    )
