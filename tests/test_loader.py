#!/usr/bin/env python3
"""Tests for loading and saving the YAML store."""

from datetime import datetime

import pytest
import yaml

from fuellog import CorruptStore, DATA_VERSION, open_store, parse_store, save_store
from fuellog.store import seed_store

NOW = datetime(2024, 6, 15, 10, 30, 0)


class TestParseStore:
    """Tests for parse_store."""

    def test_yaml_mapping(self):
        assert parse_store("version: '2.3.0'\nvehicles: []\n") == {
            "version": "2.3.0",
            "vehicles": [],
        }

    def test_json_parses(self):
        """JSON backups are accepted as YAML."""
        assert parse_store('{"vehicles": [], "refuels": []}') == {"vehicles": [], "refuels": []}

    def test_invalid_yaml(self):
        with pytest.raises(CorruptStore):
            parse_store("vehicles: [unclosed")

    def test_non_mapping(self):
        with pytest.raises(CorruptStore):
            parse_store("- just\n- a list\n")


class TestOpenStore:
    """Tests for open_store."""

    def test_missing_file_seeded(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        result = open_store(path)
        assert path.exists()
        assert len(result.store.vehicles) == 1
        assert result.store.vehicles[0].tank_size == 50
        assert result.store.active_vehicle is result.store.vehicles[0]
        assert result.notices == []

    def test_round_trip(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        store = seed_store()
        store.settings.currency = "EUR"
        store.settings.extra["theme"] = "blue"
        save_store(path, store)

        result = open_store(path)
        assert result.store.settings.currency == "EUR"
        assert result.store.settings.extra == {"theme": "blue"}
        assert result.store.vehicles[0].name == "Sample Car"
        assert not result.migrated
        assert result.violations == []

    def test_saved_file_uses_camel_case(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        save_store(path, seed_store())
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert data["version"] == DATA_VERSION
        assert "tankSize" in data["vehicles"][0]
        assert "activeVehicleId" in data["settings"]

    def test_corrupt_file_backed_up_and_reset(self, tmp_path):
        """Unparseable bytes are preserved beside the store, then replaced."""
        path = tmp_path / "fuel_log.yaml"
        path.write_bytes(b"vehicles: [unclosed")

        result = open_store(path, now=NOW)

        backup = tmp_path / "fuel_log.corrupted-20240615103000.yaml"
        assert result.backup_path == backup
        assert backup.read_bytes() == b"vehicles: [unclosed"
        assert len(result.store.vehicles) == 1
        assert "backup" in result.notices[0]
        assert parse_store(path.read_bytes())["version"] == DATA_VERSION

    def test_old_store_migrated_and_saved(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        path.write_text(
            """
vehicles:
  - id: v1
    name: Car
refuels:
  - id: r1
    vehicleId: v1
    date: 2024-01-05
    odometer: 1000
    liters: 40
    pricePerLiter: 36
    totalPrice: 1440
  - id: r2
    vehicleId: v9
    odometer: 1500
""",
            encoding="utf-8",
        )

        result = open_store(path)

        assert result.migrated
        assert len(result.violations) == 1
        assert f"Data upgraded to version {DATA_VERSION}" in result.notices
        assert "Repaired 1 data integrity issue(s)" in result.notices
        assert result.store.refuels[0].date == "2024-01-05"

        saved = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert saved["version"] == DATA_VERSION
        assert [r["id"] for r in saved["refuels"]] == ["r1"]

    def test_numeric_strings_coerced(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        path.write_text(
            """
version: '2.3.0'
vehicles:
  - id: v1
    name: Car
refuels:
  - id: r1
    vehicleId: v1
    date: '2024-01-05'
    odometer: '1000'
    liters: '40.5'
    pricePerLiter: 36
    totalPrice: 1458
""",
            encoding="utf-8",
        )
        refuel = open_store(path).store.refuels[0]
        assert refuel.odometer == 1000
        assert refuel.liters == 40.5

    def test_text_flags_read_as_booleans(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        path.write_text(
            """
version: '2.3.0'
vehicles:
  - id: v1
    name: Car
    isDefault: 'false'
refuels:
  - id: r1
    vehicleId: v1
    date: '2024-01-05'
    odometer: 1000
    liters: 40
    pricePerLiter: 36
    totalPrice: 1440
    isFullTank: 'false'
""",
            encoding="utf-8",
        )
        store = open_store(path).store
        assert store.refuels[0].full_tank is False
        assert store.vehicles[0].is_default is False


class TestOpenStoreWithoutPersist:
    """open_store(persist=False) loads the same data but never touches the disk."""

    def test_missing_file_not_created(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        result = open_store(path, persist=False)
        assert len(result.store.vehicles) == 1
        assert not path.exists()

    def test_corrupt_file_left_alone(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        path.write_bytes(b"vehicles: [unclosed")
        result = open_store(path, now=NOW, persist=False)
        assert result.backup_path is None
        assert result.notices == ["Data is corrupted; showing default data"]
        assert path.read_bytes() == b"vehicles: [unclosed"
        assert list(tmp_path.iterdir()) == [path]

    def test_old_store_migrated_in_memory_only(self, tmp_path):
        path = tmp_path / "fuel_log.yaml"
        original = "vehicles:\n  - id: v1\n    name: Car\nrefuels: []\n"
        path.write_text(original, encoding="utf-8")
        result = open_store(path, persist=False)
        assert result.migrated
        assert result.store.version == DATA_VERSION
        assert path.read_text(encoding="utf-8") == original
