#!/usr/bin/env python3
"""Tests for the load-time integrity audit."""

from fuellog import DATA_VERSION, audit_and_migrate
from fuellog.audit import audit_document


def make_doc(**overrides):
    doc = {
        "version": DATA_VERSION,
        "settings": {"activeVehicleId": "v1"},
        "vehicles": [{"id": "v1", "name": "Car"}],
        "refuels": [
            {
                "id": "r1",
                "vehicleId": "v1",
                "date": "2024-01-01",
                "odometer": 1000,
                "liters": 40,
                "pricePerLiter": 36,
                "totalPrice": 1440,
            }
        ],
        "services": [],
    }
    doc.update(overrides)
    return doc


class TestAuditDocument:
    """Tests for audit_document."""

    def test_clean_document_has_no_violations(self):
        doc = make_doc()
        assert audit_document(doc) == []
        assert len(doc["refuels"]) == 1

    def test_orphaned_refuel_dropped(self, caplog):
        """Refuels whose vehicle does not exist are removed and logged."""
        doc = make_doc()
        doc["refuels"].append({"id": "r2", "vehicleId": "gone", "odometer": 5})
        violations = audit_document(doc)
        assert [r["id"] for r in doc["refuels"]] == ["r1"]
        assert len(violations) == 1
        assert violations[0].collection == "refuels"
        assert violations[0].record["id"] == "r2"
        assert "orphaned" in caplog.text

    def test_orphaned_service_dropped(self):
        doc = make_doc(services=[{"id": "s1", "vehicleId": "gone", "date": "2024-01-01"}])
        audit_document(doc)
        assert doc["services"] == []

    def test_missing_key_fields_dropped(self):
        doc = make_doc()
        doc["refuels"].append({"id": "r2", "vehicleId": "v1"})
        doc["vehicles"].append({"id": "v2"})
        violations = audit_document(doc)
        assert len(violations) == 2
        assert [v["id"] for v in doc["vehicles"]] == ["v1"]

    def test_odometer_zero_is_present(self):
        doc = make_doc()
        doc["refuels"][0]["odometer"] = 0
        assert audit_document(doc) == []

    def test_non_mapping_records_dropped(self):
        doc = make_doc()
        doc["refuels"].append("garbage")
        assert len(audit_document(doc)) == 1

    def test_non_list_collection_reset(self):
        doc = make_doc(services="nope")
        violations = audit_document(doc)
        assert doc["services"] == []
        assert violations[0].reason == "collection is not a list"

    def test_vehicle_removed_cascades_to_refuels(self):
        """A vehicle without a name is dropped, and so are its refuels."""
        doc = make_doc(vehicles=[{"id": "v1"}])
        audit_document(doc)
        assert doc["vehicles"] == []
        assert doc["refuels"] == []

    def test_dangling_active_vehicle_repaired(self):
        doc = make_doc(settings={"activeVehicleId": "gone"})
        violations = audit_document(doc)
        assert doc["settings"]["activeVehicleId"] == "v1"
        assert violations[0].collection == "settings"


class TestAuditAndMigrate:
    """Tests for audit_and_migrate."""

    def test_input_not_modified(self):
        raw = make_doc(version="1.0.0")
        raw["refuels"].append({"id": "r2", "vehicleId": "gone", "odometer": 1})
        audit_and_migrate(raw)
        assert raw["version"] == "1.0.0"
        assert len(raw["refuels"]) == 2

    def test_builds_store(self):
        result = audit_and_migrate(make_doc(version="2.0.0"))
        assert result.migrated
        assert result.changed
        assert result.store.version == DATA_VERSION
        assert result.store.refuels[0].full_tank is True
        assert result.store.active_vehicle.id == "v1"

    def test_unchanged_store(self):
        result = audit_and_migrate(make_doc())
        assert not result.changed
