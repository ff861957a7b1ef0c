#!/usr/bin/env python3
"""Tests for RecordStore."""

import pytest

from fuellog import RecordStore, Refuel, ServiceRecord, ServiceType, Vehicle
from fuellog.store import generate_id, seed_store


def make_refuel(id, vehicle_id, date, odometer):
    return Refuel(id, vehicle_id, date, odometer, 40.0, 36.0, 1440.0)


@pytest.fixture
def store():
    store = RecordStore()
    store.add_vehicle(Vehicle(id="v1", name="First"))
    store.add_vehicle(Vehicle(id="v2", name="Second"))
    store.add_refuel(make_refuel("r1", "v1", "2024-01-01", 1000))
    store.add_refuel(make_refuel("r2", "v1", "2024-02-01", 1500))
    store.add_refuel(make_refuel("r3", "v2", "2024-01-10", 300))
    store.add_service(
        ServiceRecord("s1", "v1", ServiceType.SERVICE, "2024-01-05", "Oil", cost=1200)
    )
    return store


class TestVehicles:
    """Tests for vehicle storage and the active vehicle."""

    def test_first_vehicle_becomes_active(self, store):
        assert store.settings.active_vehicle_id == "v1"
        assert store.active_vehicle.id == "v1"

    def test_active_falls_back_to_first(self):
        store = RecordStore(vehicles=[Vehicle(id="v1", name="Car")])
        assert store.active_vehicle.id == "v1"

    def test_no_vehicles(self):
        assert RecordStore().active_vehicle is None

    def test_remove_cascades(self, store):
        """Removing a vehicle removes its refuels and services too."""
        assert store.remove_vehicle("v1")
        assert [r.id for r in store.refuels] == ["r3"]
        assert store.services == []

    def test_remove_active_promotes_next(self, store):
        store.remove_vehicle("v1")
        assert store.settings.active_vehicle_id == "v2"
        store.remove_vehicle("v2")
        assert store.settings.active_vehicle_id is None

    def test_remove_unknown(self, store):
        assert not store.remove_vehicle("nope")
        assert len(store.vehicles) == 2


class TestRefuels:
    """Tests for refuel storage."""

    def test_list_newest_first(self, store):
        assert [r.id for r in store.list_refuels("v1")] == ["r2", "r1"]

    def test_list_tolerates_malformed_date(self, store):
        store.add_refuel(make_refuel("bad", "v1", None, None))
        assert len(store.list_refuels("v1")) == 3

    def test_replace(self, store):
        store.replace_refuel(make_refuel("r1", "v1", "2024-01-02", 1100))
        assert store.get_refuel("r1").odometer == 1100

    def test_replace_unknown(self, store):
        with pytest.raises(KeyError):
            store.replace_refuel(make_refuel("nope", "v1", "2024-01-02", 1100))

    def test_remove(self, store):
        assert store.remove_refuel("r1")
        assert not store.remove_refuel("r1")
        assert store.get_refuel("r1") is None


class TestServices:
    """Tests for service record storage."""

    def test_list_and_remove(self, store):
        assert [s.id for s in store.list_services("v1")] == ["s1"]
        assert store.remove_service("s1")
        assert store.list_services("v1") == []


class TestSeed:
    """Tests for seed_store and generate_id."""

    def test_seeded_vehicle(self):
        store = seed_store()
        vehicle = store.active_vehicle
        assert vehicle.manufacturer == "Škoda"
        assert vehicle.tank_size == 50
        assert vehicle.is_default

    def test_ids_unique(self):
        assert len({generate_id() for _ in range(100)}) == 100
