#!/usr/bin/env python3
"""Tests for refuel, service and vehicle candidate validation."""

from datetime import date, datetime

from fuellog import Settings, Vehicle, validate_refuel, validate_service, validate_vehicle
from fuellog.validation import is_missing, is_number, parse_bool, parse_date

TODAY = date(2024, 6, 15)


def make_candidate(**overrides):
    candidate = {
        "vehicle_id": "v1",
        "date": "2024-06-01",
        "odometer": 50000,
        "liters": 40.0,
        "price_per_liter": 36.9,
        "total_price": 1476.0,
    }
    candidate.update(overrides)
    return candidate


class TestHelpers:
    """Tests for is_missing, is_number and parse_date."""

    def test_zero_is_not_missing(self):
        assert not is_missing(0)
        assert is_missing(None)
        assert is_missing("   ")

    def test_bool_is_not_a_number(self):
        assert not is_number(True)
        assert is_number(3)
        assert is_number(2.5)

    def test_non_finite_is_not_a_number(self):
        assert not is_number(float("nan"))
        assert not is_number(float("inf"))

    def test_parse_date_accepts_iso_string_and_objects(self):
        assert parse_date("2024-06-01") == date(2024, 6, 1)
        assert parse_date(date(2024, 6, 1)) == date(2024, 6, 1)
        assert parse_date(datetime(2024, 6, 1, 12, 30)) == date(2024, 6, 1)

    def test_parse_date_rejects_invalid(self):
        assert parse_date("2024-02-30") is None
        assert parse_date("yesterday") is None
        assert parse_date(20240601) is None

    def test_parse_date_requires_full_calendar_date(self):
        """Year-only and year-month strings are not dates."""
        assert parse_date("2024") is None
        assert parse_date("2024-03") is None
        assert parse_date("20240601") is None
        assert parse_date("2024-06-01T08:15:00") == date(2024, 6, 1)

    def test_parse_bool(self):
        assert parse_bool(True) is True
        assert parse_bool("false") is False
        assert parse_bool(" No ") is False
        assert parse_bool("TRUE") is True
        assert parse_bool("maybe") is None
        assert parse_bool(0) is None
        assert parse_bool(None) is None


class TestValidateRefuel:
    """Tests for validate_refuel."""

    def test_valid_candidate(self):
        result = validate_refuel(make_candidate(), Settings(), today=TODAY)
        assert result.valid
        assert result.reasons == []

    def test_missing_fields_listed_together(self):
        """All missing required fields are named in one reason."""
        result = validate_refuel(
            make_candidate(odometer=None, liters=""), Settings(), today=TODAY
        )
        assert not result
        assert "Missing required fields: Odometer, Liters" in result.reasons

    def test_collects_every_violation(self):
        """Independent violations are all reported, not just the first."""
        result = validate_refuel(
            make_candidate(odometer=-1, liters=2000, date="2024-07-01"),
            Settings(),
            today=TODAY,
        )
        assert len(result.reasons) == 3
        assert "Odometer must be between 0 and 9999999" in result.reasons
        assert "Liters must be between 0.01 and 1000" in result.reasons
        assert "Date cannot be in the future" in result.reasons

    def test_odometer_zero_is_valid(self):
        result = validate_refuel(make_candidate(odometer=0), Settings(), today=TODAY)
        assert result.valid

    def test_fractional_odometer_rejected(self):
        result = validate_refuel(make_candidate(odometer=100.5), Settings(), today=TODAY)
        assert "Odometer must be a whole number" in result.reasons

    def test_odometer_upper_bound(self):
        assert validate_refuel(make_candidate(odometer=9_999_999), Settings(), today=TODAY)
        assert not validate_refuel(make_candidate(odometer=10_000_000), Settings(), today=TODAY)

    def test_non_numeric_liters(self):
        result = validate_refuel(make_candidate(liters="forty"), Settings(), today=TODAY)
        assert "Liters must be a number" in result.reasons

    def test_liters_above_tank_size(self):
        vehicle = Vehicle(id="v1", name="Octavia", tank_size=50)
        result = validate_refuel(make_candidate(liters=55.0), Settings(), vehicle, TODAY)
        assert result.reasons == ["Liters exceed the tank size of Octavia (50 l)"]

    def test_tank_size_check_skipped_without_tank(self):
        vehicle = Vehicle(id="v1", name="Octavia")
        result = validate_refuel(make_candidate(liters=55.0), Settings(), vehicle, TODAY)
        assert result.valid

    def test_price_outside_band(self):
        result = validate_refuel(make_candidate(price_per_liter=50.0), Settings(), today=TODAY)
        assert result.reasons == ["Price per liter outside the accepted band (25-45)"]

    def test_price_band_falls_back_when_unset(self):
        """Unset min/max price fall back to 0 and 1000."""
        settings = Settings(min_price=None, max_price=0)
        result = validate_refuel(make_candidate(price_per_liter=80.0), settings, today=TODAY)
        assert result.valid

    def test_total_price_must_be_positive(self):
        result = validate_refuel(make_candidate(total_price=0), Settings(), today=TODAY)
        assert "Total price must be a positive number" in result.reasons

    def test_invalid_date(self):
        result = validate_refuel(make_candidate(date="2024-13-01"), Settings(), today=TODAY)
        assert result.reasons == ["Date is not a valid date"]

    def test_partial_date_rejected(self):
        result = validate_refuel(make_candidate(date="2024-03"), Settings(), today=TODAY)
        assert result.reasons == ["Date is not a valid date"]

    def test_full_tank_string_must_be_boolean(self):
        result = validate_refuel(make_candidate(full_tank="sometimes"), Settings(), today=TODAY)
        assert result.reasons == ["Full tank must be true or false"]
        assert validate_refuel(make_candidate(full_tank="false"), Settings(), today=TODAY).valid

    def test_today_is_not_future(self):
        result = validate_refuel(make_candidate(date="2024-06-15"), Settings(), today=TODAY)
        assert result.valid

    def test_does_not_modify_candidate(self):
        candidate = make_candidate()
        before = dict(candidate)
        validate_refuel(candidate, Settings(), today=TODAY)
        assert candidate == before


class TestValidateService:
    """Tests for validate_service."""

    def test_valid(self):
        result = validate_service(
            {"vehicle_id": "v1", "date": "2024-01-10", "description": "Oil change", "cost": 1200}
        )
        assert result.valid

    def test_missing_description(self):
        result = validate_service({"vehicle_id": "v1", "date": "2024-01-10"})
        assert result.reasons == ["Missing required fields: Description"]

    def test_invalid_valid_until(self):
        result = validate_service(
            {
                "vehicle_id": "v1",
                "date": "2024-01-10",
                "description": "Vignette",
                "valid_until": "next year",
            }
        )
        assert result.reasons == ["Valid until is not a valid date"]

    def test_negative_cost(self):
        result = validate_service(
            {"vehicle_id": "v1", "date": "2024-01-10", "description": "x", "cost": -5}
        )
        assert result.reasons == ["Cost must be a non-negative number"]


class TestValidateVehicle:
    """Tests for validate_vehicle."""

    def test_name_required(self):
        assert validate_vehicle({"name": " "}).reasons == ["Missing required fields: Name"]

    def test_tank_size_range(self):
        assert validate_vehicle({"name": "Car", "tank_size": 50}).valid
        assert not validate_vehicle({"name": "Car", "tank_size": 0}).valid
        assert not validate_vehicle({"name": "Car", "tank_size": 501}).valid

    def test_tank_size_optional(self):
        assert validate_vehicle({"name": "Car"}).valid

    def test_fractional_tank_size(self):
        result = validate_vehicle({"name": "Car", "tank_size": 45.5})
        assert result.reasons == ["Tank size must be a whole number"]
