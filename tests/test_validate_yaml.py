#!/usr/bin/env python3
"""Tests for validate_yaml schema validation."""

from fuellog import save_store
from fuellog.store import seed_store
from validate_yaml import load_schema, main, validate_store_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "vehicles" in schema["properties"]
        assert "refuels" in schema["properties"]
        assert "services" in schema["properties"]


class TestValidateStoreFile:
    """Tests for validate_store_file function."""

    def test_valid_minimal_returns_no_errors(self, tmp_path):
        """Valid minimal store file returns empty error list."""
        path = tmp_path / "valid.yaml"
        path.write_text("""
version: '2.3.0'
vehicles:
  - id: v1
    name: Octavia
    tankSize: 50
refuels:
  - id: r1
    vehicleId: v1
    date: '2024-06-01'
    odometer: 50000
    liters: 40.5
    pricePerLiter: 36.9
    totalPrice: 1494.45
    isFullTank: true
""")
        errors = validate_store_file(path, load_schema())
        assert errors == []

    def test_saved_store_is_valid(self, tmp_path):
        """What the loader writes passes the schema."""
        path = tmp_path / "fuel_log.yaml"
        save_store(path, seed_store())
        assert validate_store_file(path, load_schema()) == []

    def test_missing_required_refuel_field_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("""
version: '2.3.0'
vehicles: []
refuels:
  - id: r1
    vehicleId: v1
    date: '2024-06-01'
    odometer: 50000
    # liters missing
    pricePerLiter: 36.9
    totalPrice: 1494.45
""")
        errors = validate_store_file(path, load_schema())
        assert any("Schema validation" in e for e in errors)
        assert any("refuels.0" in e for e in errors)

    def test_unknown_service_type_returns_errors(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("""
version: '2.3.0'
vehicles: []
refuels: []
services:
  - id: s1
    vehicleId: v1
    type: car wash
    date: '2024-06-01'
    description: Wash
""")
        assert validate_store_file(path, load_schema())

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        """Invalid YAML syntax returns YAML parse error."""
        path = tmp_path / "bad.yaml"
        path.write_text("vehicles: [unclosed\n")
        errors = validate_store_file(path, load_schema())
        assert len(errors) >= 1
        assert any("YAML" in e for e in errors)

    def test_nonexistent_file_returns_errors(self, tmp_path):
        """Nonexistent file returns error (caught by validate_store_file)."""
        errors = validate_store_file(tmp_path / "nonexistent.yaml", load_schema())
        assert len(errors) >= 1


class TestMain:
    """Tests for the command-line entry point."""

    def test_exit_codes(self, tmp_path, capsys):
        good = tmp_path / "good.yaml"
        save_store(good, seed_store())
        bad = tmp_path / "bad.yaml"
        bad.write_text("vehicles: [unclosed\n")

        assert main([str(good)]) == 0
        assert main([str(good), str(bad)]) == 1
        out = capsys.readouterr().out
        assert "OK: good.yaml" in out
        assert "FAIL: bad.yaml" in out

    def test_no_arguments(self, capsys):
        assert main([]) == 1
