#!/usr/bin/env python3
"""
Unified CLI for the vehicle fuel log.

Commands:
  vehicles        - List vehicles
  add-vehicle     - Add a vehicle
  delete-vehicle  - Delete a vehicle with all its records
  use             - Set the active vehicle
  log             - Add a refuel
  edit            - Edit a refuel
  delete          - Delete a refuel
  history         - View refuels with per-record consumption
  stats           - Lifetime, seasonal and per-segment consumption
  service         - Add a service record (repair, vignette, insurance, ...)
  services        - View service records, expiries and costs
  export-csv      - Export refuels of a vehicle to CSV
  import          - Replace the store with a JSON/YAML backup
  audit           - Show what was repaired when the store was loaded
"""

import argparse
import os
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import Dict, List, Optional

from fuellog import (
    CorruptStore,
    FuelTracker,
    OrderingConflict,
    Refuel,
    ServiceRecord,
    ServiceType,
    ValidationError,
    configure_logging,
    parse_store,
    refuels_to_csv,
)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_distance(distance: Optional[float]) -> str:
    """Format odometer/distance for display."""
    return f"{distance:,.0f}" if distance is not None else "-"


def format_liters(liters: Optional[float]) -> str:
    """Format liters for display."""
    return f"{liters:,.2f}" if liters is not None else "-"


def format_cost(cost: Optional[float], currency: str = "Kč") -> str:
    """Format cost for display."""
    return f"{cost:,.2f} {currency}" if cost is not None else "-"


def format_consumption(value: Optional[float]) -> str:
    """Format l/100 consumption; indeterminate shows as a dash."""
    return f"{value:.1f}" if value is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def print_errors(reasons: List[str]) -> None:
    for reason in reasons:
        print(f"Error: {reason}")


def print_notices(tracker: FuelTracker) -> None:
    for notice in tracker.notices:
        print(f"Note: {notice}")


def resolve_vehicle(tracker: FuelTracker, vehicle_id: Optional[str]):
    """Vehicle named on the command line, else the active one."""
    vehicle = tracker.get_vehicle(vehicle_id) if vehicle_id else tracker.active_vehicle
    if vehicle is None:
        if vehicle_id:
            print(f"Error: Unknown vehicle '{vehicle_id}'")
        else:
            print("Error: No vehicle selected. Add one with add-vehicle.")
    return vehicle


# =============================================================================
# Vehicle commands
# =============================================================================


def make_vehicle_table(tracker: FuelTracker) -> List[List[str]]:
    """Convert vehicles to table rows, marking the active one."""
    active = tracker.active_vehicle
    rows = []
    for vehicle in tracker.vehicles:
        rows.append(
            [
                "*" if active is not None and vehicle.id == active.id else "",
                vehicle.id,
                vehicle.name,
                vehicle.manufacturer or "-",
                vehicle.type or "-",
                vehicle.engine or "-",
                f"{vehicle.tank_size:g} l" if vehicle.tank_size else "-",
            ]
        )
    return rows


def cmd_vehicles(tracker: FuelTracker, args) -> int:
    """List vehicles."""
    if not tracker.vehicles:
        print("No vehicles.")
        return 0
    headers = ["", "ID", "Name", "Make", "Model", "Engine", "Tank"]
    print(tabulate(make_vehicle_table(tracker), headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(tracker: FuelTracker, args) -> int:
    """Add a vehicle."""
    try:
        vehicle = tracker.add_vehicle(
            {
                "name": args.name,
                "manufacturer": args.manufacturer,
                "type": args.type,
                "engine": args.engine,
                "tank_size": args.tank_size,
            }
        )
    except ValidationError as e:
        print_errors(e.reasons)
        return 1

    print(f"Vehicle: {vehicle.label}")
    print(f"  ID: {vehicle.id}")
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0
    print("Vehicle saved.")
    return 0


def cmd_delete_vehicle(tracker: FuelTracker, args) -> int:
    """Delete a vehicle with all its refuels and service records."""
    vehicle = tracker.get_vehicle(args.vehicle_id)
    if vehicle is None:
        print(f"Error: Unknown vehicle '{args.vehicle_id}'")
        return 1

    refuels = len(tracker.list_refuels(vehicle.id))
    services = len(tracker.list_services(vehicle.id))
    print(f"Deleting {vehicle.label}: {refuels} refuels, {services} service records")
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    tracker.delete_vehicle(vehicle.id)
    active = tracker.active_vehicle
    print("Vehicle deleted.")
    print(f"Active vehicle: {active.label if active else '-'}")
    return 0


def cmd_use(tracker: FuelTracker, args) -> int:
    """Set the active vehicle."""
    try:
        tracker.set_active_vehicle(args.vehicle_id)
    except KeyError:
        print(f"Error: Unknown vehicle '{args.vehicle_id}'")
        return 1
    print(f"Active vehicle: {tracker.active_vehicle.label}")
    if args.dry_run:
        print("(dry run - no changes made)")
    return 0


# =============================================================================
# Refuel commands
# =============================================================================


def refuel_changes(args) -> Dict[str, object]:
    """Refuel fields given on the command line (unset options are left out)."""
    changes = {
        "date": args.date,
        "odometer": args.odometer,
        "liters": args.liters,
        "price_per_liter": args.price,
        "total_price": args.total,
        "notes": args.notes,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if args.full_tank is not None:
        changes["full_tank"] = args.full_tank
    return changes


def print_refuel(refuel: Refuel, currency: str) -> None:
    print(f"  Date:     {refuel.date}")
    print(f"  Odometer: {format_distance(refuel.odometer)}")
    print(f"  Liters:   {format_liters(refuel.liters)}")
    print(f"  Price:    {format_cost(refuel.price_per_liter, currency)}/l")
    print(f"  Total:    {format_cost(refuel.total_price, currency)}")
    print(f"  Tank:     {'full' if refuel.full_tank else 'partial'}")
    if refuel.notes:
        print(f"  Notes:    {refuel.notes}")


def cmd_log(tracker: FuelTracker, args) -> int:
    """Add a refuel."""
    vehicle = resolve_vehicle(tracker, args.vehicle)
    if vehicle is None:
        return 1

    candidate = {
        "vehicle_id": vehicle.id,
        "date": args.date or date.today().isoformat(),
        "full_tank": True,
        **refuel_changes(args),
    }
    try:
        refuel = tracker.add_refuel(candidate)
    except ValidationError as e:
        print_errors(e.reasons)
        return 1
    except OrderingConflict as e:
        print(f"Error: {e.reason}")
        return 1

    print(f"Adding refuel to {vehicle.label}:")
    print_refuel(refuel, tracker.settings.currency)
    consumption = tracker.compute_per_record_consumption(vehicle.id).get(refuel.id)
    if consumption is not None:
        print(f"  Consumption: {format_consumption(consumption)} l/100")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0
    print("Refuel saved.")
    return 0


def cmd_edit(tracker: FuelTracker, args) -> int:
    """Edit a refuel."""
    try:
        refuel = tracker.update_refuel(args.refuel_id, refuel_changes(args))
    except KeyError:
        print(f"Error: Unknown refuel '{args.refuel_id}'")
        return 1
    except ValidationError as e:
        print_errors(e.reasons)
        return 1
    except OrderingConflict as e:
        print(f"Error: {e.reason}")
        return 1

    print(f"Refuel {refuel.id}:")
    print_refuel(refuel, tracker.settings.currency)
    print()
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0
    print("Refuel updated.")
    return 0


def cmd_delete(tracker: FuelTracker, args) -> int:
    """Delete a refuel."""
    if args.dry_run:
        found = tracker.store.get_refuel(args.refuel_id) is not None
        print("(dry run - no changes made)" if found else f"Error: Unknown refuel '{args.refuel_id}'")
        return 0 if found else 1
    if not tracker.delete_refuel(args.refuel_id):
        print(f"Error: Unknown refuel '{args.refuel_id}'")
        return 1
    print("Refuel deleted.")
    return 0


def make_history_table(
    refuels: List[Refuel], consumption: Dict[str, Optional[float]], currency: str
) -> List[List[str]]:
    """Convert refuels to table rows."""
    rows = []
    for refuel in refuels:
        rows.append(
            [
                refuel.date,
                format_distance(refuel.odometer),
                format_liters(refuel.liters),
                format_cost(refuel.price_per_liter, currency),
                format_cost(refuel.total_price, currency),
                "yes" if refuel.full_tank else "no",
                format_consumption(consumption.get(refuel.id)),
                truncate(refuel.notes),
                refuel.id,
            ]
        )
    return rows


def cmd_history(tracker: FuelTracker, args) -> int:
    """View refuels with per-record consumption."""
    vehicle = resolve_vehicle(tracker, args.vehicle)
    if vehicle is None:
        return 1

    refuels = tracker.list_refuels(vehicle.id)
    consumption = tracker.compute_per_record_consumption(vehicle.id)
    if args.since:
        refuels = [r for r in refuels if str(r.date) >= args.since]
    if args.asc:
        refuels = list(reversed(refuels))

    print(f"Vehicle: {vehicle.label}")
    print(f"Refuels: {len(tracker.list_refuels(vehicle.id))}")
    if args.since:
        print(f"Showing: {len(refuels)} (filtered)")
    print()

    if not refuels:
        print("No refuels found.")
        return 0

    currency = tracker.settings.currency
    headers = ["Date", "Odometer", "Liters", "Price/l", "Total", "Full", "l/100", "Notes", "ID"]
    print(
        tabulate(
            make_history_table(refuels, consumption, currency),
            headers=headers,
            tablefmt="simple",
        )
    )
    return 0


def cmd_stats(tracker: FuelTracker, args) -> int:
    """Lifetime, seasonal and per-segment consumption."""
    vehicle = resolve_vehicle(tracker, args.vehicle)
    if vehicle is None:
        return 1

    print(f"Vehicle: {vehicle.label}")
    stats = tracker.compute_stats(vehicle.id)
    if stats is None:
        print("Insufficient data: at least two refuels are needed.")
        return 0

    currency = tracker.settings.currency
    print()
    rows = [
        ["Average consumption", format_consumption(stats.avg_consumption)],
        ["Best consumption", format_consumption(stats.min_consumption)],
        ["Worst consumption", format_consumption(stats.max_consumption)],
        ["Total cost", format_cost(stats.total_cost, currency)],
        ["Cost per distance", format_cost(stats.cost_per_distance, currency)],
        ["Measured distance", format_distance(stats.total_distance)],
        ["Measured liters", format_liters(stats.total_liters)],
        ["Last refuel", f"{stats.last_refuel.date} @ {format_distance(stats.last_refuel.odometer)}"],
    ]
    print(tabulate(rows, tablefmt="simple"))
    print()

    if stats.seasonal_buckets:
        print("SEASONS:")
        season_rows = [
            [
                bucket.season.value,
                format_distance(bucket.distance),
                format_liters(bucket.liters),
                format_consumption(bucket.consumption),
                format_cost(bucket.cost_per_distance, currency),
            ]
            for bucket in stats.seasonal_buckets.values()
        ]
        headers = ["Season", "Distance", "Liters", "l/100", "Cost/distance"]
        print(tabulate(season_rows, headers=headers, tablefmt="simple"))
        print()

    if stats.segments:
        print("SEGMENTS:")
        segment_rows = [
            [
                segment.anchor.date,
                segment.closing.date,
                format_distance(segment.distance),
                format_liters(segment.liters),
                len(segment.records),
                format_consumption(segment.consumption),
            ]
            for segment in stats.segments
        ]
        headers = ["From", "To", "Distance", "Liters", "Fills", "l/100"]
        print(tabulate(segment_rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Service commands
# =============================================================================


def cmd_service(tracker: FuelTracker, args) -> int:
    """Add a service record."""
    vehicle = resolve_vehicle(tracker, args.vehicle)
    if vehicle is None:
        return 1

    try:
        service = tracker.add_service(
            {
                "vehicle_id": vehicle.id,
                "type": args.type,
                "date": args.date or date.today().isoformat(),
                "description": args.description,
                "valid_until": args.valid_until,
                "odometer": args.odometer,
                "cost": args.cost,
                "note": args.note,
            }
        )
    except ValidationError as e:
        print_errors(e.reasons)
        return 1

    print(f"Adding {service.type.value} record to {vehicle.label}:")
    print(f"  Date:        {service.date}")
    print(f"  Description: {service.description}")
    if service.valid_until:
        print(f"  Valid until: {service.valid_until}")
    print(f"  Cost:        {format_cost(service.cost, tracker.settings.currency)}")
    print()
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0
    print("Service record saved.")
    return 0


def make_service_table(
    services: List[ServiceRecord], today: date, currency: str
) -> List[List[str]]:
    """Convert service records to table rows."""
    rows = []
    for service in services:
        expiry = service.expiry
        if expiry is None:
            validity = "-"
        elif expiry < today:
            validity = f"{service.valid_until} (expired)"
        else:
            validity = service.valid_until
        rows.append(
            [
                service.date,
                service.type.value,
                truncate(service.description),
                validity,
                format_distance(service.odometer),
                format_cost(service.cost, currency),
            ]
        )
    return rows


def cmd_services(tracker: FuelTracker, args) -> int:
    """View service records, expiries and costs."""
    vehicle = resolve_vehicle(tracker, args.vehicle)
    if vehicle is None:
        return 1

    currency = tracker.settings.currency
    services = tracker.list_services(vehicle.id)
    costs = tracker.service_costs(vehicle.id)

    print(f"Vehicle: {vehicle.label}")
    print(f"Service records: {costs['count']}")
    print(f"Total cost: {format_cost(costs['total'], currency)}")
    print()

    expiring = tracker.expiring_services(vehicle.id, args.days)
    if expiring:
        print(f"EXPIRING (next {args.days} days):")
        for service in expiring:
            print(f"  {service.valid_until}  {service.type.value}: {service.description}")
        print()

    if not services:
        print("No service records found.")
        return 0

    headers = ["Date", "Type", "Description", "Valid until", "Odometer", "Cost"]
    print(
        tabulate(
            make_service_table(services, date.today(), currency),
            headers=headers,
            tablefmt="simple",
        )
    )
    print()

    rows = [
        [t, format_cost(c, currency)] for t, c in costs["by_type"].items() if c
    ]
    if rows:
        print(tabulate(rows, headers=["Type", "Cost"], tablefmt="simple"))
    return 0


# =============================================================================
# Export / import / audit
# =============================================================================


def cmd_export_csv(tracker: FuelTracker, args) -> int:
    """Export refuels of a vehicle to CSV."""
    vehicle = resolve_vehicle(tracker, args.vehicle)
    if vehicle is None:
        return 1

    refuels = tracker.list_refuels(vehicle.id)
    if not refuels:
        print("No data to export.")
        return 1

    args.output.write_text(refuels_to_csv(refuels), encoding="utf-8")
    print(f"Exported {len(refuels)} refuels of {vehicle.label} to {args.output}")
    return 0


def cmd_import(tracker: FuelTracker, args) -> int:
    """Replace the store with a JSON/YAML backup."""
    if not args.backup_file.exists():
        print(f"Error: File not found: {args.backup_file}")
        return 1

    try:
        result = tracker.import_data(parse_store(args.backup_file.read_bytes()))
    except CorruptStore as e:
        print(f"Error: {e}")
        return 1

    print(f"Vehicles: {len(result.store.vehicles)}")
    print(f"Refuels:  {len(result.store.refuels)}")
    print(f"Services: {len(result.store.services)}")
    if result.violations:
        print(f"Removed invalid records: {len(result.violations)}")
    print()
    if args.dry_run:
        print("(dry run - no changes made)")
        return 0
    print("Data imported.")
    return 0


def cmd_audit(tracker: FuelTracker, args) -> int:
    """Show what was repaired when the store was loaded."""
    result = tracker.load_result
    print(f"Data version: {tracker.store.version}")
    if result is None:
        return 0
    if result.backup_path:
        print(f"Corrupted data backed up to: {result.backup_path}")
    if result.migrated:
        print("Store was migrated to the current version.")
    if not result.violations:
        print("No integrity issues found.")
        return 0

    rows = [[v.collection, v.reason, truncate(repr(v.record), 60)] for v in result.violations]
    print(tabulate(rows, headers=["Collection", "Problem", "Record"], tablefmt="simple"))
    return 0


# =============================================================================
# Main
# =============================================================================

COMMANDS = {
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "delete-vehicle": cmd_delete_vehicle,
    "use": cmd_use,
    "log": cmd_log,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "history": cmd_history,
    "stats": cmd_stats,
    "service": cmd_service,
    "services": cmd_services,
    "export-csv": cmd_export_csv,
    "import": cmd_import,
    "audit": cmd_audit,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle fuel log",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fuel_log.yaml vehicles
  %(prog)s fuel_log.yaml add-vehicle "Family car" --manufacturer Skoda --tank-size 50
  %(prog)s fuel_log.yaml log --odometer 51200 --liters 38.5 --price 36.9
  %(prog)s fuel_log.yaml log --odometer 51500 --liters 10 --price 37.5 --partial
  %(prog)s fuel_log.yaml history --since 2024-01-01
  %(prog)s fuel_log.yaml stats
  %(prog)s fuel_log.yaml service vignette "Annual vignette" --valid-until 2025-02-28 --cost 2300
  %(prog)s fuel_log.yaml export-csv refuels.csv
""",
    )
    parser.add_argument(
        "store_file",
        type=Path,
        help="Path to the fuel log YAML file (created if missing)",
    )

    vehicle_option = argparse.ArgumentParser(add_help=False)
    vehicle_option.add_argument(
        "--vehicle",
        type=str,
        help="Vehicle ID (default: active vehicle)",
    )
    dry_run_option = argparse.ArgumentParser(add_help=False)
    dry_run_option.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would change without saving",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Vehicle subcommands
    subparsers.add_parser("vehicles", help="List vehicles")

    add_vehicle_parser = subparsers.add_parser(
        "add-vehicle", help="Add a vehicle", parents=[dry_run_option]
    )
    add_vehicle_parser.add_argument("name", type=str, help="Display name")
    add_vehicle_parser.add_argument("--manufacturer", type=str, help="Make")
    add_vehicle_parser.add_argument("--type", type=str, help="Model / type")
    add_vehicle_parser.add_argument("--engine", type=str, help="Engine description")
    add_vehicle_parser.add_argument("--tank-size", type=int, help="Tank capacity in liters")

    delete_vehicle_parser = subparsers.add_parser(
        "delete-vehicle",
        help="Delete a vehicle with all its records",
        parents=[dry_run_option],
    )
    delete_vehicle_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")

    use_parser = subparsers.add_parser(
        "use", help="Set the active vehicle", parents=[dry_run_option]
    )
    use_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")

    # Refuel subcommands
    refuel_fields = argparse.ArgumentParser(add_help=False)
    refuel_fields.add_argument("--date", type=str, help="Date in YYYY-MM-DD format")
    refuel_fields.add_argument("--odometer", type=int, help="Odometer reading")
    refuel_fields.add_argument("--liters", type=float, help="Liters dispensed")
    refuel_fields.add_argument("--price", type=float, help="Price per liter")
    refuel_fields.add_argument(
        "--total", type=float, help="Total price (default: liters x price)"
    )
    refuel_fields.add_argument("--notes", type=str, help="Free-text note")
    tank = refuel_fields.add_mutually_exclusive_group()
    tank.add_argument(
        "--full", dest="full_tank", action="store_const", const=True, help="Tank filled up"
    )
    tank.add_argument(
        "--partial",
        dest="full_tank",
        action="store_const",
        const=False,
        help="Partial fill (tank not full)",
    )

    subparsers.add_parser(
        "log",
        help="Add a refuel",
        parents=[refuel_fields, vehicle_option, dry_run_option],
    )
    edit_parser = subparsers.add_parser(
        "edit", help="Edit a refuel", parents=[refuel_fields, dry_run_option]
    )
    edit_parser.add_argument("refuel_id", type=str, help="Refuel ID")
    delete_parser = subparsers.add_parser(
        "delete", help="Delete a refuel", parents=[dry_run_option]
    )
    delete_parser.add_argument("refuel_id", type=str, help="Refuel ID")

    history_parser = subparsers.add_parser(
        "history", help="View refuels", parents=[vehicle_option]
    )
    history_parser.add_argument(
        "--since", type=str, help="Show only refuels since date (YYYY-MM-DD)"
    )
    history_parser.add_argument(
        "--asc", action="store_true", help="Oldest first instead of newest first"
    )

    subparsers.add_parser(
        "stats", help="Consumption statistics", parents=[vehicle_option]
    )

    # Service subcommands
    service_parser = subparsers.add_parser(
        "service",
        help="Add a service record",
        parents=[vehicle_option, dry_run_option],
    )
    service_parser.add_argument(
        "type", choices=[t.value for t in ServiceType], help="Record category"
    )
    service_parser.add_argument("description", type=str, help="What was done")
    service_parser.add_argument("--date", type=str, help="Date (default: today)")
    service_parser.add_argument(
        "--valid-until", type=str, help="Expiry date for vignettes, insurance, inspections"
    )
    service_parser.add_argument("--odometer", type=int, help="Odometer reading")
    service_parser.add_argument("--cost", type=float, help="Cost")
    service_parser.add_argument("--note", type=str, help="Note")

    services_parser = subparsers.add_parser(
        "services", help="View service records", parents=[vehicle_option]
    )
    services_parser.add_argument(
        "--days", type=int, default=30, help="Expiry warning horizon in days (default: 30)"
    )

    # Export / import / audit
    export_parser = subparsers.add_parser(
        "export-csv", help="Export refuels to CSV", parents=[vehicle_option]
    )
    export_parser.add_argument("output", type=Path, help="CSV file to write")

    import_parser = subparsers.add_parser(
        "import", help="Import a JSON/YAML backup", parents=[dry_run_option]
    )
    import_parser.add_argument("backup_file", type=Path, help="Backup file")

    subparsers.add_parser("audit", help="Show load-time repairs")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(os.environ.get("FUELLOG_LOG_LEVEL", "WARNING"))

    # --dry-run opens the store read-only, so loading never writes either
    tracker = FuelTracker.open(args.store_file, persist=not getattr(args, "dry_run", False))
    status = COMMANDS[args.command](tracker, args)
    print_notices(tracker)
    return status


if __name__ == "__main__":
    sys.exit(main() or 0)
