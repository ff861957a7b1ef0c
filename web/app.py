"""Flask JSON API for the vehicle fuel log."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, abort, jsonify, request

# Add parent directory to path for fuellog imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fuellog import (
    ConsumptionStats,
    FuelTracker,
    OrderingConflict,
    PushScheduler,
    RecentLogBuffer,
    ValidationError,
    configure_logging,
)
from fuellog.documents import refuel_to_dict, service_to_dict, vehicle_to_dict
from fuellog.sync import DEFAULT_PUSH_DELAY

logger = logging.getLogger(__name__)

log_buffer = RecentLogBuffer()
configure_logging(os.environ.get("FUELLOG_LOG_LEVEL", "INFO"), log_buffer)

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")
app.config["STORE_FILE"] = os.environ.get("FUELLOG_STORE", "fuel_log.yaml")
app.config["PUSH_DELAY"] = float(os.environ.get("FUELLOG_PUSH_DELAY", DEFAULT_PUSH_DELAY))
# Callable taking the exported store document; no remote push when unset.
app.config["SYNC_PUSH"] = None

# JSON body keys -> refuel candidate fields
REFUEL_BODY_FIELDS = {
    "date": "date",
    "odometer": "odometer",
    "liters": "liters",
    "pricePerLiter": "price_per_liter",
    "totalPrice": "total_price",
    "isFullTank": "full_tank",
    "notes": "notes",
}


def get_scheduler() -> Optional[PushScheduler]:
    """Process-wide push scheduler, created on first use when a push target is configured."""
    push = app.config.get("SYNC_PUSH")
    if push is None:
        return None
    scheduler = app.extensions.get("fuellog_push")
    if scheduler is None:
        scheduler = PushScheduler(push, delay=app.config["PUSH_DELAY"])
        app.extensions["fuellog_push"] = scheduler
    return scheduler


def get_tracker() -> FuelTracker:
    """Load the store for this request."""
    return FuelTracker.open(app.config["STORE_FILE"], scheduler=get_scheduler())


def get_vehicle_or_404(tracker: FuelTracker, vehicle_id: str):
    vehicle = tracker.get_vehicle(vehicle_id)
    if vehicle is None:
        abort(404, description=f"Vehicle '{vehicle_id}' not found")
    return vehicle


def stats_to_dict(stats: ConsumptionStats) -> Dict[str, Any]:
    """JSON view of consumption stats."""
    return {
        "status": "ok",
        "avgConsumption": stats.avg_consumption,
        "minConsumption": stats.min_consumption,
        "maxConsumption": stats.max_consumption,
        "totalCost": stats.total_cost,
        "costPerDistance": stats.cost_per_distance,
        "totalDistance": stats.total_distance,
        "totalLiters": stats.total_liters,
        "lastRefuel": refuel_to_dict(stats.last_refuel),
        "seasons": {
            season.value: {
                "distance": bucket.distance,
                "liters": bucket.liters,
                "cost": bucket.cost,
                "consumption": bucket.consumption,
                "costPerDistance": bucket.cost_per_distance,
            }
            for season, bucket in stats.seasonal_buckets.items()
        },
        "series": [
            {"date": closing_date, "consumption": value}
            for closing_date, value in stats.per_segment_series
        ],
    }


@app.errorhandler(404)
def not_found(error):
    return jsonify({"error": error.description}), 404


@app.route("/api/vehicles")
def list_vehicles():
    """All vehicles, with the active one flagged."""
    tracker = get_tracker()
    active = tracker.active_vehicle
    vehicles = []
    for vehicle in tracker.vehicles:
        d = vehicle_to_dict(vehicle)
        d["active"] = active is not None and vehicle.id == active.id
        vehicles.append(d)
    return jsonify(vehicles)


@app.route("/api/vehicles/<vehicle_id>/stats")
def vehicle_stats(vehicle_id: str):
    """Lifetime and seasonal consumption figures."""
    tracker = get_tracker()
    get_vehicle_or_404(tracker, vehicle_id)
    stats = tracker.compute_stats(vehicle_id)
    if stats is None:
        return jsonify({"status": "insufficient_data"})
    return jsonify(stats_to_dict(stats))


@app.route("/api/vehicles/<vehicle_id>/consumption")
def vehicle_consumption(vehicle_id: str):
    """Refuel id -> consumption (null where indeterminate)."""
    tracker = get_tracker()
    get_vehicle_or_404(tracker, vehicle_id)
    return jsonify(tracker.compute_per_record_consumption(vehicle_id))


@app.route("/api/vehicles/<vehicle_id>/refuels", methods=["GET"])
def list_refuels(vehicle_id: str):
    """Refuels newest first, each with its attributed consumption."""
    tracker = get_tracker()
    get_vehicle_or_404(tracker, vehicle_id)
    consumption = tracker.compute_per_record_consumption(vehicle_id)
    refuels = []
    for refuel in tracker.list_refuels(vehicle_id):
        d = refuel_to_dict(refuel)
        d["consumption"] = consumption.get(refuel.id)
        refuels.append(d)
    return jsonify(refuels)


@app.route("/api/vehicles/<vehicle_id>/refuels", methods=["POST"])
def add_refuel(vehicle_id: str):
    """Validate, order-check and store a refuel."""
    tracker = get_tracker()
    get_vehicle_or_404(tracker, vehicle_id)

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "No data provided"}), 400

    candidate = {field: data[key] for key, field in REFUEL_BODY_FIELDS.items() if key in data}
    candidate["vehicle_id"] = vehicle_id

    try:
        refuel = tracker.add_refuel(candidate)
    except ValidationError as e:
        return jsonify({"error": "Validation failed", "reasons": e.reasons}), 400
    except OrderingConflict as e:
        return (
            jsonify(
                {
                    "error": e.reason,
                    "conflictingRecord": refuel_to_dict(e.conflicting_record),
                }
            ),
            409,
        )

    body = refuel_to_dict(refuel)
    body["consumption"] = tracker.compute_per_record_consumption(vehicle_id).get(refuel.id)
    if tracker.notices:
        body["notices"] = tracker.notices
    return jsonify(body), 201


@app.route("/api/refuels/<refuel_id>", methods=["DELETE"])
def delete_refuel(refuel_id: str):
    tracker = get_tracker()
    if not tracker.delete_refuel(refuel_id):
        abort(404, description=f"Refuel '{refuel_id}' not found")
    return jsonify({"deleted": refuel_id})


@app.route("/api/vehicles/<vehicle_id>/services")
def list_services(vehicle_id: str):
    """Service records plus expiring/expired reminders and cost totals."""
    tracker = get_tracker()
    get_vehicle_or_404(tracker, vehicle_id)
    return jsonify(
        {
            "services": [service_to_dict(s) for s in tracker.list_services(vehicle_id)],
            "expiring": [s.id for s in tracker.expiring_services(vehicle_id)],
            "expired": [s.id for s in tracker.expired_services(vehicle_id)],
            "costs": tracker.service_costs(vehicle_id),
        }
    )


@app.route("/api/export")
def export_data():
    """Full store document, as a backup."""
    return jsonify(get_tracker().export_data())


@app.route("/api/logs")
def recent_logs():
    """Recent log entries; ?level=WARNING filters by minimum level."""
    level = request.args.get("level")
    min_level = logging.getLevelName(level.upper()) if level else None
    if not isinstance(min_level, int):
        min_level = None
    return jsonify(log_buffer.entries(min_level))


if __name__ == "__main__":
    app.run(debug=True, port=5000)
