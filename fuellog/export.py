"""CSV export of a vehicle's refuel history."""

import csv
import io
from typing import Iterable, List

from .consumption import canonical_sequence, compute_per_record_consumption
from .refuel import Refuel
from .validation import is_number

CSV_HEADERS = [
    "Date",
    "Odometer",
    "Liters",
    "Price per liter",
    "Total price",
    "Full tank",
    "Notes",
    "Consumption (l/100)",
    "Distance",
]

BOM = "\ufeff"


def _money(value) -> str:
    return f"{value:.2f}" if is_number(value) else ""


def refuel_rows(refuels: Iterable[Refuel]) -> List[List[str]]:
    """One row per refuel, newest first, with consumption and distance driven."""
    refuels = list(refuels)
    consumption = compute_per_record_consumption(refuels)

    distances = {}
    sequence = canonical_sequence(refuels)
    for previous, current in zip(sequence, sequence[1:]):
        distances[current.id] = current.odometer - previous.odometer

    rows = []
    for refuel in sorted(sequence, key=lambda r: (str(r.date), r.odometer), reverse=True):
        value = consumption.get(refuel.id)
        rows.append(
            [
                refuel.date,
                str(refuel.odometer),
                f"{refuel.liters:.2f}",
                _money(refuel.price_per_liter),
                _money(refuel.total_price),
                "yes" if refuel.full_tank else "no",
                refuel.notes or "",
                f"{value:.1f}" if value is not None else "",
                str(distances[refuel.id]) if refuel.id in distances else "",
            ]
        )
    return rows


def refuels_to_csv(refuels: Iterable[Refuel]) -> str:
    """CSV text with a UTF-8 BOM so spreadsheets detect the encoding."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    writer.writerows(refuel_rows(refuels))
    return BOM + out.getvalue()
