"""Chronology guard: odometer readings must increase with refuel date."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .refuel import Refuel
from .validation import is_number

logger = logging.getLogger(__name__)


@dataclass
class OrderingResult:
    """Outcome of an ordering check. On conflict, names the neighbor that blocks it."""

    ok: bool
    conflicting_record: Optional[Refuel] = None
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok


def find_neighbors(candidate: Refuel, existing: Iterable[Refuel]):
    """
    Nearest earlier-dated and nearest later-dated refuels around the candidate.

    The candidate's own stored version (same id) is ignored, so edits are
    checked against the other records only. Records on the same date as the
    candidate are neither previous nor next. Among several records on the
    nearest date, the previous is the one with the highest odometer and the
    next the one with the lowest, i.e. the tightest bound.
    Records with a non-numeric odometer cannot bound anything and are skipped.
    """
    candidate_date = candidate.date_value
    previous = None
    following = None
    if candidate_date is None:
        return previous, following

    for refuel in existing:
        if refuel.id == candidate.id:
            continue
        refuel_date = refuel.date_value
        if refuel_date is None or not is_number(refuel.odometer):
            continue
        if refuel_date < candidate_date:
            if previous is None or (refuel_date, refuel.odometer) > (
                previous.date_value,
                previous.odometer,
            ):
                previous = refuel
        elif refuel_date > candidate_date:
            if following is None or (refuel_date, refuel.odometer) < (
                following.date_value,
                following.odometer,
            ):
                following = refuel
    return previous, following


def check_ordering(candidate: Refuel, existing: Iterable[Refuel]) -> OrderingResult:
    """
    Check the candidate's odometer against its date neighbors.

    Ordering is driven by date, not insertion order, so a forgotten past
    fill-up can be entered later. The odometer must be strictly greater than
    the previous record's and strictly less than the next record's.
    """
    previous, following = find_neighbors(candidate, existing)

    if previous is not None and candidate.odometer <= previous.odometer:
        reason = (
            f"Odometer must be greater than {previous.odometer} "
            f"(refuel on {previous.date})"
        )
        logger.warning(
            "Odometer %s on %s not above previous %s on %s",
            candidate.odometer,
            candidate.date,
            previous.odometer,
            previous.date,
        )
        return OrderingResult(ok=False, conflicting_record=previous, reason=reason)

    if following is not None and candidate.odometer >= following.odometer:
        reason = (
            f"Odometer must be less than {following.odometer} "
            f"(refuel on {following.date})"
        )
        logger.warning(
            "Odometer %s on %s not below next %s on %s",
            candidate.odometer,
            candidate.date,
            following.odometer,
            following.date,
        )
        return OrderingResult(ok=False, conflicting_record=following, reason=reason)

    return OrderingResult(ok=True)
