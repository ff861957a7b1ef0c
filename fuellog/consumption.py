"""
Fuel consumption engine.

Consumption is measured tank-to-tank. A full-tank refuel is an anchor: the
tank level is known there. Between two consecutive anchors A and F, every
liter put in after A up to and including F is the fuel burned over the
distance F.odometer - A.odometer, so

    consumption = sum(liters after A .. F) / (F.odometer - A.odometer) * 100

in liters per 100 distance units.

Every record inside a segment (the partial fills and the closing full tank)
gets that one segment figure. Records before the first anchor and partial
fills after the last anchor have no closed segment and are indeterminate,
reported as None. The engine never raises for a bad record; implausible
segments are reported as indeterminate instead.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .refuel import Refuel
from .validation import is_number

logger = logging.getLogger(__name__)

MIN_CONSUMPTION = 1
MAX_CONSUMPTION = 50
MAX_SEGMENT_DISTANCE = 5000


class Season(Enum):
    """Seasons, keyed by the calendar month of a segment's closing refuel."""

    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"
    WINTER = "winter"

    @classmethod
    def for_month(cls, month: int) -> "Season":
        if month in (3, 4, 5):
            return cls.SPRING
        if month in (6, 7, 8):
            return cls.SUMMER
        if month in (9, 10, 11):
            return cls.AUTUMN
        return cls.WINTER


@dataclass
class Segment:
    """Stretch between two consecutive full-tank anchors."""

    anchor: Refuel
    closing: Refuel
    records: List[Refuel]
    distance: float
    liters: float
    consumption: Optional[float] = None

    @property
    def valid(self) -> bool:
        return self.consumption is not None


@dataclass
class SeasonBucket:
    """Accumulated distance, liters and cost of the valid segments closing in a season."""

    season: Season
    distance: float = 0
    liters: float = 0
    cost: float = 0

    @property
    def consumption(self) -> Optional[float]:
        if self.distance <= 0:
            return None
        return self.liters / self.distance * 100

    @property
    def cost_per_distance(self) -> Optional[float]:
        if self.distance <= 0:
            return None
        return self.cost / self.distance


@dataclass
class ConsumptionStats:
    """Lifetime and seasonal figures for one vehicle."""

    avg_consumption: Optional[float]
    min_consumption: Optional[float]
    max_consumption: Optional[float]
    total_cost: float
    cost_per_distance: Optional[float]
    total_distance: float
    total_liters: float
    last_refuel: Refuel
    seasonal_buckets: Dict[Season, SeasonBucket] = field(default_factory=dict)
    per_segment_series: List[Tuple[str, float]] = field(default_factory=list)
    segments: List[Segment] = field(default_factory=list)


def is_usable(refuel: Refuel) -> bool:
    """A record the segment algorithm can place: numeric odometer and liters."""
    return is_number(refuel.odometer) and is_number(refuel.liters)


def canonical_sequence(refuels: Iterable[Refuel]) -> List[Refuel]:
    """Usable refuels sorted by odometer ascending (date and id break ties)."""
    usable = []
    for refuel in refuels:
        if is_usable(refuel):
            usable.append(refuel)
        else:
            logger.warning("Skipping malformed refuel %r", refuel)
    return sorted(usable, key=lambda r: (r.odometer, str(r.date), str(r.id)))


def segment_consumption(distance: float, liters: float) -> Optional[float]:
    """Liters per 100 distance units, or None when the segment is implausible."""
    if distance <= 0 or distance >= MAX_SEGMENT_DISTANCE:
        return None
    if liters <= 0:
        return None
    consumption = liters / distance * 100
    if consumption < MIN_CONSUMPTION or consumption > MAX_CONSUMPTION:
        logger.warning(
            "Unrealistic consumption %.1f (distance %s, liters %s)",
            consumption,
            distance,
            liters,
        )
        return None
    return consumption


def build_segments(sequence: List[Refuel]) -> List[Segment]:
    """Split a canonical sequence into anchor-to-anchor segments."""
    segments = []
    anchor_index = None
    for index, refuel in enumerate(sequence):
        if not refuel.full_tank:
            continue
        if anchor_index is not None:
            anchor = sequence[anchor_index]
            records = sequence[anchor_index + 1 : index + 1]
            distance = refuel.odometer - anchor.odometer
            liters = sum(r.liters for r in records)
            segments.append(
                Segment(
                    anchor=anchor,
                    closing=refuel,
                    records=records,
                    distance=distance,
                    liters=liters,
                    consumption=segment_consumption(distance, liters),
                )
            )
        anchor_index = index
    return segments


def compute_per_record_consumption(
    refuels: Iterable[Refuel],
) -> Dict[str, Optional[float]]:
    """
    Consumption attributed to every refuel id.

    Every input record appears in the result; records outside a valid closed
    segment map to None.
    """
    refuels = list(refuels)
    consumption: Dict[str, Optional[float]] = {r.id: None for r in refuels}
    for segment in build_segments(canonical_sequence(refuels)):
        if not segment.valid:
            continue
        for record in segment.records:
            consumption[record.id] = segment.consumption
    return consumption


def compute_stats(refuels: Iterable[Refuel]) -> Optional[ConsumptionStats]:
    """
    Lifetime and seasonal statistics for one vehicle's refuels.

    Returns None (insufficient data) when there are fewer than two records.
    Averages are weighted by distance: total segment liters over total
    segment distance across the valid segments. Total cost covers every
    record regardless of segment validity.
    """
    refuels = list(refuels)
    if len(refuels) < 2:
        logger.debug("Not enough data for stats (%d records)", len(refuels))
        return None

    sequence = canonical_sequence(refuels)
    segments = build_segments(sequence)
    valid = [s for s in segments if s.valid]

    total_cost = sum(r.total_price for r in refuels if is_number(r.total_price))
    total_distance = sum(s.distance for s in valid)
    total_liters = sum(s.liters for s in valid)

    buckets = {season: SeasonBucket(season) for season in Season}
    for segment in valid:
        closing_date = segment.closing.date_value
        if closing_date is None:
            continue
        bucket = buckets[Season.for_month(closing_date.month)]
        bucket.distance += segment.distance
        bucket.liters += segment.liters
        if is_number(segment.closing.total_price):
            bucket.cost += segment.closing.total_price

    values = [s.consumption for s in valid]
    last_refuel = sequence[-1] if sequence else refuels[-1]

    return ConsumptionStats(
        avg_consumption=(
            total_liters / total_distance * 100 if total_distance > 0 else None
        ),
        min_consumption=min(values) if values else None,
        max_consumption=max(values) if values else None,
        total_cost=total_cost,
        cost_per_distance=total_cost / total_distance if total_distance > 0 else None,
        total_distance=total_distance,
        total_liters=total_liters,
        last_refuel=last_refuel,
        seasonal_buckets={
            season: bucket for season, bucket in buckets.items() if bucket.distance > 0
        },
        per_segment_series=[(s.closing.date, s.consumption) for s in valid],
        segments=segments,
    )
