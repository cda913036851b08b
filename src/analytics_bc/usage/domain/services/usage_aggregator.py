"""Usage aggregation for boarding records.

Turns raw boarding events into the summary statistics used by the prompt
builder and the offline fallback generator:

- route_demand: boardings per route id ("unknown" when the record has none)
- time_slot_demand: boardings per hour-of-day bucket ("07:00-08:00")
- route_performance: totals, average per day over a week and boardings per
  scheduled departure for every known route

All functions are pure; the same input always gives the same output.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from src.analytics_bc.usage.domain.entities import RouteDescriptor, UsageRecord, UNKNOWN_ROUTE

DAYS_PER_WEEK = 7


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (3.5 -> 4, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def hour_slot_label(hour: int) -> str:
    """Label for a one-hour bucket, e.g. 7 -> "07:00-08:00"."""
    return f"{hour:02d}:00-{hour + 1:02d}:00"


@dataclass(frozen=True)
class RoutePerformance:
    """Ridership metrics for a single route."""
    total_boardings: int
    avg_per_day: int
    utilization: float

    def to_dict(self) -> dict:
        return {
            "totalBoardings": self.total_boardings,
            "avgPerDay": self.avg_per_day,
            "utilization": self.utilization,
        }


@dataclass
class UsageStatistics:
    """Aggregated demand for a snapshot of boarding records."""
    route_demand: Dict[str, int] = field(default_factory=dict)
    time_slot_demand: Dict[str, int] = field(default_factory=dict)
    route_performance: Dict[str, RoutePerformance] = field(default_factory=dict)

    @property
    def total_boardings(self) -> int:
        return sum(self.route_demand.values())

    def peak_time_slots(self, limit: int = 3) -> List[str]:
        """Busiest hour buckets, ties broken by label."""
        ranked = sorted(self.time_slot_demand.items(), key=lambda item: (-item[1], item[0]))
        return [label for label, _ in ranked[:limit]]


def route_demand(records: Iterable[UsageRecord]) -> Dict[str, int]:
    """Count boardings per route id, sorted by route id."""
    counts = Counter(record.route_id or UNKNOWN_ROUTE for record in records)
    return dict(sorted(counts.items()))


def time_slot_demand(records: Iterable[UsageRecord]) -> Dict[str, int]:
    """Count boardings per hour-of-day bucket, sorted chronologically."""
    counts = Counter(hour_slot_label(record.hour) for record in records)
    return dict(sorted(counts.items()))


def route_performance(
    routes: Iterable[RouteDescriptor],
    demand: Dict[str, int],
) -> Dict[str, RoutePerformance]:
    """Per-route metrics from the route demand map."""
    performance = {}
    for route in routes:
        total = demand.get(route.route_id, 0)
        departures = len(route.schedule)
        performance[route.route_id] = RoutePerformance(
            total_boardings=total,
            avg_per_day=round_half_up(total / DAYS_PER_WEEK),
            utilization=round(total / departures, 2) if departures else 0,
        )
    return performance


def aggregate_usage(
    records: Iterable[UsageRecord],
    routes: Iterable[RouteDescriptor],
) -> UsageStatistics:
    """Compute all usage statistics in one pass over the inputs."""
    records = list(records)
    demand = route_demand(records)
    return UsageStatistics(
        route_demand=demand,
        time_slot_demand=time_slot_demand(records),
        route_performance=route_performance(routes, demand),
    )
