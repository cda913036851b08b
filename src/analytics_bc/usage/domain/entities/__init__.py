from .usage_record import UsageRecord, UNKNOWN_ROUTE, parse_timestamp
from .route_descriptor import RouteDescriptor, RouteAssignment, normalize_schedule, time_to_minutes
from .analytics_snapshot import AnalyticsSnapshot

__all__ = [
    "UsageRecord",
    "UNKNOWN_ROUTE",
    "parse_timestamp",
    "RouteDescriptor",
    "RouteAssignment",
    "normalize_schedule",
    "time_to_minutes",
    "AnalyticsSnapshot",
]
