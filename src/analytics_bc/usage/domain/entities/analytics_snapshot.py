from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.analytics_bc.usage.domain.entities.route_descriptor import RouteAssignment, RouteDescriptor
from src.analytics_bc.usage.domain.entities.usage_record import UsageRecord


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_dicts(value: Any) -> List[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass
class AnalyticsSnapshot:
    """Point-in-time view of the shuttle system handed to the AI pipeline.

    Routes, assignments and boarding records are typed; the remaining
    collections are passed through untouched for prompt context only.
    """

    routes: List[RouteDescriptor] = field(default_factory=list)
    route_assignments: List[RouteAssignment] = field(default_factory=list)
    boarding_records: List[UsageRecord] = field(default_factory=list)
    shuttles: List[dict] = field(default_factory=list)
    users: List[dict] = field(default_factory=list)
    digital_travel_cards: List[dict] = field(default_factory=list)
    locations: List[dict] = field(default_factory=list)
    total_routes: int = 0
    total_drivers: int = 0
    total_students: int = 0
    active_shuttles: int = 0
    assigned_shuttles: int = 0
    available_shuttles: int = 0
    active_drivers: int = 0

    @property
    def active_routes(self) -> List[RouteDescriptor]:
        return [route for route in self.routes if route.is_active]

    def drivers_for_route(self, route_id: str) -> List[RouteAssignment]:
        """Active assignments for a route."""
        return [
            assignment for assignment in self.route_assignments
            if assignment.route_id == route_id and assignment.is_active
        ]

    def routes_without_drivers(self) -> List[RouteDescriptor]:
        """Active routes that have no active driver assignment."""
        return [route for route in self.active_routes if not self.drivers_for_route(route.route_id)]

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> "AnalyticsSnapshot":
        """Build a snapshot from the admin dashboard payload (camelCase keys)."""
        data = data or {}
        routes = [RouteDescriptor.from_raw(row) for row in _as_dicts(data.get("routes"))]
        return cls(
            routes=routes,
            route_assignments=[
                RouteAssignment.from_raw(row) for row in _as_dicts(data.get("routeAssignments"))
            ],
            boarding_records=[
                UsageRecord.from_raw(row) for row in _as_dicts(data.get("boardingRecords"))
            ],
            shuttles=_as_dicts(data.get("shuttles")),
            users=_as_dicts(data.get("users")),
            digital_travel_cards=_as_dicts(data.get("digitalTravelCards")),
            locations=_as_dicts(data.get("locations")),
            total_routes=_as_int(data.get("totalRoutes"), len(routes)),
            total_drivers=_as_int(data.get("totalDrivers")),
            total_students=_as_int(data.get("totalStudents")),
            active_shuttles=_as_int(data.get("activeShuttles")),
            assigned_shuttles=_as_int(data.get("assignedShuttles")),
            available_shuttles=_as_int(data.get("availableShuttles")),
            active_drivers=_as_int(data.get("activeDrivers")),
        )
