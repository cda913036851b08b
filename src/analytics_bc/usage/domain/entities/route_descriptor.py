import re
from dataclasses import dataclass, field
from typing import List, Optional

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


def time_to_minutes(value: str) -> Optional[int]:
    """Convert a wall-clock string ("07:30", "5:15 PM") to minutes after midnight."""
    match = _TIME_RE.match(value or "")
    if not match:
        return None

    hours, minutes = int(match.group(1)), int(match.group(2))
    meridiem = match.group(3)
    if meridiem:
        if hours < 1 or hours > 12:
            return None
        hours = hours % 12 + (12 if meridiem.lower() == "pm" else 0)

    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def normalize_schedule(times: List[str]) -> List[str]:
    """Deduplicate departure times and order them chronologically.

    Entries that cannot be read as a time keep their relative order at the end.
    """
    seen = set()
    timed, untimed = [], []
    for raw in times:
        value = str(raw).strip()
        if not value or value in seen:
            continue
        seen.add(value)
        minutes = time_to_minutes(value)
        if minutes is None:
            untimed.append(value)
        else:
            timed.append((minutes, value))

    timed.sort(key=lambda item: item[0])
    return [value for _, value in timed] + untimed


@dataclass
class RouteDescriptor:
    """Static definition of a shuttle route."""

    route_id: str
    route_name: str
    schedule: List[str] = field(default_factory=list)
    operating_days: List[str] = field(default_factory=list)
    origin: Optional[str] = None
    destination: Optional[str] = None
    is_active: bool = True

    @property
    def label(self) -> str:
        return self.route_name or self.route_id

    @classmethod
    def from_raw(cls, row: dict) -> "RouteDescriptor":
        """Create RouteDescriptor from a raw route document."""
        route_id = str(row.get("routeId") or row.get("id") or row.get("route_id") or "")
        schedule = row.get("schedule") or []
        days = row.get("operatingDays") or row.get("operating_days") or []
        return cls(
            route_id=route_id,
            route_name=str(row.get("routeName") or row.get("name") or route_id),
            schedule=normalize_schedule(schedule if isinstance(schedule, list) else []),
            operating_days=[str(d) for d in days] if isinstance(days, list) else [],
            origin=row.get("origin"),
            destination=row.get("destination"),
            is_active=row.get("isActive", row.get("is_active")) is not False,
        )


@dataclass
class RouteAssignment:
    """A driver/shuttle assignment to a route."""

    route_id: str
    driver_id: str
    route_name: Optional[str] = None
    driver_username: Optional[str] = None
    bus_id: Optional[str] = None
    status: str = "active"

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_raw(cls, row: dict) -> "RouteAssignment":
        """Create RouteAssignment from a raw assignment document."""
        return cls(
            route_id=str(row.get("routeId") or row.get("route_id") or ""),
            driver_id=str(row.get("driverId") or row.get("driver_id") or ""),
            route_name=row.get("routeName"),
            driver_username=row.get("driverUsername") or row.get("driverEmail"),
            bus_id=row.get("busId"),
            status=str(row.get("status") or "active"),
        )
