from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

UNKNOWN_ROUTE = "unknown"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort conversion of a collaborator timestamp into a datetime.

    Accepts datetime objects, ISO-8601 strings, epoch seconds or milliseconds
    and Firestore-style maps ({"seconds": ...} or {"_seconds": ...}).
    Returns None for anything it cannot read.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, dict):
        seconds = value.get("seconds", value.get("_seconds"))
        return parse_timestamp(seconds) if seconds is not None else None

    if isinstance(value, (int, float)):
        # Anything above year ~5138 in seconds is really milliseconds
        seconds = value / 1000 if abs(value) > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    return None


@dataclass(frozen=True)
class UsageRecord:
    """A single boarding event captured by the boarding subsystem."""

    route_id: str
    timestamp: Optional[datetime] = None
    passenger_id: Optional[str] = None
    location_id: Optional[str] = None

    @property
    def hour(self) -> int:
        """Hour of day of the boarding, 0 when the timestamp is unknown."""
        return self.timestamp.hour if self.timestamp else 0

    @classmethod
    def from_raw(cls, row: dict) -> "UsageRecord":
        """Create UsageRecord from a raw boarding document."""
        route_id = row.get("routeId") or row.get("route_id")
        passenger = row.get("studentId") or row.get("userId") or row.get("passengerId")
        location = row.get("locationId") or row.get("location")
        return cls(
            route_id=str(route_id) if route_id else UNKNOWN_ROUTE,
            timestamp=parse_timestamp(row.get("timestamp", row.get("boardedAt"))),
            passenger_id=str(passenger) if passenger else None,
            location_id=str(location) if location else None,
        )
