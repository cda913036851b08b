"""Pytest configuration and fixtures."""

import random
from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app import app
from core.config import Settings
from core.rate_limiter import limiter
from src.analytics_bc.ai.infrastructure.services.ai_analytics_service import AIAnalyticsService
from src.analytics_bc.ai.infrastructure.services.ai_request_limiter import DailyRequestLimiter
from src.analytics_bc.ai.infrastructure.services.fallback_generator import FallbackGenerator
from src.analytics_bc.usage.domain.entities import AnalyticsSnapshot

TODAY = date(2026, 3, 9)  # A Monday


class FakeGateway:
    """Stands in for GroqTextGateway: canned reply or canned error."""

    def __init__(self, reply=None, error=None, configured=True):
        self.settings = Settings(GROQ_API_KEY="test-key")
        self.reply = reply
        self.error = error
        self.configured = configured
        self.prompts = []

    @property
    def is_configured(self):
        return self.configured

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeClock:
    """Manually advanced clock for the daily limiter."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 9, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def weekly_boardings(route_id, per_day, hours=(7, 17)):
    """Boarding documents spread evenly over the week before TODAY."""
    records = []
    for day in range(7):
        when = datetime(2026, 3, 2, tzinfo=timezone.utc) + timedelta(days=day)
        for n in range(per_day):
            hour = hours[n % len(hours)]
            records.append({
                "routeId": route_id,
                "timestamp": when.replace(hour=hour, minute=15).isoformat(),
                "studentId": f"S{n:03d}",
            })
    return records


def snapshot_payload(routes=None, boarding_records=None, assignments=None, **counters):
    payload = {
        "routes": routes or [],
        "boardingRecords": boarding_records or [],
        "routeAssignments": assignments or [],
        "shuttles": [],
        "users": [],
        "totalDrivers": 4,
        "activeDrivers": 2,
        "activeShuttles": 5,
        "assignedShuttles": 4,
        "availableShuttles": 1,
        "totalStudents": 120,
    }
    payload.update(counters)
    return payload


@pytest.fixture
def client():
    """Create a test client for the FastAPI app."""
    limiter.reset()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def api_base_url():
    """Base URL for AI analytics endpoints."""
    return "/api/v1/ai"


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_gateway():
    return FakeGateway


@pytest.fixture
def fallback_generator():
    return FallbackGenerator(rng=random.Random(42), today=lambda: TODAY)


@pytest.fixture
def make_service(fallback_generator):
    """Build an AIAnalyticsService around a fake gateway."""

    def _make(gateway, limiter=None):
        return AIAnalyticsService(
            gateway=gateway,
            limiter=limiter or DailyRequestLimiter(daily_limit=45),
            fallback=fallback_generator,
            today=lambda: TODAY,
        )

    return _make


@pytest.fixture
def campus_payload():
    """Four routes, one without a schedule, one without a driver."""
    routes = [
        {"routeId": "R001", "routeName": "Main Campus Loop", "schedule": ["07:30", "08:00", "12:00"],
         "operatingDays": ["Mon", "Tue", "Wed", "Thu", "Fri"], "isActive": True},
        {"routeId": "R002", "routeName": "Library Express", "schedule": ["09:00", "17:00"],
         "operatingDays": ["Mon", "Wed", "Fri"], "isActive": True},
        {"routeId": "R003", "routeName": "North Dorms", "schedule": [],
         "operatingDays": ["Sat"], "isActive": True},
        {"routeId": "R004", "routeName": "Stadium Shuttle", "schedule": ["18:00"],
         "operatingDays": ["Sat", "Sun"], "isActive": False},
    ]
    assignments = [
        {"routeId": "R001", "driverId": "D1", "driverUsername": "alex", "status": "active"},
        {"routeId": "R002", "driverId": "D2", "driverUsername": "sam", "status": "active"},
    ]
    records = weekly_boardings("R001", 6) + weekly_boardings("R002", 3)
    return snapshot_payload(routes=routes, boarding_records=records, assignments=assignments)


@pytest.fixture
def campus_snapshot(campus_payload):
    return AnalyticsSnapshot.from_payload(campus_payload)
