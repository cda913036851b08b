"""Prompt construction for the AI analytics tasks.

Each builder is a pure function of the snapshot and its usage statistics.
Prompts state the exact JSON shape expected back, with a literal example,
so the reply can be handled by response_parser.clean_and_parse.
"""
import json
import re
from datetime import date, timedelta
from typing import List, Optional

from src.analytics_bc.ai.domain.value_objects import TaskKind
from src.analytics_bc.usage.domain.entities import AnalyticsSnapshot, RouteDescriptor
from src.analytics_bc.usage.domain.services.usage_aggregator import UsageStatistics, round_half_up

MAX_ROUTES_IN_PROMPT = 25
CONTEXT_SAMPLE_SIZE = 5
CHAT_MAX_WORDS = 60

_ROUTE_REFERENCE_RE = re.compile(r"\broute\s+['\"]?([A-Za-z0-9][\w\-]*)", re.IGNORECASE)
_WORD_RE = re.compile(r"[\w\-]+")
_NOT_A_ROUTE_NAME = {
    "a", "an", "are", "be", "does", "do", "for", "has", "have", "in", "is",
    "of", "on", "that", "the", "to", "was", "which", "with",
}


def _dump(value) -> str:
    return json.dumps(value, indent=2, default=str)


def _route_summary(route: RouteDescriptor) -> dict:
    return {
        "routeId": route.route_id,
        "routeName": route.route_name,
        "schedule": route.schedule,
        "operatingDays": route.operating_days,
        "isActive": route.is_active,
    }


def _routes_block(snapshot: AnalyticsSnapshot) -> str:
    if not snapshot.routes:
        return "No routes defined"
    routes = [_route_summary(r) for r in snapshot.routes[:MAX_ROUTES_IN_PROMPT]]
    return _dump(routes)


def _usage_block(stats: UsageStatistics) -> str:
    if not stats.total_boardings:
        return "No boarding history available (treat demand as unknown, not zero)"

    performance = {
        route_id: metrics.to_dict() for route_id, metrics in stats.route_performance.items()
    }
    return (
        f"Total boardings (last 7 days): {stats.total_boardings}\n"
        f"Boardings per route: {_dump(stats.route_demand)}\n"
        f"Boardings per hour slot: {_dump(stats.time_slot_demand)}\n"
        f"Peak hour slots: {', '.join(stats.peak_time_slots()) or 'none'}\n"
        f"Route performance: {_dump(performance)}"
    )


def _system_overview(snapshot: AnalyticsSnapshot) -> str:
    return (
        f"- Total Routes: {snapshot.total_routes}\n"
        f"- Active Routes: {len(snapshot.active_routes)}\n"
        f"- Total Drivers: {snapshot.total_drivers}\n"
        f"- Active Drivers: {snapshot.active_drivers}\n"
        f"- Total Students: {snapshot.total_students}\n"
        f"- Active Shuttles: {snapshot.active_shuttles}\n"
        f"- Assigned Shuttles: {snapshot.assigned_shuttles}\n"
        f"- Available Shuttles: {snapshot.available_shuttles}\n"
        f"- Boarding Records: {len(snapshot.boarding_records)}\n"
        f"- Digital Travel Cards: {len(snapshot.digital_travel_cards)}\n"
        f"- Locations: {len(snapshot.locations)}"
    )


def build_demand_prediction_prompt(
    snapshot: AnalyticsSnapshot,
    stats: UsageStatistics,
    today: date,
) -> str:
    tomorrow = (today + timedelta(days=1)).isoformat()
    example = [{
        "routeId": "R001",
        "routeName": "Main Campus Loop",
        "predictedDemand": 42,
        "confidence": 80,
        "timeSlot": "07:30-08:30",
        "date": tomorrow,
        "reasoning": "Morning boardings averaged 35 per day over the last week",
        "recommendedAction": "Add a second shuttle for the 07:30 departure",
    }]
    return f"""You are forecasting passenger demand for a university shuttle service.

Today is {today.isoformat()}.

System Overview:
{_system_overview(snapshot)}

Routes:
{_routes_block(snapshot)}

Usage Statistics:
{_usage_block(stats)}

Predict passenger demand for the next 2 days, one or two predictions per route,
focusing on the busiest time slots.

Respond ONLY with a JSON array, no prose and no comments, in exactly this format:
{_dump(example)}

Rules:
- predictedDemand is a non-negative integer
- confidence is an integer between 0 and 100
- timeSlot uses the format HH:MM-HH:MM
- date uses the format YYYY-MM-DD
- reasoning must cite the numbers it is based on"""


def build_schedule_optimization_prompt(
    snapshot: AnalyticsSnapshot,
    stats: UsageStatistics,
) -> str:
    example = [{
        "routeId": "R001",
        "routeName": "Main Campus Loop",
        "currentSchedule": ["07:30", "12:00", "17:00"],
        "optimizedSchedule": ["07:00", "07:30", "08:30", "12:00", "17:00"],
        "efficiencyGain": 18,
        "reasoning": "07:00-09:00 carries 60% of boardings with a single departure",
        "implementationSteps": [
            "Assign a driver to the new 07:00 departure",
            "Announce the 08:30 departure to students",
            "Review boardings after two weeks",
        ],
    }]
    return f"""You are optimizing departure schedules for a university shuttle service.

System Overview:
{_system_overview(snapshot)}

Routes and current schedules:
{_routes_block(snapshot)}

Usage Statistics:
{_usage_block(stats)}

Propose one schedule optimization per route. Keep existing departures unless
demand clearly does not justify them; optimizedSchedule must not be shorter than
currentSchedule. Times use 24-hour HH:MM format in ascending order.

Respond ONLY with a JSON array, no prose and no comments, in exactly this format:
{_dump(example)}

Rules:
- efficiencyGain is a non-negative integer percentage
- implementationSteps is an ordered list of short strings"""


def build_insights_prompt(snapshot: AnalyticsSnapshot, stats: UsageStatistics) -> str:
    example = [{
        "type": "warning",
        "title": "Low Fleet Utilization",
        "description": "Only 40% of active shuttles are assigned to drivers",
        "priority": "medium",
        "action": "Review shuttle assignments",
    }]
    assignments = [
        {"routeId": a.route_id, "driverId": a.driver_id, "status": a.status}
        for a in snapshot.route_assignments[:CONTEXT_SAMPLE_SIZE]
    ]
    return f"""Analyze this shuttle management system data and provide actionable insights.

System Overview:
{_system_overview(snapshot)}

Routes Data:
{_dump([_route_summary(r) for r in snapshot.routes[:CONTEXT_SAMPLE_SIZE]])}

Shuttles Data:
{_dump(snapshot.shuttles[:CONTEXT_SAMPLE_SIZE])}

Route Assignments:
{_dump(assignments)}

Usage Statistics:
{_usage_block(stats)}

Provide 5-7 key insights. Respond ONLY with a JSON array in exactly this format:
{_dump(example)}

type is one of success, warning, info, recommendation.
priority is one of high, medium, low.
Focus on utilization, resource allocation, bottlenecks and optimization opportunities."""


def _percent_text(part: int, whole: int) -> str:
    if not whole:
        return "n/a"
    return f"{round_half_up(part / whole * 100)}%"


def build_trend_prediction_prompt(snapshot: AnalyticsSnapshot, stats: UsageStatistics) -> str:
    example = [{
        "metric": "Active Drivers",
        "currentValue": 8,
        "predictedValue": 9,
        "confidence": 85,
        "timeframe": "7 days",
        "reasoning": "Driver activity rose on each of the last three weekdays",
    }]
    return f"""Based on this shuttle system data, predict future trends and performance.

Current Metrics:
- Active Drivers: {snapshot.active_drivers}
- Assigned Shuttles: {snapshot.assigned_shuttles}
- Available Shuttles: {snapshot.available_shuttles}
- Total Students: {snapshot.total_students}
- Active Routes: {len(snapshot.active_routes)}

Usage Statistics:
{_usage_block(stats)}

Provide predictions for the next 7 days. Respond ONLY with a JSON array in exactly this format:
{_dump(example)}

Predict for:
1. Daily active drivers
2. Shuttle utilization rate
3. Route demand
4. System efficiency

currentValue and predictedValue are non-negative numbers; confidence is an integer between 0 and 100."""


def build_recommendations_prompt(snapshot: AnalyticsSnapshot, stats: UsageStatistics) -> str:
    example = [{
        "category": "Fleet Management",
        "title": "Assign idle shuttles to peak routes",
        "description": "Three shuttles are unassigned while the morning loop runs full",
        "impact": "high",
        "effort": "low",
        "timeline": "Immediate",
        "steps": ["List idle shuttles", "Pair them with standby drivers", "Add them to the 07:30 run"],
    }]
    return f"""Analyze this shuttle management system and provide strategic recommendations.

System Status:
- Fleet Utilization: {_percent_text(snapshot.assigned_shuttles, snapshot.active_shuttles)}
- Driver Coverage: {_percent_text(snapshot.active_drivers, snapshot.total_drivers)}
- Route Coverage: {_percent_text(len(snapshot.active_routes), snapshot.total_routes)}
- Student-to-Driver Ratio: {round_half_up(snapshot.total_students / snapshot.total_drivers) if snapshot.total_drivers else "n/a"}

Current Issues:
- Available Shuttles: {snapshot.available_shuttles} ({_percent_text(snapshot.available_shuttles, snapshot.active_shuttles)} of fleet)
- Unassigned Drivers: {max(0, snapshot.total_drivers - snapshot.active_drivers)}

Usage Statistics:
{_usage_block(stats)}

Provide 4-6 strategic recommendations. Respond ONLY with a JSON array in exactly this format:
{_dump(example)}

category is one of Fleet Management, Route Optimization, Driver Management, Student Experience.
impact and effort are one of high, medium, low.
timeline is one of Immediate, 1-2 weeks, 1 month, Long-term."""


def _driver_line(snapshot: AnalyticsSnapshot, route: RouteDescriptor) -> str:
    drivers = snapshot.drivers_for_route(route.route_id)
    state = "Active" if route.is_active else "Inactive"
    if not drivers:
        return f"- {route.label} ({state}): no driver assignment records"
    names = ", ".join(d.driver_username or d.driver_id for d in drivers)
    return f"- {route.label} ({state}): {len(drivers)} driver(s) assigned: {names}"


def referenced_routes(question: str, routes: List[RouteDescriptor]) -> List[RouteDescriptor]:
    """Known routes whose name or id appears in the question."""
    text = (question or "").lower()
    return [
        route for route in routes
        if (route.route_name and route.route_name.lower() in text)
        or (len(route.route_id) > 1 and route.route_id.lower() in text)
    ]


def unresolved_route_references(question: str, routes: List[RouteDescriptor]) -> List[str]:
    """Words following "route" in the question that match no known route."""
    known = set()
    for route in routes:
        known.add(route.route_id.lower())
        known.update(_WORD_RE.findall((route.route_name or "").lower()))
    unresolved = []
    for name in _ROUTE_REFERENCE_RE.findall(question or ""):
        if name.lower() in _NOT_A_ROUTE_NAME or name.lower() in known:
            continue
        if name not in unresolved:
            unresolved.append(name)
    return unresolved


def build_chat_prompt(
    question: str,
    snapshot: AnalyticsSnapshot,
    stats: UsageStatistics,
) -> str:
    routes = snapshot.routes[:MAX_ROUTES_IN_PROMPT]
    route_lines = "\n".join(_driver_line(snapshot, r) for r in routes) or "- No routes defined"

    uncovered = snapshot.routes_without_drivers()
    uncovered_line = ", ".join(r.label for r in uncovered) if uncovered else "none"

    notes = []
    if snapshot.active_drivers == 0 and snapshot.active_routes:
        notes.append(
            f"ANOMALY: {len(snapshot.active_routes)} route(s) are active but 0 drivers are "
            "currently active. Point this out if the question concerns service or drivers."
        )
    if snapshot.total_drivers and snapshot.active_drivers > snapshot.total_drivers:
        notes.append("ANOMALY: active drivers exceed total drivers; the counters may be stale.")

    lookups = []
    for route in referenced_routes(question, snapshot.routes):
        lookups.append(_driver_line(snapshot, route))
    for name in unresolved_route_references(question, snapshot.routes):
        lookups.append(
            f"- '{name}': no route with this name exists in the data; "
            "its driver assignments are unavailable"
        )

    sections = [
        "You are an AI analytics assistant for a university shuttle management system.",
        f'Answer this question: "{(question or "").strip()}"',
        f"Current System Data:\n{_system_overview(snapshot)}",
        f"Routes and driver assignments:\n{route_lines}",
        f"Active routes with zero assigned drivers: {uncovered_line}",
        f"Usage Statistics:\n{_usage_block(stats)}",
    ]
    if notes:
        sections.append("Data notes:\n" + "\n".join(notes))
    if lookups:
        sections.append("Routes referenced in the question:\n" + "\n".join(lookups))
    sections.append(
        "Reply rules:\n"
        f"- Plain text only, at most {CHAT_MAX_WORDS} words, no markdown, lists or headings.\n"
        "- Use only the data above and quote the relevant numbers.\n"
        "- If the answer cannot be resolved from this data (for example driver assignments "
        "for a route that is not listed or has no assignment records), say that the "
        "information is unavailable instead of guessing.\n"
        "- Mention any anomaly above when it affects the answer."
    )
    return "\n\n".join(sections)


def build_prompt(
    kind: TaskKind,
    snapshot: AnalyticsSnapshot,
    stats: UsageStatistics,
    question: Optional[str] = None,
    today: Optional[date] = None,
) -> str:
    """Dispatch to the builder for a task kind."""
    if kind is TaskKind.DEMAND_PREDICTIONS:
        return build_demand_prediction_prompt(snapshot, stats, today or date.today())
    if kind is TaskKind.SCHEDULE_OPTIMIZATIONS:
        return build_schedule_optimization_prompt(snapshot, stats)
    if kind is TaskKind.INSIGHTS:
        return build_insights_prompt(snapshot, stats)
    if kind is TaskKind.TREND_PREDICTIONS:
        return build_trend_prediction_prompt(snapshot, stats)
    if kind is TaskKind.RECOMMENDATIONS:
        return build_recommendations_prompt(snapshot, stats)
    return build_chat_prompt(question or "", snapshot, stats)
