"""Offline, rule-based substitutes for the AI outputs.

Used whenever the daily budget is spent, the provider fails or its reply
cannot be parsed. Only the snapshot and its usage statistics are needed.
The random source is injected so tests can seed it.
"""
import logging
import random
from datetime import date, timedelta
from typing import Callable, List, Optional

from src.analytics_bc.ai.domain.schemas import (
    DemandPrediction,
    ScheduleOptimization,
    StrategicRecommendation,
    SystemInsight,
    TrendPrediction,
)
from src.analytics_bc.usage.domain.entities import AnalyticsSnapshot, RouteDescriptor, normalize_schedule
from src.analytics_bc.usage.domain.services.usage_aggregator import (
    DAYS_PER_WEEK,
    UsageStatistics,
    round_half_up,
)

logger = logging.getLogger(__name__)

FALLBACK_TIME_SLOTS = ["07:30-08:30", "08:00-09:00", "12:00-13:00", "17:00-18:00"]
SLOT_MULTIPLIERS = {
    "07:30-08:30": 1.3,
    "08:00-09:00": 1.3,
    "12:00-13:00": 0.8,
    "17:00-18:00": 1.2,
}
DEFAULT_DAILY_DEMAND = 15
MIN_PREDICTED_DEMAND = 5
JITTER_RANGE = (-3, 3)
SECOND_PREDICTION_ROUTES = 3

# (name, extra departures, efficiency gain %, reasoning, steps)
SCHEDULE_STRATEGIES = [
    (
        "morning-peak",
        ["07:00", "08:30"],
        18,
        "Morning boardings concentrate before first classes; two extra departures "
        "around the 08:00 peak spread the load.",
        [
            "Add departures at 07:00 and 08:30",
            "Assign a standby driver for the morning block",
            "Compare morning boardings after two weeks",
        ],
    ),
    (
        "evening",
        ["17:30", "18:30"],
        22,
        "Evening classes end after the last regular departure; two late departures "
        "cover students leaving campus.",
        [
            "Add departures at 17:30 and 18:30",
            "Extend the evening driver shift by one hour",
            "Announce the new evening times to students",
        ],
    ),
    (
        "midday-gap-fill",
        ["12:00", "13:30"],
        12,
        "The midday gap between morning and afternoon runs leaves lunch-hour "
        "demand unserved; two midday departures close it.",
        [
            "Add departures at 12:00 and 13:30",
            "Rotate drivers so the midday runs do not extend shifts",
            "Track lunch-hour boardings for a month",
        ],
    ),
    (
        "weekend",
        ["10:00", "14:00"],
        15,
        "Weekend service is thin; two late-morning and afternoon departures support "
        "students using campus facilities.",
        [
            "Add Saturday departures at 10:00 and 14:00",
            "Confirm weekend driver availability",
            "Review weekend ridership monthly",
        ],
    ),
]

BASE_SCHEDULE = ["07:00", "08:00", "10:00", "12:00", "15:00", "17:00"]
BASE_OPTIMIZED_SCHEDULE = [
    "07:00", "07:30", "08:00", "10:00", "12:00", "13:00", "15:00", "17:00", "18:00",
]
BASE_EFFICIENCY_GAIN = 25

FLEET_UTILIZATION_THRESHOLD = 70
DRIVER_COVERAGE_THRESHOLD = 50

TREND_TIMEFRAME = "7 days"
DRIVER_TREND_JITTER = (-1, 1)
UTILIZATION_TREND_STEP = 5


def _percent(part: int, whole: int) -> Optional[int]:
    return round_half_up(part / whole * 100) if whole else None


class FallbackGenerator:
    """Deterministic (given the rng) replacements for AI recommendations."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        today: Callable[[], date] = date.today,
    ):
        self.rng = rng or random.Random()
        self.today = today

    def _daily_demand(self, route: RouteDescriptor, stats: UsageStatistics) -> int:
        boardings = stats.route_demand.get(route.route_id, 0)
        if not boardings:
            return DEFAULT_DAILY_DEMAND
        return round_half_up(boardings / DAYS_PER_WEEK)

    def _prediction(
        self,
        route: RouteDescriptor,
        avg_demand: int,
        slot: str,
        target: date,
        confidence_range: tuple,
    ) -> DemandPrediction:
        adjusted = avg_demand * SLOT_MULTIPLIERS.get(slot, 1.0)
        predicted = max(MIN_PREDICTED_DEMAND, round_half_up(adjusted + self.rng.randint(*JITTER_RANGE)))
        return DemandPrediction(
            route_id=route.route_id,
            route_name=route.route_name,
            predicted_demand=predicted,
            confidence=self.rng.randrange(*confidence_range),
            time_slot=slot,
            date=target.isoformat(),
            reasoning=(
                f"Average of {avg_demand} boardings per day, adjusted for the "
                f"{slot} slot to {adjusted:.1f}"
            ),
            recommended_action=(
                f"Plan capacity for about {predicted} passengers on {route.label} "
                f"between {slot.replace('-', ' and ')}"
            ),
        )

    def demand_predictions(
        self,
        snapshot: AnalyticsSnapshot,
        stats: UsageStatistics,
    ) -> List[DemandPrediction]:
        today = self.today()
        tomorrow = today + timedelta(days=1)
        day_after = today + timedelta(days=2)

        predictions = []
        for index, route in enumerate(snapshot.routes):
            avg_demand = self._daily_demand(route, stats)
            slot = FALLBACK_TIME_SLOTS[index % len(FALLBACK_TIME_SLOTS)]
            predictions.append(self._prediction(route, avg_demand, slot, tomorrow, (70, 85)))

            if index < SECOND_PREDICTION_ROUTES:
                second_slot = FALLBACK_TIME_SLOTS[(index + 2) % len(FALLBACK_TIME_SLOTS)]
                predictions.append(
                    self._prediction(route, avg_demand, second_slot, day_after, (65, 85))
                )

        logger.info(f"[Fallback] Generated {len(predictions)} demand predictions")
        return predictions

    def schedule_optimizations(self, snapshot: AnalyticsSnapshot) -> List[ScheduleOptimization]:
        optimizations = []
        for index, route in enumerate(snapshot.routes):
            if not route.schedule:
                optimizations.append(ScheduleOptimization(
                    route_id=route.route_id,
                    route_name=route.route_name,
                    current_schedule=list(BASE_SCHEDULE),
                    optimized_schedule=list(BASE_OPTIMIZED_SCHEDULE),
                    efficiency_gain=BASE_EFFICIENCY_GAIN,
                    reasoning=(
                        f"{route.label} has no published schedule; a standard six-departure "
                        "day extended with peak-hour runs is recommended."
                    ),
                    implementation_steps=[
                        "Publish the base schedule",
                        "Add the 07:30, 13:00 and 18:00 peak departures",
                        "Assign drivers to every departure",
                        "Review boardings after the first month",
                    ],
                ))
                continue

            name, extra, gain, reasoning, steps = SCHEDULE_STRATEGIES[index % len(SCHEDULE_STRATEGIES)]
            current = normalize_schedule(route.schedule)
            optimizations.append(ScheduleOptimization(
                route_id=route.route_id,
                route_name=route.route_name,
                current_schedule=current,
                optimized_schedule=normalize_schedule(current + extra),
                efficiency_gain=gain,
                reasoning=f"{reasoning} ({name} strategy)",
                implementation_steps=list(steps),
            ))

        logger.info(f"[Fallback] Generated {len(optimizations)} schedule optimizations")
        return optimizations

    def insights(self, snapshot: AnalyticsSnapshot) -> List[SystemInsight]:
        insights = []

        utilization = _percent(snapshot.assigned_shuttles, snapshot.active_shuttles)
        if utilization is not None and utilization < FLEET_UTILIZATION_THRESHOLD:
            insights.append(SystemInsight(
                type="warning",
                title="Low Fleet Utilization",
                description=(
                    f"Only {utilization}% of your shuttle fleet is currently assigned to drivers. "
                    "Consider reassigning available shuttles or reducing fleet size."
                ),
                priority="medium",
                action="Review shuttle assignments and consider fleet optimization",
            ))

        coverage = _percent(snapshot.active_drivers, snapshot.total_drivers)
        if coverage is not None and coverage < DRIVER_COVERAGE_THRESHOLD:
            insights.append(SystemInsight(
                type="warning",
                title="Low Driver Activity",
                description=(
                    f"Only {coverage}% of your drivers are currently active. This may "
                    "indicate scheduling issues or driver engagement problems."
                ),
                priority="high",
                action="Check driver schedules and engagement",
            ))

        if snapshot.available_shuttles > snapshot.assigned_shuttles:
            insights.append(SystemInsight(
                type="info",
                title="Excess Shuttle Capacity",
                description=(
                    f"You have {snapshot.available_shuttles} available shuttles that could be "
                    "assigned to drivers or used for additional routes."
                ),
                priority="low",
                action="Consider expanding routes or driver assignments",
            ))

        uncovered = snapshot.routes_without_drivers()
        if uncovered:
            insights.append(SystemInsight(
                type="recommendation",
                title="Routes Without Drivers",
                description=(
                    f"{len(uncovered)} active route(s) have no assigned driver: "
                    f"{', '.join(r.label for r in uncovered[:5])}."
                ),
                priority="high",
                action="Assign drivers to uncovered routes",
            ))

        if not insights:
            insights.append(SystemInsight(
                type="success",
                title="System Operating Normally",
                description="Fleet utilization, driver coverage and route assignments look healthy.",
                priority="low",
            ))

        logger.info(f"[Fallback] Generated {len(insights)} insights")
        return insights

    def trend_predictions(self, snapshot: AnalyticsSnapshot) -> List[TrendPrediction]:
        drivers = max(0, snapshot.active_drivers)
        predictions = [TrendPrediction(
            metric="Active Drivers",
            current_value=drivers,
            predicted_value=max(0, drivers + self.rng.randint(*DRIVER_TREND_JITTER)),
            confidence=75,
            timeframe=TREND_TIMEFRAME,
            reasoning=f"Based on {drivers} currently active drivers and recent activity patterns",
        )]

        utilization = _percent(snapshot.assigned_shuttles, snapshot.active_shuttles)
        if utilization is not None:
            predictions.append(TrendPrediction(
                metric="Fleet Utilization",
                current_value=max(0, utilization),
                predicted_value=max(0, min(100, utilization + UTILIZATION_TREND_STEP)),
                confidence=80,
                timeframe=TREND_TIMEFRAME,
                reasoning=(
                    f"{snapshot.assigned_shuttles} of {snapshot.active_shuttles} shuttles assigned; "
                    "expected improvement with better assignment management"
                ),
            ))

        logger.info(f"[Fallback] Generated {len(predictions)} trend predictions")
        return predictions

    def recommendations(self, snapshot: AnalyticsSnapshot) -> List[StrategicRecommendation]:
        recommendations = []

        if snapshot.available_shuttles > 0:
            recommendations.append(StrategicRecommendation(
                category="Fleet Management",
                title="Optimize Shuttle Assignments",
                description=(
                    f"You have {snapshot.available_shuttles} unassigned shuttles. Consider assigning "
                    "them to drivers or using them for additional routes."
                ),
                impact="medium",
                effort="low",
                timeline="Immediate",
                steps=[
                    "Review current driver assignments",
                    "Identify drivers without assigned shuttles",
                    "Assign available shuttles to drivers",
                    "Update route assignments accordingly",
                ],
            ))

        if snapshot.active_drivers < snapshot.total_drivers:
            recommendations.append(StrategicRecommendation(
                category="Driver Management",
                title="Increase Driver Engagement",
                description=(
                    f"Only {snapshot.active_drivers} out of {snapshot.total_drivers} drivers are "
                    "currently active. Focus on driver engagement and scheduling."
                ),
                impact="high",
                effort="medium",
                timeline="1-2 weeks",
                steps=[
                    "Contact inactive drivers",
                    "Review scheduling system",
                    "Implement driver incentives",
                    "Improve communication channels",
                ],
            ))

        logger.info(f"[Fallback] Generated {len(recommendations)} recommendations")
        return recommendations
