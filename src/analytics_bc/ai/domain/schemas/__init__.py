from .recommendations import (
    DemandPrediction,
    ScheduleOptimization,
    StrategicRecommendation,
    SystemInsight,
    TrendPrediction,
)

__all__ = [
    "DemandPrediction", "ScheduleOptimization", "SystemInsight",
    "TrendPrediction", "StrategicRecommendation",
]
