from core.config import settings

from .analytics_container import AnalyticsContainer

analytics_container = AnalyticsContainer(settings=settings)

__all__ = ["AnalyticsContainer", "analytics_container"]
