# ABOUTME: Groups period comparisons, forecasting heuristics, and the trend engine.
# ABOUTME: Re-exports the engine plus the window and forecast helpers it relies on.

from .engine import ComparativeAnalytics, TimeRangeAnalytics, TrendEngine
from .forecast import ForecastInsight, assess_staff_risk, forecast_category, training_priorities
from .periods import TIMEFRAMES, comparison_windows, percent_change

__all__ = [
    "TrendEngine",
    "TimeRangeAnalytics",
    "ComparativeAnalytics",
    "ForecastInsight",
    "assess_staff_risk",
    "forecast_category",
    "training_priorities",
    "TIMEFRAMES",
    "comparison_windows",
    "percent_change",
]
