from __future__ import annotations

__all__ = [
    "AccountInput",
    "AccountSummary",
    "BenchmarkMetric",
    "BulkOrchestrator",
    "CashFlowEvent",
    "DailyMetric",
    "EquitySnapshot",
    "PerformanceSummary",
    "PriceIndex",
    "PricePoint",
    "TTLCache",
    "TwrRecurrence",
    "compute_daily_metrics",
    "newest_first",
    "oldest_first",
    "resolve_price",
    "simulate_benchmark",
    "summarize",
    "summarize_cohort",
]

from nav_analytics.benchmark import simulate_benchmark
from nav_analytics.bulk import BulkOrchestrator, summarize_cohort
from nav_analytics.cache import TTLCache
from nav_analytics.prices import PriceIndex, resolve_price
from nav_analytics.summary import summarize
from nav_analytics.twr import TwrRecurrence, compute_daily_metrics
from nav_analytics.types import (
    AccountInput,
    AccountSummary,
    BenchmarkMetric,
    CashFlowEvent,
    DailyMetric,
    EquitySnapshot,
    PerformanceSummary,
    PricePoint,
    newest_first,
    oldest_first,
)
