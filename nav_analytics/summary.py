from __future__ import annotations

import logging
import math
from typing import Sequence

from nav_analytics.types import DailyMetric, PerformanceSummary

logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
CALENDAR_DAYS_PER_YEAR = 365


def sample_std(xs: Sequence[float]) -> float:
    # Fewer than two observations carry no dispersion information.
    if len(xs) < 2:
        return 0.0
    m = sum(xs) / float(len(xs))
    var = sum((x - m) ** 2 for x in xs) / float(len(xs) - 1)
    if var <= 0 or not math.isfinite(var):
        return 0.0
    return math.sqrt(var)


def annualize_return(total_return: float, days_elapsed: int, *, calendar_days: int = CALENDAR_DAYS_PER_YEAR) -> float:
    """
    Compound a period return to a calendar-year basis.

    A zero-length span returns the total unannualized; a wiped-out growth
    factor (<= 0) cannot be compounded and returns -1. A span so short that
    compounding overflows a float also returns the total unannualized.
    """
    if days_elapsed <= 0:
        return float(total_return)
    growth = 1.0 + float(total_return)
    if growth <= 0:
        return -1.0
    try:
        return growth ** (float(calendar_days) / float(days_elapsed)) - 1.0
    except OverflowError:
        logger.debug("Annualizing %.4f over %d days overflows; reporting it unannualized.", total_return, days_elapsed)
        return float(total_return)


def summarize(
    metrics: Sequence[DailyMetric],
    initial_equity: float | None = None,
    *,
    risk_free_rate: float = 0.0,
    trading_days: int = TRADING_DAYS_PER_YEAR,
    calendar_days: int = CALENDAR_DAYS_PER_YEAR,
) -> PerformanceSummary:
    """
    Reduce an oldest-first metric series to summary statistics.

    `initial_equity` is accepted for parity with the per-day computation; the
    statistics depend only on the NAV path. With the default zero risk-free
    rate the Sharpe ratio is annualized return over annualized volatility.
    """
    if not metrics:
        return PerformanceSummary(
            start_date=None,
            return_percentage=0.0,
            max_drawdown=0.0,
            annualized_return=0.0,
            annualized_std_dev=0.0,
            sharpe_ratio=0.0,
            new_high_count=0,
            new_high_freq=0.0,
        )

    first = metrics[0]
    last = metrics[-1]
    total_return = float(last.nav_ratio) - 1.0
    max_drawdown = min(0.0, min(float(m.drawdown) for m in metrics))
    days_elapsed = (last.date - first.date).days
    annualized = annualize_return(total_return, days_elapsed, calendar_days=calendar_days)

    std = sample_std([float(m.daily_return) for m in metrics])
    annualized_std = std * math.sqrt(float(trading_days))
    sharpe = 0.0
    if annualized_std != 0:
        sharpe = (annualized - float(risk_free_rate)) / annualized_std

    new_highs = sum(1 for m in metrics if m.is_new_high)
    return PerformanceSummary(
        start_date=first.date,
        return_percentage=total_return,
        max_drawdown=max_drawdown,
        annualized_return=annualized,
        annualized_std_dev=annualized_std,
        sharpe_ratio=sharpe,
        new_high_count=new_highs,
        new_high_freq=new_highs / float(len(metrics)),
    )
