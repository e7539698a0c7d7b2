from __future__ import annotations

import datetime as dt
from typing import Iterable, Sequence

from nav_analytics.exceptions import InputDataError
from nav_analytics.types import DailyMetric, EquitySnapshot


def deposit_neutral_return(*, equity: float, deposit: float, prev_equity: float) -> float:
    """
    Daily return with the day's cash flow removed from both the gain and the base.

    (equity - deposit - prev_equity) / (prev_equity + deposit)

    A zero or negative base (wipeout, or a withdrawal at least as large as the
    prior equity) yields 0 so the cumulative NAV product stays finite.
    """
    denom = float(prev_equity) + float(deposit)
    if denom <= 0:
        return 0.0
    return (float(equity) - float(deposit) - float(prev_equity)) / denom


class TwrRecurrence:
    """
    Day-by-day TWR state machine shared by the account and benchmark paths.

    Feed points strictly in ascending date order; each call returns a fresh
    `DailyMetric` built from the prior day's NAV/peak and the current point.
    """

    def __init__(self, initial_equity: float):
        self.prev_equity = float(initial_equity or 0.0)
        self.prev_nav_ratio = 1.0
        self.peak_nav_ratio = 1.0
        self.last_date: dt.date | None = None

    def _check_order(self, date: dt.date) -> None:
        if self.last_date is not None and date <= self.last_date:
            raise InputDataError(f"Valuation dates must be strictly ascending: {date} after {self.last_date}.")
        self.last_date = date

    def _drawdown(self, nav_ratio: float) -> float:
        if self.peak_nav_ratio <= 0:
            return 0.0
        return (nav_ratio - self.peak_nav_ratio) / self.peak_nav_ratio

    def step(self, date: dt.date, equity: float, deposit: float = 0.0) -> DailyMetric:
        self._check_order(date)
        equity = float(equity)
        deposit = float(deposit or 0.0)
        daily_return = deposit_neutral_return(equity=equity, deposit=deposit, prev_equity=self.prev_equity)
        nav_ratio = self.prev_nav_ratio * (1.0 + daily_return)

        is_new_high = nav_ratio > self.peak_nav_ratio
        if is_new_high:
            self.peak_nav_ratio = nav_ratio
        drawdown = self._drawdown(nav_ratio)

        self.prev_equity = equity
        self.prev_nav_ratio = nav_ratio
        return DailyMetric(
            date=date,
            equity=equity,
            deposit=deposit,
            daily_return=daily_return,
            nav_ratio=nav_ratio,
            running_peak=self.peak_nav_ratio,
            drawdown=drawdown,
            is_new_high=is_new_high,
        )

    def hold(self, date: dt.date, deposit: float = 0.0, *, equity: float = 0.0) -> DailyMetric:
        """
        Emit a flat day: NAV repeats and the base equity does not advance.

        Used while a simulated position does not exist yet.
        """
        self._check_order(date)
        return DailyMetric(
            date=date,
            equity=float(equity),
            deposit=float(deposit or 0.0),
            daily_return=0.0,
            nav_ratio=self.prev_nav_ratio,
            running_peak=self.peak_nav_ratio,
            drawdown=self._drawdown(self.prev_nav_ratio),
            is_new_high=False,
        )


def run_recurrence(points: Iterable[tuple[dt.date, float, float]], initial_equity: float) -> list[DailyMetric]:
    rec = TwrRecurrence(initial_equity)
    return [rec.step(d, equity, deposit) for d, equity, deposit in points]


def compute_daily_metrics(snapshots: Sequence[EquitySnapshot], initial_equity: float) -> list[DailyMetric]:
    """
    Deposit-neutral daily metrics, one per snapshot, oldest first.

    The first snapshot's base is `initial_equity` (declared starting capital).
    """
    return run_recurrence(
        ((s.date, float(s.net_equity), float(s.deposit or 0.0)) for s in snapshots),
        initial_equity,
    )
