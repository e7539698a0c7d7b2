from __future__ import annotations

import dataclasses
import datetime as dt
import logging
from typing import Iterable, Sequence

from nav_analytics.cashflows import bucket_cash_flows
from nav_analytics.prices import PriceIndex
from nav_analytics.twr import TwrRecurrence
from nav_analytics.types import BenchmarkMetric, CashFlowEvent, DailyMetric, EquitySnapshot, PricePoint

logger = logging.getLogger(__name__)


def benchmark_base_date(year: int | None, first_date: dt.date) -> dt.date:
    """
    Date whose close seeds the simulated position.

    Calendar-year reports anchor on the prior year's Dec 31 close; otherwise the
    account's first valuation day.
    """
    if year is None:
        return first_date
    return dt.date(int(year) - 1, 12, 31)


def _as_index(prices: PriceIndex | Iterable[PricePoint | tuple[dt.date, float]]) -> PriceIndex:
    if isinstance(prices, PriceIndex):
        return prices
    return PriceIndex(prices)


def _with_position(m: DailyMetric, *, close_price: float | None, shares: float) -> BenchmarkMetric:
    return BenchmarkMetric(**dataclasses.asdict(m), close_price=close_price, shares=shares)


def simulate_benchmark(
    snapshots: Sequence[EquitySnapshot],
    prices: PriceIndex | Iterable[PricePoint | tuple[dt.date, float]],
    initial_equity: float,
    *,
    base_date: dt.date | None = None,
) -> list[BenchmarkMetric]:
    """
    Replay the account's cash flows against a reference instrument.

    The starting capital buys shares at the base-date close; each day's deposit
    (or withdrawal) buys (or sells) shares at that day's close, and the
    resulting hypothetical equity runs through the same TWR recurrence as the
    real account. Missing closes carry the last resolved price forward.

    Without a base price the simulation starts degraded (no shares, flat NAV);
    the first day with a resolvable price re-seeds the position with
    `initial_equity` plus any cash received while degraded, and that day
    becomes the effective inception (return 0).
    """
    if not snapshots:
        return []
    idx = _as_index(prices)
    initial = float(initial_equity or 0.0)
    start = base_date or snapshots[0].date

    base_price = idx.resolve(start)
    seeded = base_price is not None
    shares = initial / base_price if base_price else 0.0
    if not seeded:
        logger.warning("No benchmark price on or before %s; simulation starts without a position.", start)

    rec = TwrRecurrence(initial)
    prev_price = base_price
    pending_cash = 0.0
    out: list[BenchmarkMetric] = []
    for s in snapshots:
        deposit = float(s.deposit or 0.0)
        current_price = idx.resolve(s.date)
        if current_price is None:
            current_price = prev_price

        if not seeded:
            if current_price is None:
                pending_cash += deposit
                out.append(_with_position(rec.hold(s.date, deposit), close_price=None, shares=0.0))
                continue
            # Re-seed: deposits received while degraded convert at the same close.
            deposit += pending_cash
            pending_cash = 0.0
            shares = (initial + deposit) / current_price
            seeded = True
            logger.debug("Benchmark position re-seeded on %s at %.4f (%.6f shares).", s.date, current_price, shares)
        elif deposit != 0 and current_price > 0:
            shares += deposit / current_price

        hypothetical_equity = shares * current_price
        m = rec.step(s.date, hypothetical_equity, deposit)
        out.append(_with_position(m, close_price=current_price, shares=shares))
        prev_price = current_price
    return out


def simulate_price_series(
    prices: PriceIndex | Iterable[PricePoint | tuple[dt.date, float]],
    initial_equity: float,
    cash_flows: Iterable[CashFlowEvent] = (),
    *,
    start: dt.date,
    end: dt.date,
) -> list[BenchmarkMetric]:
    """
    Benchmark simulation over the instrument's own trading days in [start, end].

    Flows are matched to trading days by date; flows on non-trading days are
    ignored. Fewer than two prices in the window yields an empty series.
    """
    idx = _as_index(prices)
    window = idx.between(start, end)
    if len(window) < 2:
        return []
    by_day = bucket_cash_flows(cash_flows)
    days = [EquitySnapshot(date=d, net_equity=0.0, deposit=float(by_day.get(d) or 0.0)) for d, _c in window]
    return simulate_benchmark(days, idx, initial_equity, base_date=window[0][0])
