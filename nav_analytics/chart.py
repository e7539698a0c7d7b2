from __future__ import annotations

import datetime as dt
from typing import Any, Iterable, Mapping, Sequence

from nav_analytics.benchmark import simulate_benchmark
from nav_analytics.prices import PriceIndex
from nav_analytics.twr import compute_daily_metrics
from nav_analytics.types import EquitySnapshot, PricePoint


def _rate_key(symbol: str) -> str:
    return f"{symbol.strip().lower()}_rate"


def build_equity_history(
    snapshots: Sequence[EquitySnapshot],
    initial_equity: float,
    benchmarks: Mapping[str, PriceIndex | Iterable[PricePoint | tuple[dt.date, float]]] | None = None,
    *,
    base_date: dt.date | None = None,
) -> list[dict[str, Any]]:
    """
    Oldest-first chart rows: account equity, cumulative return (percent) and one
    `<symbol>_rate` overlay per benchmark. Overlays are None until the
    simulated position exists.
    """
    metrics = compute_daily_metrics(snapshots, initial_equity)
    rows: list[dict[str, Any]] = [
        {"date": m.date.isoformat(), "net_equity": m.equity, "rate": (m.nav_ratio - 1.0) * 100.0} for m in metrics
    ]
    for symbol, prices in (benchmarks or {}).items():
        key = _rate_key(symbol)
        for row, bm in zip(rows, simulate_benchmark(snapshots, prices, initial_equity, base_date=base_date)):
            row[key] = (bm.nav_ratio - 1.0) * 100.0 if bm.close_price is not None else None
    return rows
