from __future__ import annotations

import datetime as dt
from dataclasses import replace
from typing import Iterable, Sequence

from nav_analytics.types import CashFlowEvent, EquitySnapshot


def bucket_cash_flows(events: Iterable[CashFlowEvent]) -> dict[dt.date, float]:
    # Net flows by day (portfolio perspective: contributions are positive).
    out: dict[dt.date, float] = {}
    for e in events:
        out[e.date] = float(out.get(e.date) or 0.0) + float(e.amount or 0.0)
    return out


def apply_cash_flows(snapshots: Sequence[EquitySnapshot], events: Iterable[CashFlowEvent]) -> list[EquitySnapshot]:
    """
    Return copies of `snapshots` whose `deposit` is the ledger's net flow for that day.

    Flows on days without a snapshot are not carried anywhere; the valuation
    rows define the recurrence's days.
    """
    by_day = bucket_cash_flows(events)
    return [replace(s, deposit=float(by_day.get(s.date) or 0.0)) for s in snapshots]


def cash_flows_from_snapshots(snapshots: Iterable[EquitySnapshot]) -> list[CashFlowEvent]:
    return [CashFlowEvent(date=s.date, amount=float(s.deposit)) for s in snapshots if s.deposit]


def total_contributions(snapshots: Iterable[EquitySnapshot]) -> float:
    return float(sum(float(s.deposit or 0.0) for s in snapshots))
