from __future__ import annotations

import datetime as dt

from nav_analytics.cashflows import apply_cash_flows, bucket_cash_flows, cash_flows_from_snapshots, total_contributions
from nav_analytics.types import CashFlowEvent


def test_ledger_withdrawals_are_negative():
    d = dt.date(2024, 3, 1)
    assert CashFlowEvent.from_ledger(d, 500.0, "deposit").amount == 500.0
    assert CashFlowEvent.from_ledger(d, 500.0, "withdrawal").amount == -500.0
    assert CashFlowEvent.from_ledger(d, -500.0, "Withdrawal").amount == -500.0
    assert CashFlowEvent.from_ledger(d, 250.0).amount == 250.0


def test_bucket_nets_same_day_flows():
    d1, d2 = dt.date(2024, 3, 1), dt.date(2024, 3, 2)
    out = bucket_cash_flows(
        [
            CashFlowEvent(d1, 1000.0),
            CashFlowEvent(d1, -300.0),
            CashFlowEvent(d2, 50.0),
        ]
    )
    assert out == {d1: 700.0, d2: 50.0}


def test_apply_replaces_snapshot_deposits(snaps):
    rows = snaps(("2024-03-01", 10000.0, 999.0), ("2024-03-04", 10200.0))
    out = apply_cash_flows(
        rows,
        [
            CashFlowEvent(dt.date(2024, 3, 4), 200.0),
            # No valuation on the weekend: dropped.
            CashFlowEvent(dt.date(2024, 3, 2), 75.0),
        ],
    )
    assert [s.deposit for s in out] == [0.0, 200.0]
    assert rows[0].deposit == 999.0
    assert out[1].net_equity == 10200.0


def test_flows_from_snapshots_skip_zero_days(snaps):
    rows = snaps(("2024-03-01", 1.0), ("2024-03-04", 1.0, 200.0), ("2024-03-05", 1.0, -50.0))
    assert cash_flows_from_snapshots(rows) == [
        CashFlowEvent(dt.date(2024, 3, 4), 200.0),
        CashFlowEvent(dt.date(2024, 3, 5), -50.0),
    ]
    assert total_contributions(rows) == 150.0
