from __future__ import annotations

import datetime as dt

import pytest

from nav_analytics.chart import build_equity_history


def test_rows_carry_account_rate_and_overlays(snaps):
    rows = snaps(("2024-01-02", 10000.0), ("2024-01-03", 10500.0), ("2024-01-04", 11550.0))
    qqq = [(dt.date(2024, 1, 2), 100.0), (dt.date(2024, 1, 3), 110.0), (dt.date(2024, 1, 4), 121.0)]
    qld = [(dt.date(2024, 1, 3), 50.0), (dt.date(2024, 1, 4), 40.0)]
    out = build_equity_history(rows, 10000.0, {"QQQ": qqq, "QLD": qld})

    assert [r["date"] for r in out] == ["2024-01-02", "2024-01-03", "2024-01-04"]
    assert out[0]["rate"] == pytest.approx(0.0)
    assert out[2]["rate"] == pytest.approx(15.5)
    assert out[2]["net_equity"] == 11550.0
    assert out[1]["qqq_rate"] == pytest.approx(10.0)
    assert out[2]["qqq_rate"] == pytest.approx(21.0)
    # QLD has no close yet on the first day.
    assert out[0]["qld_rate"] is None
    assert out[1]["qld_rate"] == pytest.approx(0.0)
    assert out[2]["qld_rate"] == pytest.approx(-20.0)


def test_without_benchmarks_only_account_columns(snaps):
    out = build_equity_history(snaps(("2024-01-02", 10100.0)), 10000.0)
    assert set(out[0]) == {"date", "net_equity", "rate"}
    assert out[0]["rate"] == pytest.approx(1.0)
