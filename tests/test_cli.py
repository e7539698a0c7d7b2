from __future__ import annotations

import datetime as dt
import json

import pytest
from sqlalchemy.orm import Session
from typer.testing import CliRunner

from nav_analytics.cli import app
from nav_analytics.db import session as db_session
from nav_analytics.db.models import Account, DailyNetEquity, MarketPrice

runner = CliRunner()


@pytest.fixture()
def equity_csv(tmp_path):
    p = tmp_path / "equity.csv"
    p.write_text("date,net_equity,deposit\n2024-01-02,10500,0\n2024-01-03,9000,0\n")
    return p


@pytest.fixture()
def prices_csv(tmp_path):
    p = tmp_path / "qqq.csv"
    p.write_text("date,close\n2024-01-02,100\n2024-01-03,110\n")
    return p


def test_metrics_newest_first(equity_csv):
    result = runner.invoke(app, ["metrics", "--snapshots", str(equity_csv), "--initial-equity", "10000"])
    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert [r["date"] for r in rows] == ["2024-01-03", "2024-01-02"]
    assert rows[1]["daily_return"] == pytest.approx(0.05)
    assert rows[0]["drawdown"] == pytest.approx((0.9 - 1.05) / 1.05)


def test_metrics_csv_output(equity_csv, tmp_path):
    out = tmp_path / "m.csv"
    result = runner.invoke(
        app,
        ["metrics", "--snapshots", str(equity_csv), "--initial-equity", "10000", "--order", "oldest", "--out", str(out)],
    )
    assert result.exit_code == 0, result.output
    lines = out.read_text().splitlines()
    assert lines[0].startswith("date,net_equity,daily_deposit,daily_return")
    assert lines[1].startswith("2024-01-02,")


def test_invalid_order_rejected(equity_csv):
    result = runner.invoke(
        app, ["metrics", "--snapshots", str(equity_csv), "--initial-equity", "10000", "--order", "sideways"]
    )
    assert result.exit_code != 0


def test_benchmark_command(equity_csv, prices_csv):
    result = runner.invoke(
        app,
        [
            "benchmark",
            "--snapshots",
            str(equity_csv),
            "--prices",
            str(prices_csv),
            "--initial-equity",
            "10000",
            "--order",
            "oldest",
        ],
    )
    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert rows[0]["shares"] == pytest.approx(100.0)
    assert rows[1]["net_equity"] == pytest.approx(11000.0)


def test_summary_command(equity_csv, prices_csv, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RISK_FREE_RATE_ANNUAL", raising=False)
    result = runner.invoke(
        app,
        [
            "summary",
            "--snapshots",
            str(equity_csv),
            "--initial-equity",
            "10000",
            "--prices",
            str(prices_csv),
            "--symbol",
            "qqq",
        ],
    )
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["account"]["returnPercentage"] == pytest.approx(-0.1)
    assert data["account"]["newHighCount"] == 1
    assert data["benchmark"]["symbol"] == "QQQ"
    assert data["benchmark"]["returnPercentage"] == pytest.approx(0.1)


def test_duplicate_dates_exit_nonzero(tmp_path):
    p = tmp_path / "dup.csv"
    p.write_text("date,net_equity\n2024-01-02,1\n2024-01-02,2\n")
    result = runner.invoke(app, ["metrics", "--snapshots", str(p), "--initial-equity", "1"])
    assert result.exit_code == 1


def test_cohort_reads_database(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'nav.db'}")
    monkeypatch.setattr(db_session, "_ENGINE", None)
    db_session.init_db()
    with Session(db_session.get_engine()) as s:
        s.add(Account(id=1, name="Alice", initial_cost=10000.0))
        s.add(DailyNetEquity(account_id=1, date=dt.date(2024, 1, 2), net_equity=10500.0))
        s.add(MarketPrice(symbol="QQQ", date=dt.date(2024, 1, 2), close=100.0))
        s.commit()

    result = runner.invoke(app, ["cohort", "--symbol", "QQQ"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data[0]["id"] == 1
    assert data[0]["name"] == "Alice"
    assert data[0]["stats"]["returnPercentage"] == pytest.approx(0.05)
    assert data[0]["benchmark_stats"]["returnPercentage"] == pytest.approx(0.0)


def test_summary_defaults_to_configured_benchmark(equity_csv, prices_csv, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "nav_analytics.yaml").write_text("benchmark_symbols: [spy, QQQ]\n")
    result = runner.invoke(
        app,
        ["summary", "--snapshots", str(equity_csv), "--initial-equity", "10000", "--prices", str(prices_csv)],
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["benchmark"]["symbol"] == "SPY"


def test_history_overlays_configured_symbols(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "nav_analytics.yaml").write_text("benchmark_symbols: [QQQ, QLD]\n")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'nav.db'}")
    monkeypatch.setattr(db_session, "_ENGINE", None)
    db_session.init_db()
    with Session(db_session.get_engine()) as s:
        s.add(Account(id=1, name="Alice", initial_cost=10000.0))
        s.add(DailyNetEquity(account_id=1, date=dt.date(2024, 1, 2), net_equity=10000.0))
        s.add(DailyNetEquity(account_id=1, date=dt.date(2024, 1, 3), net_equity=10500.0))
        s.add(MarketPrice(symbol="QQQ", date=dt.date(2024, 1, 2), close=100.0))
        s.add(MarketPrice(symbol="QQQ", date=dt.date(2024, 1, 3), close=110.0))
        s.commit()

    result = runner.invoke(app, ["history", "--account-id", "1"])
    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert [r["date"] for r in rows] == ["2024-01-02", "2024-01-03"]
    assert rows[1]["rate"] == pytest.approx(5.0)
    assert rows[1]["qqq_rate"] == pytest.approx(10.0)
    # No QLD prices stored: the overlay stays empty.
    assert rows[1]["qld_rate"] is None
