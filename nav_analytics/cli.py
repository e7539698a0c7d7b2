from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv

from nav_analytics.benchmark import benchmark_base_date, simulate_benchmark
from nav_analytics.bulk import BulkOrchestrator
from nav_analytics.cache import TTLCache
from nav_analytics.cashflows import apply_cash_flows
from nav_analytics.chart import build_equity_history
from nav_analytics.config import EngineConfig, load_config
from nav_analytics.exceptions import NavAnalyticsError
from nav_analytics.csv_io import load_cash_flows_csv, load_prices_csv, load_snapshots_csv, write_metrics
from nav_analytics.summary import summarize
from nav_analytics.twr import compute_daily_metrics
from nav_analytics.types import newest_first, oldest_first

app = typer.Typer(help="Deposit-neutral performance analytics for account equity snapshots.", add_completion=False)


@app.callback()
def _main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging.")) -> None:
    load_dotenv()
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")


def _ordered(metrics, order: str):
    o = (order or "newest").strip().lower()
    if o not in {"newest", "oldest"}:
        raise typer.BadParameter(f"Invalid --order: {order} (newest|oldest)")
    return newest_first(metrics) if o == "newest" else oldest_first(metrics)


def _symbol_or_default(symbol: Optional[str], cfg: EngineConfig) -> str:
    if symbol and symbol.strip():
        return symbol.strip().upper()
    if not cfg.benchmark_symbols:
        raise typer.BadParameter("No --symbol given and no benchmark_symbols configured.")
    return cfg.benchmark_symbols[0].strip().upper()


def _load_snapshots(snapshots: Path, deposits: Optional[Path]):
    snaps = load_snapshots_csv(snapshots)
    if deposits is not None:
        snaps = apply_cash_flows(snaps, load_cash_flows_csv(deposits))
    return snaps


def _emit(rows: list[dict], out: Optional[Path]) -> None:
    if out is None:
        typer.echo(json.dumps(rows, indent=2))
        return
    for w in write_metrics(rows, csv_path=out, parquet_path=out.with_suffix(".parquet")):
        typer.echo(w, err=True)
    typer.echo(f"Wrote {len(rows)} rows to {out}")


@app.command("metrics")
def metrics_cmd(
    snapshots: Path = typer.Option(..., exists=True, dir_okay=False, help="Equity snapshots CSV."),
    initial_equity: float = typer.Option(..., help="Declared starting capital."),
    deposits: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Optional deposits ledger CSV."),
    order: str = typer.Option("newest", help="newest|oldest"),
    out: Optional[Path] = typer.Option(None, help="Write CSV (and Parquet when available) instead of JSON."),
):
    """Daily return, NAV ratio, running peak and drawdown per snapshot."""
    try:
        metrics = compute_daily_metrics(_load_snapshots(snapshots, deposits), initial_equity)
    except NavAnalyticsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    _emit([m.to_dict() for m in _ordered(metrics, order)], out)


@app.command("benchmark")
def benchmark_cmd(
    snapshots: Path = typer.Option(..., exists=True, dir_okay=False, help="Equity snapshots CSV."),
    prices: Path = typer.Option(..., exists=True, dir_okay=False, help="Benchmark closing prices CSV."),
    symbol: Optional[str] = typer.Option(None, help="Benchmark symbol (label only); defaults to the first configured benchmark."),
    initial_equity: float = typer.Option(..., help="Declared starting capital."),
    year: Optional[int] = typer.Option(None, help="Calendar year: seed the position at the prior Dec 31 close."),
    deposits: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Optional deposits ledger CSV."),
    order: str = typer.Option("newest", help="newest|oldest"),
    out: Optional[Path] = typer.Option(None, help="Write CSV (and Parquet when available) instead of JSON."),
):
    """What-if series: the account's cash flows invested in SYMBOL at its close."""
    cfg, _src = load_config()
    try:
        snaps = _load_snapshots(snapshots, deposits)
        pts = load_prices_csv(prices, _symbol_or_default(symbol, cfg))
        if not snaps:
            bm = []
        else:
            bm = simulate_benchmark(snaps, pts, initial_equity, base_date=benchmark_base_date(year, snaps[0].date))
    except NavAnalyticsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    _emit([m.to_dict() for m in _ordered(bm, order)], out)


@app.command("summary")
def summary_cmd(
    snapshots: Path = typer.Option(..., exists=True, dir_okay=False, help="Equity snapshots CSV."),
    initial_equity: float = typer.Option(..., help="Declared starting capital."),
    prices: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Benchmark closing prices CSV."),
    symbol: Optional[str] = typer.Option(None, help="Benchmark symbol; defaults to the first configured benchmark."),
    year: Optional[int] = typer.Option(None, help="Calendar year for the benchmark base date."),
    deposits: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Optional deposits ledger CSV."),
):
    """Return, drawdown, volatility, Sharpe and new-high statistics (JSON)."""
    cfg, _src = load_config()
    kw = dict(
        risk_free_rate=cfg.risk_free_rate_annual,
        trading_days=cfg.trading_days_per_year,
        calendar_days=cfg.calendar_days_per_year,
    )
    try:
        snaps = _load_snapshots(snapshots, deposits)
        result: dict = {"account": summarize(compute_daily_metrics(snaps, initial_equity), initial_equity, **kw).to_dict()}
        if prices is not None and snaps:
            sym = _symbol_or_default(symbol, cfg)
            bm = simulate_benchmark(
                snaps,
                load_prices_csv(prices, sym),
                initial_equity,
                base_date=benchmark_base_date(year, snaps[0].date),
            )
            result["benchmark"] = {"symbol": sym, **summarize(bm, initial_equity, **kw).to_dict()}
    except NavAnalyticsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result, indent=2))


@app.command("cohort")
def cohort_cmd(
    symbol: Optional[str] = typer.Option(None, help="Benchmark symbol for per-account benchmark stats."),
    year: Optional[int] = typer.Option(None, help="Restrict to one calendar year."),
    use_deposit_ledger: bool = typer.Option(False, help="Take daily flows from the deposits table."),
):
    """Per-account summaries for every customer account in DATABASE_URL."""
    from nav_analytics.db.session import get_session
    from nav_analytics.storage import SqlSnapshotStore, load_account_input

    cfg, _src = load_config()
    orchestrator = BulkOrchestrator(cache=TTLCache(default_ttl=cfg.cache_ttl_seconds), config=cfg)
    try:
        with get_session() as session:
            store = SqlSnapshotStore(session, default_initial_equity=cfg.default_initial_equity)
            accounts = [
                load_account_input(
                    store,
                    aid,
                    symbol=symbol,
                    year=year,
                    use_deposit_ledger=use_deposit_ledger,
                    name=store.account_name(aid),
                )
                for aid in store.account_ids()
            ]
        summaries = orchestrator.run(accounts, symbol=symbol, year=year)
    except NavAnalyticsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps([s.to_dict() for s in summaries], indent=2))


@app.command("history")
def history_cmd(
    account_id: int = typer.Option(..., help="Account id in DATABASE_URL."),
    year: Optional[int] = typer.Option(None, help="Restrict to one calendar year."),
    out: Optional[Path] = typer.Option(None, help="Write CSV (and Parquet when available) instead of JSON."),
):
    """Chart rows: account cumulative return with one overlay per configured benchmark symbol."""
    from nav_analytics.db.session import get_session
    from nav_analytics.storage import SqlSnapshotStore, load_benchmark_prices

    cfg, _src = load_config()
    try:
        with get_session() as session:
            store = SqlSnapshotStore(session, default_initial_equity=cfg.default_initial_equity)
            snaps = store.snapshots(account_id, year=year)
            initial = store.initial_equity(account_id)
            benchmarks = load_benchmark_prices(store, cfg.benchmark_symbols, snaps, year=year)
        base = benchmark_base_date(year, snaps[0].date) if snaps else None
        rows = build_equity_history(snaps, initial, benchmarks, base_date=base)
    except NavAnalyticsError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    _emit(rows, out)


if __name__ == "__main__":
    app()
