from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Iterable

from nav_analytics.exceptions import InputDataError
from nav_analytics.types import CashFlowEvent, EquitySnapshot, PricePoint
from nav_analytics.util import norm_key, parse_money, sniff_delimiter, to_date

logger = logging.getLogger(__name__)


def _rows(path: Path) -> list[dict[str, str]]:
    try:
        text = path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        raise InputDataError(f"Cannot read {path}: {e}") from e
    reader = csv.DictReader(text.splitlines(), delimiter=sniff_delimiter(text))
    out: list[dict[str, str]] = []
    for r in reader:
        if not r:
            continue
        out.append({norm_key(k): v for k, v in r.items() if k})
    return out


def _pick(row: dict[str, str], *keys: str) -> Any:
    for k in keys:
        if k in row and str(row[k] or "").strip():
            return row[k]
    return None


def load_snapshots_csv(path: Path) -> list[EquitySnapshot]:
    """
    Read equity snapshots (date, net_equity, optional cash_balance/deposit/management_fee).

    Rows without a parseable date or equity are skipped. Duplicate dates are an
    error: the recurrence needs one valuation per day.
    """
    by_date: dict = {}
    for i, r in enumerate(_rows(path), start=2):
        d = to_date(_pick(r, "date", "day", "as_of", "timestamp"))
        eq = parse_money(_pick(r, "net_equity", "equity", "nav", "value"))
        if d is None or eq is None:
            logger.warning("Skipping %s line %d: missing date or equity", path.name, i)
            continue
        if d in by_date:
            raise InputDataError(f"Duplicate valuation date {d} in {path}")
        by_date[d] = EquitySnapshot(
            date=d,
            net_equity=eq,
            cash_balance=parse_money(_pick(r, "cash_balance", "cash")),
            deposit=parse_money(_pick(r, "deposit", "daily_deposit", "cash_flow")) or 0.0,
            management_fee=parse_money(_pick(r, "management_fee", "fee")),
        )
    return [by_date[d] for d in sorted(by_date)]


def load_prices_csv(path: Path, symbol: str) -> list[PricePoint]:
    sym = (symbol or "").strip().upper()
    dedup: dict = {}
    for r in _rows(path):
        d = to_date(_pick(r, "date", "day", "timestamp"))
        # Prefer adjusted close when available.
        c = parse_money(_pick(r, "adj_close", "adjclose", "close", "price", "value"))
        if d is None or c is None or c <= 0:
            continue
        dedup[d] = c
    return [PricePoint(symbol=sym, date=d, close=dedup[d]) for d in sorted(dedup)]


def load_cash_flows_csv(path: Path) -> list[CashFlowEvent]:
    out: list[CashFlowEvent] = []
    for r in _rows(path):
        d = to_date(_pick(r, "deposit_date", "date"))
        amt = parse_money(_pick(r, "amount", "deposit"))
        if d is None or amt is None:
            continue
        out.append(CashFlowEvent.from_ledger(d, amt, _pick(r, "transaction_type", "type")))
    out.sort(key=lambda e: e.date)
    return out


def write_metrics(rows: Iterable[dict[str, Any]], *, csv_path: Path, parquet_path: Path | None = None) -> list[str]:
    """
    Write rows to CSV, and to Parquet when pandas (with a Parquet engine) is available.
    """
    rows = list(rows)
    warnings: list[str] = []
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        if rows:
            cols = list(rows[0].keys())
            for r in rows[1:]:
                cols.extend(k for k in r.keys() if k not in cols)
            w = csv.DictWriter(f, fieldnames=cols)
            w.writeheader()
            for r in rows:
                w.writerow({k: r.get(k) for k in cols})
    if parquet_path is None:
        return warnings
    try:
        import pandas as pd

        parquet_path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(rows).to_parquet(parquet_path, index=False)
    except ImportError:
        warnings.append(f"Parquet not written ({parquet_path.name}): pandas/pyarrow not installed.")
    except Exception as e:
        warnings.append(f"Parquet not written ({parquet_path.name}): {e}. CSV written to {csv_path.name} instead.")
    return warnings
