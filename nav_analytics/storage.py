from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nav_analytics.benchmark import benchmark_base_date
from nav_analytics.cashflows import apply_cash_flows
from nav_analytics.db.models import Account, DailyNetEquity, Deposit, MarketPrice
from nav_analytics.exceptions import StorageError
from nav_analytics.types import AccountInput, CashFlowEvent, EquitySnapshot, PricePoint

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_EQUITY = 10000.0

# Extra history fetched before the base date so a holiday base still resolves.
PRICE_LOOKBACK_DAYS = 7


class SnapshotStore(Protocol):
    def account_ids(self) -> list[int]:
        raise NotImplementedError

    def initial_equity(self, account_id: int) -> float:
        raise NotImplementedError

    def snapshots(self, account_id: int, *, year: int | None = None) -> list[EquitySnapshot]:
        raise NotImplementedError

    def cash_flows(self, account_id: int) -> list[CashFlowEvent]:
        raise NotImplementedError

    def prices(self, symbol: str, start: dt.date, end: dt.date) -> list[PricePoint]:
        raise NotImplementedError


@contextmanager
def _storage_errors(what: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Storage failure while loading %s: %s", what, e)
        raise StorageError(f"Failed to load {what}: {type(e).__name__}: {e}") from e


class SqlSnapshotStore:
    def __init__(self, session: Session, *, default_initial_equity: float = DEFAULT_INITIAL_EQUITY):
        self.session = session
        self.default_initial_equity = float(default_initial_equity)

    def account_ids(self, *, role: str | None = "customer") -> list[int]:
        with _storage_errors("accounts"):
            q = self.session.query(Account.id)
            if role:
                q = q.filter(Account.role == role)
            return [int(r[0]) for r in q.order_by(Account.id.asc()).all()]

    def account_name(self, account_id: int) -> str:
        with _storage_errors(f"account {account_id}"):
            acct = self.session.get(Account, int(account_id))
        return str(acct.name or "") if acct is not None else ""

    def initial_equity(self, account_id: int) -> float:
        with _storage_errors(f"initial equity for account {account_id}"):
            acct = self.session.get(Account, int(account_id))
        if acct is None or not acct.initial_cost:
            return self.default_initial_equity
        return float(acct.initial_cost)

    def snapshots(self, account_id: int, *, year: int | None = None) -> list[EquitySnapshot]:
        with _storage_errors(f"equity snapshots for account {account_id}"):
            q = self.session.query(DailyNetEquity).filter(DailyNetEquity.account_id == int(account_id))
            if year is not None:
                q = q.filter(
                    DailyNetEquity.date >= dt.date(int(year), 1, 1),
                    DailyNetEquity.date <= dt.date(int(year), 12, 31),
                )
            rows = q.order_by(DailyNetEquity.date.asc()).all()
        return [
            EquitySnapshot(
                date=r.date,
                net_equity=float(r.net_equity),
                cash_balance=float(r.cash_balance) if r.cash_balance is not None else None,
                deposit=float(r.deposit or 0.0),
                management_fee=float(r.management_fee) if r.management_fee is not None else None,
            )
            for r in rows
        ]

    def cash_flows(self, account_id: int) -> list[CashFlowEvent]:
        with _storage_errors(f"deposits for account {account_id}"):
            rows = (
                self.session.query(Deposit)
                .filter(Deposit.account_id == int(account_id))
                .order_by(Deposit.deposit_date.asc(), Deposit.id.asc())
                .all()
            )
        return [CashFlowEvent.from_ledger(r.deposit_date, r.amount, r.transaction_type) for r in rows]

    def prices(self, symbol: str, start: dt.date, end: dt.date) -> list[PricePoint]:
        sym = (symbol or "").strip().upper()
        with _storage_errors(f"prices for {sym}"):
            rows = (
                self.session.query(MarketPrice)
                .filter(MarketPrice.symbol == sym, MarketPrice.date >= start, MarketPrice.date <= end)
                .order_by(MarketPrice.date.asc())
                .all()
            )
        return [PricePoint(symbol=sym, date=r.date, close=float(r.close)) for r in rows]


def price_window(snapshots: Sequence[EquitySnapshot], *, year: int | None = None) -> tuple[dt.date, dt.date] | None:
    """Date range of benchmark prices needed to simulate `snapshots`, or None when empty."""
    if not snapshots:
        return None
    base = benchmark_base_date(year, snapshots[0].date)
    start = min(base, snapshots[0].date) - dt.timedelta(days=PRICE_LOOKBACK_DAYS)
    return start, snapshots[-1].date


def load_benchmark_prices(
    store: SnapshotStore,
    symbols: Iterable[str],
    snapshots: Sequence[EquitySnapshot],
    *,
    year: int | None = None,
) -> dict[str, list[PricePoint]]:
    window = price_window(snapshots, year=year)
    if window is None:
        return {}
    return {s.strip().upper(): store.prices(s, *window) for s in symbols if s and s.strip()}


def load_account_input(
    store: SnapshotStore,
    account_id: int,
    *,
    symbol: str | None = None,
    year: int | None = None,
    use_deposit_ledger: bool = False,
    name: str = "",
) -> AccountInput:
    """
    Assemble one account's engine input from the storage collaborator.

    `use_deposit_ledger` replaces each snapshot's folded-in deposit with the
    deposits ledger's net flow for that day.
    """
    snaps = store.snapshots(account_id, year=year)
    if use_deposit_ledger:
        snaps = apply_cash_flows(snaps, store.cash_flows(account_id))
    prices: list[PricePoint] = []
    window = price_window(snaps, year=year)
    if symbol and window is not None:
        prices = store.prices(symbol, *window)
    return AccountInput(
        account_id=int(account_id),
        name=name,
        initial_equity=store.initial_equity(account_id),
        snapshots=tuple(snaps),
        prices=tuple(prices),
    )
