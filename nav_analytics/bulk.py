from __future__ import annotations

import glob
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Sequence

from nav_analytics.benchmark import benchmark_base_date, simulate_benchmark
from nav_analytics.cache import NullCache, ResponseCache, cached
from nav_analytics.cashflows import total_contributions
from nav_analytics.config import EngineConfig
from nav_analytics.summary import summarize
from nav_analytics.twr import compute_daily_metrics
from nav_analytics.types import AccountInput, AccountSummary, DailyMetric, PerformanceSummary

logger = logging.getLogger(__name__)


def _summarize(metrics: Sequence[DailyMetric], initial_equity: float, cfg: EngineConfig) -> PerformanceSummary:
    return summarize(
        metrics,
        initial_equity,
        risk_free_rate=cfg.risk_free_rate_annual,
        trading_days=cfg.trading_days_per_year,
        calendar_days=cfg.calendar_days_per_year,
    )


def summarize_account(
    account: AccountInput,
    *,
    config: EngineConfig | None = None,
    year: int | None = None,
) -> AccountSummary:
    cfg = config or EngineConfig()
    snaps = list(account.snapshots)
    initial = float(account.initial_equity)

    stats = None
    benchmark_stats = None
    if snaps:
        stats = _summarize(compute_daily_metrics(snaps, initial), initial, cfg)
        if account.prices:
            base = benchmark_base_date(year, snaps[0].date)
            bm = simulate_benchmark(snaps, account.prices, initial, base_date=base)
            benchmark_stats = _summarize(bm, initial, cfg)

    cash = None
    for s in reversed(snaps):
        if s.cash_balance is not None:
            cash = float(s.cash_balance)
            break
    return AccountSummary(
        account_id=int(account.account_id),
        name=account.name,
        initial_equity=initial,
        current_equity=float(snaps[-1].net_equity) if snaps else initial,
        cumulative_deposits=total_contributions(snaps),
        current_cash_balance=cash,
        total_management_fees=float(sum(float(s.management_fee or 0.0) for s in snaps)),
        stats=stats,
        benchmark_stats=benchmark_stats,
    )


def summarize_cohort(
    accounts: Iterable[AccountInput],
    *,
    config: EngineConfig | None = None,
    year: int | None = None,
    max_workers: int | None = None,
) -> list[AccountSummary]:
    """
    Per-account summaries, in input order.

    Accounts share no state, so they run on a thread pool; each account's own
    series is still processed in date order by a single worker.
    """
    cfg = config or EngineConfig()
    items = list(accounts)
    if not items:
        return []
    cap = max_workers or cfg.max_workers or len(items)
    workers = max(1, min(int(cap), len(items)))
    logger.debug("Summarizing %d accounts on %d workers", len(items), workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda a: summarize_account(a, config=cfg, year=year), items))


_KEY_SEP = "|"


def _key_symbol(symbol: str | None) -> str:
    # "-" and "." occur in real symbols (BRK-B, BRK.B); "|" does not.
    sym = (symbol or "").strip().upper().replace(_KEY_SEP, "_")
    return sym or "NONE"


def cohort_cache_key(account_ids: Iterable[int], symbol: str | None = None, year: int | None = None) -> str:
    ids = ",".join(str(i) for i in sorted({int(x) for x in account_ids}))
    return _KEY_SEP.join(["cohort", ids, _key_symbol(symbol), str(year or "all")])


class BulkOrchestrator:
    """Cohort summaries behind an injected response cache."""

    def __init__(self, *, cache: ResponseCache | None = None, config: EngineConfig | None = None):
        self.cache: ResponseCache = cache if cache is not None else NullCache()
        self.config = config or EngineConfig()

    def run(
        self,
        accounts: Sequence[AccountInput],
        *,
        symbol: str | None = None,
        year: int | None = None,
    ) -> list[AccountSummary]:
        key = cohort_cache_key((a.account_id for a in accounts), symbol, year)
        result = cached(
            self.cache,
            key,
            lambda: summarize_cohort(accounts, config=self.config, year=year),
            ttl=self.config.cache_ttl_seconds,
        )
        return list(result)

    def invalidate_symbol(self, symbol: str) -> int:
        # Call after writing corrected prices for `symbol`.
        pattern = _KEY_SEP.join(["cohort", "*", glob.escape(_key_symbol(symbol)), "*"])
        return self.cache.invalidate(pattern)

    def invalidate_all(self) -> int:
        return self.cache.invalidate(f"cohort{_KEY_SEP}*")
