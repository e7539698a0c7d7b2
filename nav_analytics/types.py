from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Sequence, TypeVar


@dataclass(frozen=True)
class EquitySnapshot:
    date: dt.date
    net_equity: float
    cash_balance: float | None = None
    deposit: float = 0.0
    management_fee: float | None = None


@dataclass(frozen=True)
class CashFlowEvent:
    """Signed cash flow: contributions positive, withdrawals negative."""

    date: dt.date
    amount: float

    @classmethod
    def from_ledger(cls, date: dt.date, amount: float, transaction_type: str | None = None) -> "CashFlowEvent":
        # Ledger rows store withdrawals as positive amounts with a type flag.
        a = float(amount or 0.0)
        if str(transaction_type or "").strip().lower() == "withdrawal":
            a = -abs(a)
        return cls(date=date, amount=a)


@dataclass(frozen=True)
class PricePoint:
    symbol: str
    date: dt.date
    close: float


@dataclass(frozen=True)
class DailyMetric:
    date: dt.date
    equity: float
    deposit: float
    daily_return: float
    nav_ratio: float
    running_peak: float
    drawdown: float
    is_new_high: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "net_equity": self.equity,
            "daily_deposit": self.deposit,
            "daily_return": self.daily_return,
            "nav_ratio": self.nav_ratio,
            "running_peak": self.running_peak,
            "drawdown": self.drawdown,
            "is_new_high": self.is_new_high,
        }


@dataclass(frozen=True)
class BenchmarkMetric(DailyMetric):
    close_price: float | None = None
    shares: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        out = super().to_dict()
        out["close_price"] = self.close_price
        out["shares"] = self.shares
        return out


@dataclass(frozen=True)
class PerformanceSummary:
    start_date: dt.date | None
    return_percentage: float
    max_drawdown: float
    annualized_return: float
    annualized_std_dev: float
    sharpe_ratio: float
    new_high_count: int
    new_high_freq: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "returnPercentage": self.return_percentage,
            "maxDrawdown": self.max_drawdown,
            "annualizedReturn": self.annualized_return,
            "annualizedStdDev": self.annualized_std_dev,
            "sharpeRatio": self.sharpe_ratio,
            "newHighCount": self.new_high_count,
            "newHighFreq": self.new_high_freq,
        }


@dataclass(frozen=True)
class AccountInput:
    account_id: int
    initial_equity: float
    snapshots: Sequence[EquitySnapshot]
    name: str = ""
    # Benchmark prices (ascending); empty means no benchmark summary.
    prices: Sequence[PricePoint] = field(default_factory=tuple)


@dataclass(frozen=True)
class AccountSummary:
    account_id: int
    name: str
    initial_equity: float
    current_equity: float
    cumulative_deposits: float
    current_cash_balance: float | None
    total_management_fees: float
    stats: PerformanceSummary | None
    benchmark_stats: PerformanceSummary | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.account_id,
            "name": self.name,
            "initial_cost": self.initial_equity,
            "current_net_equity": self.current_equity,
            "total_deposits": self.cumulative_deposits,
            "current_cash_balance": self.current_cash_balance,
            "total_management_fees": self.total_management_fees,
            "stats": self.stats.to_dict() if self.stats else None,
            "benchmark_stats": self.benchmark_stats.to_dict() if self.benchmark_stats else None,
        }


M = TypeVar("M", bound=DailyMetric)


def newest_first(metrics: Sequence[M]) -> list[M]:
    """Table order used by the dashboard's metric listings."""
    return sorted(metrics, key=lambda m: m.date, reverse=True)


def oldest_first(metrics: Sequence[M]) -> list[M]:
    """Chart order."""
    return sorted(metrics, key=lambda m: m.date)
