from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import Date, Enum, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


TransactionType = Enum("deposit", "withdrawal", name="transaction_type")


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="customer")
    # Declared starting capital; seeds the first day's return base.
    initial_cost: Mapped[Optional[float]] = mapped_column(Float)

    equity_rows: Mapped[list["DailyNetEquity"]] = relationship(back_populates="account")
    deposits: Mapped[list["Deposit"]] = relationship(back_populates="account")


class DailyNetEquity(Base):
    __tablename__ = "daily_net_equity"
    __table_args__ = (UniqueConstraint("account_id", "date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    net_equity: Mapped[float] = mapped_column(Float, nullable=False)
    cash_balance: Mapped[Optional[float]] = mapped_column(Float)
    deposit: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    management_fee: Mapped[Optional[float]] = mapped_column(Float)

    account: Mapped["Account"] = relationship(back_populates="equity_rows")


class Deposit(Base):
    __tablename__ = "deposits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    deposit_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    # Always stored positive; the type carries the sign.
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    transaction_type: Mapped[str] = mapped_column(TransactionType, nullable=False, default="deposit")
    note: Mapped[Optional[str]] = mapped_column(String(500))

    account: Mapped["Account"] = relationship(back_populates="deposits")


class MarketPrice(Base):
    __tablename__ = "market_prices"
    __table_args__ = (
        UniqueConstraint("symbol", "date"),
        Index("ix_market_prices_symbol_date", "symbol", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    close: Mapped[float] = mapped_column(Float, nullable=False)
