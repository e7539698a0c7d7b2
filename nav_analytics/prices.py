from __future__ import annotations

import bisect
import datetime as dt
import math
from typing import Iterable

from nav_analytics.types import PricePoint


class PriceIndex:
    """
    Step-function view over one symbol's closing prices.

    Points are sorted and de-duplicated by date on construction (last row wins).
    Non-positive or non-finite closes are not observations and are dropped, so a
    data gap can never surface as a price of zero.
    """

    def __init__(self, points: Iterable[PricePoint | tuple[dt.date, float]]):
        by_date: dict[dt.date, float] = {}
        for p in points:
            if isinstance(p, PricePoint):
                d, c = p.date, p.close
            else:
                d, c = p
            if d is None or c is None:
                continue
            c = float(c)
            if not math.isfinite(c) or c <= 0:
                continue
            by_date[d] = c
        self._by_date = by_date
        self._dates = sorted(by_date)
        self._closes = [by_date[d] for d in self._dates]

    def __len__(self) -> int:
        return len(self._dates)

    def __bool__(self) -> bool:
        return bool(self._dates)

    @property
    def first_date(self) -> dt.date | None:
        return self._dates[0] if self._dates else None

    @property
    def last_date(self) -> dt.date | None:
        return self._dates[-1] if self._dates else None

    def points(self) -> list[tuple[dt.date, float]]:
        return list(zip(self._dates, self._closes))

    def between(self, start: dt.date, end: dt.date) -> list[tuple[dt.date, float]]:
        lo = bisect.bisect_left(self._dates, start)
        hi = bisect.bisect_right(self._dates, end)
        return list(zip(self._dates[lo:hi], self._closes[lo:hi]))

    def resolve(self, target: dt.date) -> float | None:
        exact = self._by_date.get(target)
        if exact is not None:
            return exact
        i = bisect.bisect_right(self._dates, target)
        if i == 0:
            return None
        return self._closes[i - 1]


def resolve_price(
    series: PriceIndex | Iterable[PricePoint | tuple[dt.date, float]],
    target: dt.date,
) -> float | None:
    """
    Close effective on `target`: exact match, else the latest observation on or
    before it, else None (no observation yet; the caller picks the fallback).
    """
    if isinstance(series, PriceIndex):
        return series.resolve(target)
    return PriceIndex(series).resolve(target)
