from __future__ import annotations

import csv
import datetime as dt
import re
from typing import Any


_MONEY_RE = re.compile(r"[-+]?\d[\d,]*\.?\d*")

# Unix timestamps below this are treated as plain numbers, not dates.
_MIN_EPOCH_S = 86400 * 365


def sniff_delimiter(text: str) -> str:
    sample = "\n".join((text or "").splitlines()[:30])
    if not sample:
        return ","
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",\t;")
        return getattr(dialect, "delimiter", ",") or ","
    except csv.Error:
        return ","


def norm_key(s: str) -> str:
    s = str(s or "").strip().lower()
    return re.sub(r"[^a-z0-9]+", "_", s).strip("_")


def to_date(value: Any) -> dt.date | None:
    """
    Normalize a storage/CSV date value to its UTC calendar day.

    Accepts `date`, `datetime` (converted to UTC when aware), Unix timestamps in
    seconds (the dashboard's storage format), ISO strings and common broker formats.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if value < _MIN_EPOCH_S:
            return None
        return dt.datetime.fromtimestamp(int(value), tz=dt.timezone.utc).date()
    s = str(value).strip()
    if not s:
        return None
    if s.isdigit() and len(s) >= 9:
        return to_date(int(s))
    try:
        return dt.date.fromisoformat(s[:10])
    except ValueError:
        pass
    for fmt in ("%m/%d/%Y", "%m/%d/%y", "%d-%b-%y", "%d-%b-%Y", "%Y/%m/%d"):
        try:
            return dt.datetime.strptime(s.split()[0], fmt).date()
        except ValueError:
            continue
    return None


def parse_money(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    if not s:
        return None
    neg = False
    # Formats like "(123.45)".
    if s.startswith("(") and s.endswith(")"):
        neg = True
        s = s[1:-1]
    m = _MONEY_RE.search(s.replace("$", "").replace("*", "").replace(" ", ""))
    if not m:
        return None
    try:
        x = float(m.group(0).replace(",", ""))
    except ValueError:
        return None
    if neg:
        return -abs(x)
    return x


def epoch_s(d: dt.date) -> int:
    # Midnight UTC, matching how the dashboard stores valuation days.
    return int(dt.datetime(d.year, d.month, d.day, tzinfo=dt.timezone.utc).timestamp())
