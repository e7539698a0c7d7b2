from __future__ import annotations

import datetime as dt
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nav_analytics.db.models import Base
from nav_analytics.types import EquitySnapshot


@pytest.fixture()
def session() -> Session:
    engine = create_engine("sqlite:///:memory:", future=True)
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False)
    with SessionLocal() as s:
        yield s


@pytest.fixture()
def snaps():
    """Build ascending snapshots from (iso_date, net_equity[, deposit]) tuples."""

    def _build(*rows):
        out = []
        for r in rows:
            d, eq = r[0], r[1]
            dep = r[2] if len(r) > 2 else 0.0
            out.append(EquitySnapshot(date=dt.date.fromisoformat(d), net_equity=eq, deposit=dep))
        return out

    return _build
