from __future__ import annotations

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from nav_analytics.db.models import Base


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", "sqlite:///./data/nav_analytics.db")


_ENGINE: Engine | None = None


def get_engine() -> Engine:
    global _ENGINE
    if _ENGINE is not None:
        return _ENGINE
    url = get_database_url()
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    _ENGINE = create_engine(url, future=True, connect_args=connect_args)
    return _ENGINE


def init_db(engine: Engine | None = None) -> None:
    Base.metadata.create_all(bind=engine or get_engine())


def get_session() -> Session:
    factory = sessionmaker(bind=get_engine(), class_=Session, autoflush=False, autocommit=False)
    return factory()
