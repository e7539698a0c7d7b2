from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    trading_days_per_year: int = Field(default=252, gt=0, description="Volatility annualization factor")
    calendar_days_per_year: int = Field(default=365, gt=0, description="Return annualization basis")
    risk_free_rate_annual: float = 0.0
    cache_ttl_seconds: float = Field(default=300.0, ge=0)
    max_workers: Optional[int] = Field(default=None, description="Cohort thread pool cap; None = one per account")
    # Accounts without a declared starting capital fall back to this.
    default_initial_equity: float = 10000.0
    benchmark_symbols: list[str] = Field(default_factory=lambda: ["QQQ", "QLD"])


def _candidate_paths() -> list[Path]:
    paths = [Path("nav_analytics.yaml")]
    home = Path(os.path.expanduser("~"))
    paths.append(home / ".nav_analytics" / "nav_analytics.yaml")
    return paths


def _env_overrides() -> dict[str, object]:
    out: dict[str, object] = {}
    rf = os.environ.get("RISK_FREE_RATE_ANNUAL")
    if rf is not None and rf.strip():
        out["risk_free_rate_annual"] = float(rf)
    ttl = os.environ.get("NAV_CACHE_TTL_SECONDS")
    if ttl is not None and ttl.strip():
        out["cache_ttl_seconds"] = float(ttl)
    workers = os.environ.get("NAV_MAX_WORKERS")
    if workers is not None and workers.strip():
        out["max_workers"] = int(workers)
    return out


def load_config(path: Path | None = None) -> tuple[EngineConfig, Optional[str]]:
    """
    Load engine config from YAML (if present), then apply environment overrides.

    Search paths when `path` is not given (first match wins):
      - ./nav_analytics.yaml
      - ~/.nav_analytics/nav_analytics.yaml
    """
    data: dict = {}
    source: Optional[str] = None
    for p in [path] if path is not None else _candidate_paths():
        if p.exists():
            data = yaml.safe_load(p.read_text()) or {}
            source = str(p)
            break
    data.update(_env_overrides())
    cfg = EngineConfig.model_validate(data)
    logger.debug("Engine config loaded from %s", source or "defaults")
    return cfg, source
