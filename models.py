"""
Record types shared by the data pipeline and the dashboard.

Feature collections themselves are pandas DataFrames (see ``AREA_COLUMNS``
and ``INCIDENT_COLUMNS`` in constants.py); the types here describe the
settings, the filter, and the derived summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from constants import (
    DEFAULT_AREA_URL,
    DEFAULT_INCIDENT_URL,
    DEFAULT_JOIN_KEY,
    REQUEST_TIMEOUT_S,
    TOP_N_DISTRICTS,
)


@dataclass(frozen=True)
class Settings:
    """Where to load the datasets from and how to join them."""
    area_url: str = DEFAULT_AREA_URL
    incident_url: str = DEFAULT_INCIDENT_URL
    join_key: str = DEFAULT_JOIN_KEY
    top_n: int = TOP_N_DISTRICTS
    timeout: float = REQUEST_TIMEOUT_S


@dataclass(frozen=True)
class FilterState:
    """Current status/district selection. ``None`` or ``""`` means no constraint."""
    status: Optional[str] = None
    district: Optional[str] = None

    @property
    def is_unconstrained(self) -> bool:
        return not self.status and not self.district


@dataclass(frozen=True)
class AggregateSummary:
    """Counts and percentages for the active incident subset.

    Each breakdown frame has the columns ``value``, ``count`` and
    ``percentage``, with categories in first-encountered order.
    """
    total: int
    by_status: pd.DataFrame
    by_district: pd.DataFrame
    top_districts: pd.DataFrame

    @property
    def is_empty(self) -> bool:
        return self.total == 0


@dataclass(frozen=True)
class Dataset:
    """Both collections as loaded once per session; areas already joined."""
    areas: pd.DataFrame
    incidents: pd.DataFrame
    join_column: str = 'name'
