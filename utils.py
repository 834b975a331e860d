"""
Utility functions for formatting, validation, and status classification.

Pure Python module with no Streamlit dependency — safe to use in tests.
"""

from __future__ import annotations

from typing import Sequence

from constants import (
    AREA_COLOR_DEFAULT,
    AREA_COLOR_SCALE,
    DEFAULT_JOIN_KEY,
    DEFAULT_STATUS_LABEL,
    JOIN_KEYS,
    MAX_TOP_N,
    PERCENT_DECIMALS,
    REQUEST_TIMEOUT_S,
    STATUS_BUCKETS,
    STATUS_COLORS,
    STATUS_UNRESOLVED,
    TOP_N_DISTRICTS,
)


# =============================================================================
# Percentages and formatting
# =============================================================================

def percentage(count: int, total: int) -> float:
    """Share of *count* in *total* as a percentage rounded to two decimals.

    Returns ``0.0`` when *total* is zero instead of dividing by it.
    """
    if total <= 0:
        return 0.0
    return round(count / total * 100, PERCENT_DECIMALS)


def format_percentage(value: float, decimals: int = PERCENT_DECIMALS) -> str:
    """Format a percentage with a fixed number of decimals, e.g. ``"50.00%"``."""
    return f"{value:.{decimals}f}%"


def format_breakdown_line(value: str, count: int, pct: float) -> str:
    """One sidebar line, e.g. ``"Bang Rak: 2 (50.00%)"``."""
    return f"{value}: {count:,} ({format_percentage(pct)})"


# =============================================================================
# Status labels
# =============================================================================

def normalize_status(value: object) -> str:
    """Return *value* unchanged if it is a non-blank string, else the default label.

    Missing, empty and non-string statuses all collapse into
    ``DEFAULT_STATUS_LABEL`` so they form a single category.
    """
    if isinstance(value, str) and value.strip():
        return value
    return DEFAULT_STATUS_LABEL


def classify_status(value: object) -> str:
    """Map a status label to its display bucket; unknown labels are unresolved."""
    if not isinstance(value, str):
        return STATUS_UNRESOLVED
    return STATUS_BUCKETS.get(value.strip().lower(), STATUS_UNRESOLVED)


def status_color(value: object) -> str:
    """Marker colour for a status label."""
    return STATUS_COLORS[classify_status(value)]


def area_color(count: int) -> str:
    """Fill colour for an area with *count* risk points."""
    for threshold, color in AREA_COLOR_SCALE:
        if count > threshold:
            return color
    return AREA_COLOR_DEFAULT


# =============================================================================
# Configuration / query-parameter validation
# =============================================================================

def validate_join_key(value: str | None, default: str = DEFAULT_JOIN_KEY) -> str:
    """Return *value* if it names a known join key, else *default*."""
    if value in JOIN_KEYS:
        return value  # type: ignore[return-value]
    return default


def validate_top_n(value: str | int | None, default: int = TOP_N_DISTRICTS) -> int:
    """Return a valid top-N size in [1, MAX_TOP_N], or *default*."""
    try:
        val = int(value)  # type: ignore[arg-type]
    except (ValueError, TypeError):
        return default
    if val < 1 or val > MAX_TOP_N:
        return default
    return val


def validate_timeout(value: str | float | None, default: float = REQUEST_TIMEOUT_S) -> float:
    """Return a positive timeout in seconds, or *default*."""
    try:
        val = float(value)  # type: ignore[arg-type]
    except (ValueError, TypeError):
        return default
    if not val > 0:
        return default
    return val


def validate_option(value: str | None, options: Sequence[str]) -> str | None:
    """Return *value* if it is one of *options*, else ``None`` (no constraint)."""
    if value and value in options:
        return value
    return None
