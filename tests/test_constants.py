"""Tests for constants.py — sanity checks on configuration values."""

from __future__ import annotations

from constants import (
    AREA_COLOR_SCALE,
    AREA_COLUMNS,
    AREA_PROPERTIES,
    DEFAULT_JOIN_KEY,
    DEFAULT_STATUS_LABEL,
    INCIDENT_COLUMNS,
    INCIDENT_PROPERTIES,
    JOIN_KEYS,
    LAYER_AREAS,
    LAYER_INCIDENTS,
    LAYERS,
    MAX_TOP_N,
    STATUS_BUCKETS,
    STATUS_COLORS,
    STATUS_UNRESOLVED,
    TOP_N_DISTRICTS,
)


def test_property_maps_target_known_columns() -> None:
    assert set(AREA_PROPERTIES.values()) <= set(AREA_COLUMNS)
    assert set(INCIDENT_PROPERTIES.values()) <= set(INCIDENT_COLUMNS)


def test_join_keys_are_area_columns() -> None:
    assert DEFAULT_JOIN_KEY in JOIN_KEYS
    assert set(JOIN_KEYS.values()) <= set(AREA_COLUMNS)


def test_every_bucket_has_a_color() -> None:
    assert set(STATUS_BUCKETS.values()) <= set(STATUS_COLORS)
    assert STATUS_UNRESOLVED in STATUS_COLORS


def test_bucket_keys_are_lowercase() -> None:
    assert all(key == key.strip().lower() for key in STATUS_BUCKETS)


def test_default_status_not_a_known_status() -> None:
    assert DEFAULT_STATUS_LABEL.lower() not in STATUS_BUCKETS


def test_top_n_in_range() -> None:
    assert 1 <= TOP_N_DISTRICTS <= MAX_TOP_N


def test_area_scale_descending() -> None:
    thresholds = [threshold for threshold, _ in AREA_COLOR_SCALE]
    assert thresholds == sorted(thresholds, reverse=True)


def test_layers() -> None:
    assert LAYERS == (LAYER_AREAS, LAYER_INCIDENTS)

