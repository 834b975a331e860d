"""
Data loading, joining, filtering, and aggregation functions.

All data operations live here so they can be tested independently
of the Streamlit UI layer.
"""

from __future__ import annotations

import json
import logging
import math
import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any

import pandas as pd
import requests
import streamlit as st
from streamlit.errors import StreamlitAPIException

from constants import (
    AREA_COLUMNS,
    AREA_PROPERTIES,
    DEFAULT_AREA_URL,
    DEFAULT_INCIDENT_URL,
    DEFAULT_JOIN_KEY,
    INCIDENT_COLUMNS,
    INCIDENT_PROPERTIES,
    JOIN_KEYS,
    REQUEST_TIMEOUT_S,
    TOP_N_DISTRICTS,
    UNKNOWN_DISTRICT_LABEL,
)
from models import AggregateSummary, Dataset, FilterState, Settings
from utils import (
    normalize_status,
    percentage,
    validate_join_key,
    validate_timeout,
    validate_top_n,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================

class DataLoadError(Exception):
    """Base class for failures while loading the two datasets."""


class DataUnavailable(DataLoadError):
    """A dataset could not be fetched (network error, bad status, missing file)."""


class DataMalformed(DataLoadError, ValueError):
    """A dataset was fetched but is not a GeoJSON feature collection."""


# =============================================================================
# Configuration
# =============================================================================

def _read_secrets() -> dict[str, Any]:
    try:
        return dict(st.secrets)
    except (AttributeError, KeyError, FileNotFoundError, StreamlitAPIException):
        return {}


def get_settings() -> Settings:
    """Build Settings from Streamlit secrets, then environment variables.

    Supports both a local ``secrets.toml`` and plain environment variables
    (container deployments). Invalid values fall back to the defaults.
    """
    secrets = _read_secrets()

    def setting(secret_key: str, env_key: str, default: Any) -> Any:
        if secret_key in secrets:
            return secrets[secret_key]
        return os.getenv(env_key, default)

    return Settings(
        area_url=str(setting('area_url', 'AREA_URL', DEFAULT_AREA_URL)),
        incident_url=str(setting('incident_url', 'INCIDENT_URL', DEFAULT_INCIDENT_URL)),
        join_key=validate_join_key(setting('join_key', 'JOIN_KEY', DEFAULT_JOIN_KEY)),
        top_n=validate_top_n(setting('top_n', 'TOP_N', TOP_N_DISTRICTS)),
        timeout=validate_timeout(setting('request_timeout', 'REQUEST_TIMEOUT', REQUEST_TIMEOUT_S)),
    )


# =============================================================================
# Fetching and schema validation
# =============================================================================

def fetch_bytes(url: str, timeout: float = REQUEST_TIMEOUT_S) -> bytes:
    """Read *url* over HTTP(S), or from disk when it is a plain path.

    Raises
    ------
    DataUnavailable
        On connection errors, timeouts, non-2xx responses or unreadable files.
    """
    if url.lower().startswith(('http://', 'https://')):
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DataUnavailable(f"Could not fetch {url}: {exc}") from exc
        return response.content

    try:
        return Path(url).read_bytes()
    except OSError as exc:
        raise DataUnavailable(f"Could not read {url}: {exc}") from exc


def validate_feature_collection(payload: Any, source: str = '<memory>') -> None:
    """Check that *payload* is a GeoJSON FeatureCollection of objects.

    Raises
    ------
    DataMalformed
        With a message naming *source* and the first problem found.
    """
    if not isinstance(payload, dict) or payload.get('type') != 'FeatureCollection':
        raise DataMalformed(f"{source} is not a GeoJSON FeatureCollection")

    features = payload.get('features')
    if not isinstance(features, list):
        raise DataMalformed(f"{source} has no 'features' list")

    bad = [i for i, feature in enumerate(features) if not isinstance(feature, dict)]
    if bad:
        raise DataMalformed(
            f"{source} contains non-object features at positions {bad[:5]}"
        )


def parse_feature_collection(raw: bytes | str, source: str = '<memory>') -> list[dict]:
    """Decode a JSON body and return its feature list."""
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise DataMalformed(f"{source} is not valid JSON: {exc}") from exc

    validate_feature_collection(payload, source)
    return payload['features']


# =============================================================================
# Decoding (features -> frames)
# =============================================================================

def _properties(feature: dict) -> dict:
    props = feature.get('properties')
    return props if isinstance(props, dict) else {}


def _to_str(value: Any) -> str:
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        return math.nan
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    return number if math.isfinite(number) else math.nan


def _coordinate(value: Any) -> float:
    # Only real numbers count; numeric strings are not placed on the map.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return math.nan
    return float(value) if math.isfinite(value) else math.nan


def _point(geometry: Any) -> tuple[float, float]:
    """Return ``(latitude, longitude)`` of a GeoJSON point, NaN when unusable."""
    if not isinstance(geometry, dict):
        return math.nan, math.nan
    coords = geometry.get('coordinates')
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return math.nan, math.nan
    return _coordinate(coords[1]), _coordinate(coords[0])


def decode_areas(features: list[dict]) -> pd.DataFrame:
    """Convert subdistrict polygon features into the area frame.

    ``incident_count`` starts at zero; see ``join_incident_counts``.
    """
    rows = []
    for feature in features:
        props = _properties(feature)
        row: dict[str, Any] = {
            column: _to_str(props.get(prop))
            for prop, column in AREA_PROPERTIES.items()
        }
        row['area'] = _to_float(props.get('area_bma'))
        row['geometry'] = feature.get('geometry')
        row['incident_count'] = 0
        rows.append(row)

    areas = pd.DataFrame(rows, columns=AREA_COLUMNS)
    return areas.astype({'area': float, 'incident_count': int})


def decode_incidents(features: list[dict]) -> pd.DataFrame:
    """Convert risk-point features into the incident frame.

    Missing statuses become ``DEFAULT_STATUS_LABEL`` and missing districts
    ``UNKNOWN_DISTRICT_LABEL``. Points without two finite coordinates are
    kept with NaN coordinates so they still count in the summaries.
    """
    rows = []
    for feature in features:
        props = _properties(feature)
        row: dict[str, Any] = {
            column: _to_str(props.get(prop))
            for prop, column in INCIDENT_PROPERTIES.items()
        }
        row['status'] = normalize_status(props.get('status_detail'))
        row['district'] = row['district'] or UNKNOWN_DISTRICT_LABEL
        row['latitude'], row['longitude'] = _point(feature.get('geometry'))
        rows.append(row)

    incidents = pd.DataFrame(rows, columns=INCIDENT_COLUMNS)
    incidents = incidents.astype({'latitude': float, 'longitude': float})

    unplaced = int(incidents['latitude'].isna().sum())
    if unplaced:
        logger.warning("%d of %d risk points have no usable coordinates", unplaced, len(incidents))
    return incidents


# =============================================================================
# Data loading
# =============================================================================

def _fetch_features(url: str, timeout: float) -> list[dict]:
    logger.info("Fetching %s", url)
    features = parse_feature_collection(fetch_bytes(url, timeout), source=url)
    logger.info("Fetched %d features from %s", len(features), url)
    return features


def load(
    area_url: str,
    incident_url: str,
    timeout: float = REQUEST_TIMEOUT_S,
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Fetch both feature collections concurrently and decode them.

    The first failure is raised as soon as it happens; there is no result
    with only one of the two collections.

    Raises
    ------
    DataUnavailable
        When either dataset cannot be fetched.
    DataMalformed
        When either body is not a GeoJSON feature collection.
    """
    # No ``with`` block: its exit would wait for a fetch that is still running.
    pool = ThreadPoolExecutor(max_workers=2)
    try:
        futures = {
            pool.submit(_fetch_features, area_url, timeout): 'areas',
            pool.submit(_fetch_features, incident_url, timeout): 'incidents',
        }
        done, _ = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [future for future in done if future.exception() is not None]
        if failed:
            pool.shutdown(wait=False, cancel_futures=True)
            raise failed[0].exception()  # type: ignore[misc]

        features = {futures[future]: future.result() for future in done}
    finally:
        pool.shutdown(wait=False)

    return decode_areas(features['areas']), decode_incidents(features['incidents'])


@st.cache_data(show_spinner="Loading risk points…")
def load_dataset(
    area_url: str,
    incident_url: str,
    join_key: str = DEFAULT_JOIN_KEY,
    timeout: float = REQUEST_TIMEOUT_S,
) -> Dataset:
    """Load both datasets once per session and join the incident counts."""
    areas, incidents = load(area_url, incident_url, timeout)
    join_column = JOIN_KEYS[validate_join_key(join_key)]
    areas = join_incident_counts(areas, incidents, area_key=join_column)
    return Dataset(areas=areas, incidents=incidents, join_column=join_column)


# =============================================================================
# Join
# =============================================================================

def join_incident_counts(
    areas: pd.DataFrame,
    incidents: pd.DataFrame,
    area_key: str = 'name',
) -> pd.DataFrame:
    """Return a copy of *areas* with ``incident_count`` filled in.

    Matching is exact and case-sensitive between ``incidents['district']``
    and ``areas[area_key]``. Areas without matches get 0; incidents that
    match no area are left out of every area count.
    """
    if area_key not in areas.columns:
        raise ValueError(f"Unknown area join column: {area_key!r}")

    counts = incidents['district'].value_counts()

    joined = areas.copy()
    joined['incident_count'] = joined[area_key].map(counts).fillna(0).astype(int)

    unmatched = int((~incidents['district'].isin(areas[area_key])).sum())
    if unmatched:
        logger.info("%d risk points match no area on %r", unmatched, area_key)
    return joined


# =============================================================================
# Aggregation
# =============================================================================

def count_by(incidents: pd.DataFrame, column: str) -> pd.DataFrame:
    """Occurrence count and percentage of each distinct value in *column*.

    Categories keep the order in which they first appear. Status values are
    normalised first, so missing and blank statuses share one category.
    """
    values = incidents[column]
    if column == 'status':
        values = values.map(normalize_status)

    total = len(values)
    counts = values.groupby(values, sort=False, dropna=False).size()

    breakdown = counts.rename_axis('value').reset_index(name='count')
    breakdown['count'] = breakdown['count'].astype(int)
    breakdown['percentage'] = pd.Series(
        [percentage(count, total) for count in breakdown['count']],
        index=breakdown.index,
        dtype=float,
    )
    return breakdown


def top_categories(breakdown: pd.DataFrame, n: int) -> pd.DataFrame:
    """The *n* largest categories; ties keep their first-encountered order."""
    if n <= 0:
        return breakdown.iloc[:0].reset_index(drop=True)
    return (
        breakdown.sort_values('count', ascending=False, kind='stable')
        .head(n)
        .reset_index(drop=True)
    )


def summarize(incidents: pd.DataFrame, top_n: int = TOP_N_DISTRICTS) -> AggregateSummary:
    """Totals, status and district breakdowns, and the top-N districts."""
    by_district = count_by(incidents, 'district')
    return AggregateSummary(
        total=len(incidents),
        by_status=count_by(incidents, 'status'),
        by_district=by_district,
        top_districts=top_categories(by_district, top_n),
    )


# =============================================================================
# Filtering
# =============================================================================

def filter_incidents(incidents: pd.DataFrame, filter_state: FilterState) -> pd.DataFrame:
    """Return the incidents matching *filter_state*, in their original order.

    Always pass the full collection: filters are not meant to be stacked on
    a previously filtered subset.
    """
    mask = pd.Series(True, index=incidents.index, dtype=bool)

    if filter_state.status:
        mask &= incidents['status'].map(normalize_status) == filter_state.status
    if filter_state.district:
        mask &= incidents['district'] == filter_state.district

    return incidents[mask].copy()


def filter_options(incidents: pd.DataFrame) -> dict[str, list[str]]:
    """Distinct statuses and districts in first-encountered order."""
    return {
        'status': list(pd.unique(incidents['status'].map(normalize_status))),
        'district': list(pd.unique(incidents['district'])),
    }


def placeable_incidents(incidents: pd.DataFrame) -> pd.DataFrame:
    """Incidents with finite coordinates (the ones a map can show)."""
    return incidents.dropna(subset=['latitude', 'longitude'])


# =============================================================================
# Output
# =============================================================================

def _json_value(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def areas_to_geojson(areas: pd.DataFrame) -> dict:
    """The joined area frame as a GeoJSON FeatureCollection.

    Properties use the source names plus ``incident_count``.
    """
    features = []
    for row in areas.to_dict(orient='records'):
        properties = {
            prop: _json_value(row[column])
            for prop, column in AREA_PROPERTIES.items()
        }
        properties['incident_count'] = int(row['incident_count'])
        features.append({
            'type': 'Feature',
            'geometry': row['geometry'],
            'properties': properties,
        })
    return {'type': 'FeatureCollection', 'features': features}


def summary_export_frame(summary: AggregateSummary) -> pd.DataFrame:
    """Status and district breakdowns stacked in long format for CSV export."""
    parts = [
        frame.assign(group=group)[['group', 'value', 'count', 'percentage']]
        for group, frame in (
            ('status', summary.by_status),
            ('district', summary.by_district),
        )
    ]
    return pd.concat(parts, ignore_index=True)
