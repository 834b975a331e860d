"""
Constants for the dashboard application.

Centralizes default locations, property names, status labels, and
configuration values used throughout the dashboard modules.
"""

from __future__ import annotations

# =============================================================================
# Dataset locations (overridable via secrets / environment)
# =============================================================================
DEFAULT_AREA_URL: str = "data/geojson/subdistricts_bma.geojson"
DEFAULT_INCIDENT_URL: str = "data/geojson/risk_point_one.geojson"
REQUEST_TIMEOUT_S: float = 30.0

# =============================================================================
# GeoJSON property names -> frame columns
# =============================================================================
AREA_PROPERTIES: dict[str, str] = {
    'subdistrict_t': 'name',
    'district_t': 'district',
    'province_t': 'province',
    'area_bma': 'area',
}

INCIDENT_PROPERTIES: dict[str, str] = {
    'roadcl_name': 'road',
    'problems': 'problem',
    'district': 'district',
    'status_detail': 'status',
    'project_name': 'project',
}

AREA_COLUMNS: list[str] = [
    'name', 'district', 'province', 'area', 'geometry', 'incident_count',
]

INCIDENT_COLUMNS: list[str] = [
    'latitude', 'longitude', 'road', 'problem', 'district', 'status', 'project',
]

# =============================================================================
# Join key (area column matched against the incident's district property)
# =============================================================================
JOIN_KEYS: dict[str, str] = {
    'subdistrict': 'name',
    'district': 'district',
}
DEFAULT_JOIN_KEY: str = 'subdistrict'

# =============================================================================
# Default labels for missing values
# =============================================================================
DEFAULT_STATUS_LABEL: str = 'Unresolved / other'
UNKNOWN_DISTRICT_LABEL: str = 'Unknown district'

# =============================================================================
# Status classification (status label -> display bucket)
# =============================================================================
STATUS_RESOLVED: str = 'resolved'
STATUS_PARTIAL: str = 'partially_resolved'
STATUS_IN_PROGRESS: str = 'in_progress'
STATUS_UNRESOLVED: str = 'unresolved'

STATUS_BUCKETS: dict[str, str] = {
    'แก้ไขแล้วเสร็จ': STATUS_RESOLVED,
    'แก้ไขแล้วเสร็จบางส่วน': STATUS_PARTIAL,
    'อยู่ระหว่างดำเนินการแก้ไข': STATUS_IN_PROGRESS,
    'resolved': STATUS_RESOLVED,
    'partially resolved': STATUS_PARTIAL,
    'in progress': STATUS_IN_PROGRESS,
    'unresolved': STATUS_UNRESOLVED,
}

STATUS_COLORS: dict[str, str] = {
    STATUS_RESOLVED: '#1a9850',
    STATUS_PARTIAL: '#ffa500',
    STATUS_IN_PROGRESS: '#ffff00',
    STATUS_UNRESOLVED: '#ff0000',
}

# =============================================================================
# Area colour scale (risk points per area, checked top-down: count > threshold)
# =============================================================================
AREA_COLOR_SCALE: list[tuple[int, str]] = [
    (20, '#d73027'),
    (15, '#fc8d59'),
    (10, '#fee08b'),
    (5, '#d9ef8b'),
]
AREA_COLOR_DEFAULT: str = '#91cf60'

# =============================================================================
# Sidebar summary
# =============================================================================
TOP_N_DISTRICTS: int = 5
MAX_TOP_N: int = 50
PERCENT_DECIMALS: int = 2

# =============================================================================
# Map layers the presentation layer can toggle
# =============================================================================
LAYER_AREAS: str = 'areas'
LAYER_INCIDENTS: str = 'incidents'
LAYERS: tuple[str, ...] = (LAYER_AREAS, LAYER_INCIDENTS)
