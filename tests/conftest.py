"""Shared fixtures for dashboard tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pandas as pd
import pytest

from data import decode_areas, decode_incidents


def _square(x: float, y: float) -> dict:
    return {
        'type': 'Polygon',
        'coordinates': [[[x, y], [x + 0.01, y], [x + 0.01, y + 0.01], [x, y + 0.01], [x, y]]],
    }


@pytest.fixture()
def make_area() -> Callable[..., dict]:
    """Factory for subdistrict polygon features."""
    def _make(name: str, district: str = 'Phra Nakhon', area: Any = 1.5) -> dict:
        return {
            'type': 'Feature',
            'geometry': _square(100.49, 13.75),
            'properties': {
                'subdistrict_t': name,
                'district_t': district,
                'province_t': 'Bangkok',
                'area_bma': area,
            },
        }
    return _make


@pytest.fixture()
def make_incident() -> Callable[..., dict]:
    """Factory for risk-point features; pass ``coords=None`` for no geometry."""
    def _make(
        district: Any = 'A',
        status: Any = 'resolved',
        coords: Any = (100.5, 13.75),
        **props: Any,
    ) -> dict:
        properties = {
            'roadcl_name': 'Rama IV',
            'problems': 'Broken street light',
            'district': district,
            'status_detail': status,
            'project_name': 'Safe Streets',
        }
        properties.update(props)
        geometry = None if coords is None else {'type': 'Point', 'coordinates': list(coords)}
        return {'type': 'Feature', 'geometry': geometry, 'properties': properties}
    return _make


@pytest.fixture()
def area_features(make_area) -> list[dict]:
    return [make_area('A', district='D1'), make_area('B', district='D1')]


@pytest.fixture()
def incident_features(make_incident) -> list[dict]:
    """Four risk points: two in A, one in B, one in an unknown area C."""
    return [
        make_incident('A', 'resolved'),
        make_incident('A', 'in progress'),
        make_incident('B', 'resolved'),
        make_incident('C', None),
    ]


@pytest.fixture()
def areas_df(area_features) -> pd.DataFrame:
    return decode_areas(area_features)


@pytest.fixture()
def incidents_df(incident_features) -> pd.DataFrame:
    return decode_incidents(incident_features)


@pytest.fixture()
def geojson_files(tmp_path: Path, area_features, incident_features) -> tuple[str, str]:
    """Both collections written to disk; returns ``(area_path, incident_path)``."""
    area_path = tmp_path / 'subdistricts.geojson'
    incident_path = tmp_path / 'risk_points.geojson'
    area_path.write_text(
        json.dumps({'type': 'FeatureCollection', 'features': area_features}),
        encoding='utf-8',
    )
    incident_path.write_text(
        json.dumps({'type': 'FeatureCollection', 'features': incident_features}),
        encoding='utf-8',
    )
    return str(area_path), str(incident_path)
