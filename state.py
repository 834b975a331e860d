"""
Dashboard state and the transitions the sidebar can trigger.

The page keeps a single ``DashboardState``. Every widget change produces a
new state through the functions below, and ``build_render_plan`` turns
(dataset, state) into everything the page needs to draw. Nothing here
touches Streamlit.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

import pandas as pd

from constants import LAYER_AREAS, LAYERS, TOP_N_DISTRICTS
from data import filter_incidents, placeable_incidents, summarize
from models import AggregateSummary, Dataset, FilterState
from utils import validate_option


@dataclass(frozen=True)
class DashboardState:
    filter: FilterState = field(default_factory=FilterState)
    show_areas: bool = True
    show_incidents: bool = True
    top_n: int = TOP_N_DISTRICTS


@dataclass(frozen=True)
class RenderPlan:
    """What the page should draw for one state.

    ``areas`` / ``incidents`` are ``None`` when their layer is hidden. The
    summary always describes the filtered subset, visible or not.
    """
    areas: Optional[pd.DataFrame]
    incidents: Optional[pd.DataFrame]
    summary: AggregateSummary
    show_areas: bool = True
    show_incidents: bool = True


# =============================================================================
# Transitions
# =============================================================================

def set_filter(
    state: DashboardState,
    status: str | None = None,
    district: str | None = None,
) -> DashboardState:
    """Replace the whole filter; empty strings mean no constraint."""
    return replace(state, filter=FilterState(status=status or None, district=district or None))


def clear_filter(state: DashboardState) -> DashboardState:
    return replace(state, filter=FilterState())


def toggle_layer(
    state: DashboardState,
    layer: str,
    visible: bool | None = None,
) -> DashboardState:
    """Flip a layer's visibility, or set it when *visible* is given."""
    if layer not in LAYERS:
        raise ValueError(f"Unknown layer: {layer!r}")
    if layer == LAYER_AREAS:
        return replace(state, show_areas=not state.show_areas if visible is None else visible)
    return replace(state, show_incidents=not state.show_incidents if visible is None else visible)


# =============================================================================
# Query parameters
# =============================================================================

def state_from_query_params(
    params: Mapping[str, str],
    options: Mapping[str, list[str]],
    top_n: int = TOP_N_DISTRICTS,
) -> DashboardState:
    """Restore a state from URL parameters, ignoring values not in *options*."""
    return DashboardState(
        filter=FilterState(
            status=validate_option(params.get('status'), options['status']),
            district=validate_option(params.get('district'), options['district']),
        ),
        show_areas=params.get('areas') != '0',
        show_incidents=params.get('points') != '0',
        top_n=top_n,
    )


def state_to_query_params(state: DashboardState) -> dict[str, str]:
    params: dict[str, str] = {}
    if state.filter.status:
        params['status'] = state.filter.status
    if state.filter.district:
        params['district'] = state.filter.district
    if not state.show_areas:
        params['areas'] = '0'
    if not state.show_incidents:
        params['points'] = '0'
    return params


# =============================================================================
# Render plan
# =============================================================================

def build_render_plan(dataset: Dataset, state: DashboardState) -> RenderPlan:
    """Filter the full incident set and summarise it for *state*."""
    active = filter_incidents(dataset.incidents, state.filter)
    return RenderPlan(
        areas=dataset.areas if state.show_areas else None,
        incidents=placeable_incidents(active) if state.show_incidents else None,
        summary=summarize(active, top_n=state.top_n),
        show_areas=state.show_areas,
        show_incidents=state.show_incidents,
    )
