"""
Bangkok risk-point dashboard

A Streamlit page summarising reported risk points across Bangkok
subdistricts. Risk points are joined to subdistricts by district name and
can be filtered by status and district.

Sections:
1. Summary - total, status breakdown and top districts for the filter
2. Subdistricts - every subdistrict with its risk-point count
3. Risk points - the filtered risk points that have coordinates

"""

import logging
import os
import traceback

import streamlit as st

from constants import LAYER_AREAS, LAYER_INCIDENTS
from data import DataLoadError, filter_options, get_settings, load_dataset, summary_export_frame
from state import (
    build_render_plan,
    set_filter,
    state_from_query_params,
    state_to_query_params,
    toggle_layer,
)
from utils import area_color, format_breakdown_line, status_color

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

# ================================================================================
# PAGE CONFIGURATION
# ================================================================================
st.set_page_config(
    page_title="Bangkok risk points",
    layout="wide",
    initial_sidebar_state="expanded"
)

# ================================================================================
# HELPER FUNCTIONS
# ================================================================================

def render_sidebar(options, state):
    """Draw the filter and layer widgets and return the resulting state."""
    with st.sidebar:
        st.subheader("Filters")

        status_choices = [""] + options['status']
        status = st.selectbox(
            "Status",
            status_choices,
            index=status_choices.index(state.filter.status or ""),
            format_func=lambda v: v or "All statuses",
        )

        district_choices = [""] + options['district']
        district = st.selectbox(
            "District",
            district_choices,
            index=district_choices.index(state.filter.district or ""),
            format_func=lambda v: v or "All districts",
        )

        st.subheader("Layers")
        show_areas = st.toggle("Subdistricts", value=state.show_areas)
        show_incidents = st.toggle("Risk points", value=state.show_incidents)

    new_state = set_filter(state, status=status, district=district)
    new_state = toggle_layer(new_state, LAYER_AREAS, visible=show_areas)
    return toggle_layer(new_state, LAYER_INCIDENTS, visible=show_incidents)


def breakdown_markdown(title, breakdown):
    lines = [f"**{title}:**"]
    rows = breakdown[['value', 'count', 'percentage']].itertuples(index=False, name=None)
    for value, count, pct in rows:
        lines.append(f"- {format_breakdown_line(value, count, pct)}")
    return "\n".join(lines)


def render_summary(summary):
    st.metric("Total risk points", summary.total)

    if summary.is_empty:
        st.info("No risk points match the current filters.")
        return

    st.markdown(breakdown_markdown("Status breakdown", summary.by_status))
    st.markdown(breakdown_markdown(f"Top {len(summary.top_districts)} districts", summary.top_districts))

    csv_data = summary_export_frame(summary).to_csv(index=False).encode('utf-8')
    st.download_button(
        label="📥 Export summary as CSV",
        data=csv_data,
        file_name="bangkok_risk_points_summary.csv",
        mime="text/csv"
    )


def render_areas(areas, join_column):
    table = (
        areas[['name', 'district', 'province', 'area', 'incident_count']]
        .sort_values('incident_count', ascending=False, kind='stable')
    )
    styled = table.style.apply(
        lambda col: [f'background-color: {area_color(v)}' for v in col],
        subset=['incident_count'],
    )
    st.caption(f"Risk points are matched to areas on the `{join_column}` column.")
    st.dataframe(
        styled,
        width="stretch",
        hide_index=True,
        column_config={
            "name": st.column_config.TextColumn("Subdistrict"),
            "district": st.column_config.TextColumn("District"),
            "province": st.column_config.TextColumn("Province"),
            "area": st.column_config.NumberColumn("Area (sq km)", format="%.2f"),
            "incident_count": st.column_config.NumberColumn("Risk points"),
        }
    )


def render_incidents(incidents):
    table = incidents[['road', 'problem', 'district', 'status', 'project', 'latitude', 'longitude']]
    styled = table.style.apply(
        lambda col: [f'color: {status_color(v)}' for v in col],
        subset=['status'],
    )
    st.dataframe(
        styled,
        width="stretch",
        hide_index=True,
        column_config={
            "road": st.column_config.TextColumn("Road"),
            "problem": st.column_config.TextColumn("Problem"),
            "district": st.column_config.TextColumn("District"),
            "status": st.column_config.TextColumn("Status"),
            "project": st.column_config.TextColumn("Project"),
        }
    )


# ================================================================================
# DATA LOADING
# ================================================================================
settings = get_settings()
try:
    dataset = load_dataset(
        settings.area_url,
        settings.incident_url,
        settings.join_key,
        settings.timeout,
    )
except DataLoadError as e:
    logger.error("Dataset load failed: %s", e)
    st.error(f"Could not load the risk-point data: {e}")
    st.stop()

# ================================================================================
# MAIN
# ================================================================================
try:
    st.title("Bangkok risk points")

    options = filter_options(dataset.incidents)
    state = state_from_query_params(st.query_params, options, top_n=settings.top_n)
    state = render_sidebar(options, state)

    # Only update query params if they changed
    new_params = state_to_query_params(state)
    if dict(st.query_params) != new_params:
        st.query_params.from_dict(new_params)

    plan = build_render_plan(dataset, state)

    summary_col, table_col = st.columns([1, 2])

    with summary_col:
        render_summary(plan.summary)

    with table_col:
        tab_areas, tab_points = st.tabs(["Subdistricts", "Risk points"])

        with tab_areas:
            if not plan.show_areas:
                st.info("The subdistrict layer is hidden.")
            else:
                render_areas(plan.areas, dataset.join_column)

        with tab_points:
            if not plan.show_incidents:
                st.info("The risk-point layer is hidden.")
            elif plan.incidents.empty:
                st.info("No risk points with coordinates match the current filters.")
            else:
                render_incidents(plan.incidents)

except Exception as e:
    st.error(f"An error occurred: {type(e).__name__}: {str(e)}")
    st.code(traceback.format_exc())
