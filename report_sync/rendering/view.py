"""Streamlit rendering of a URL-synchronized report."""

import asyncio
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import pandas as pd
import streamlit as st

from ..config import MSG_EMPTY_TABLE, ReportConfig
from ..core.location import Location, StreamlitLocation
from ..core.synchronizer import StateSynchronizer

if TYPE_CHECKING:
    from ..core.models import Column, Notice
    from ..filters.editor import FilterEditor

# Session state key prefix for per-report synchronizers
# One synchronizer per report key lives for the whole browser session
_SYNC_KEY_PREFIX = "_rs_synchronizer_"

_NOTICE_ICONS = {"info": "ℹ️", "warning": "⚠️", "error": "🚨"}


def get_synchronizer(
    config: ReportConfig,
    key: str,
    location: Optional[Location] = None,
) -> StateSynchronizer:
    """
    Get or create the synchronizer for a report in session state.

    Args:
        config: Report configuration (only used on creation)
        key: Unique report key within the page
        location: URL adapter; defaults to StreamlitLocation

    Returns:
        The session's StateSynchronizer for this key
    """
    state_key = f"{_SYNC_KEY_PREFIX}{key}"
    if state_key not in st.session_state:
        st.session_state[state_key] = StateSynchronizer(
            config, location if location is not None else StreamlitLocation()
        )
    return st.session_state[state_key]


def clear_synchronizer(key: str) -> None:
    """Drop a report's synchronizer; the next render re-initializes from the URL."""
    st.session_state.pop(f"{_SYNC_KEY_PREFIX}{key}", None)


def rows_to_frame(columns: Sequence["Column"], rows: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """
    Build the display table: one column per mapping entry, in mapping order,
    headed by the column title. Missing row fields become None.
    """
    return pd.DataFrame(
        [[row.get(col.key) for col in columns] for row in rows],
        columns=[col.title for col in columns],
    )


def page_size_options(options: Sequence[int], current: int) -> List[int]:
    """Offered page sizes, including the current one if the URL set another."""
    return sorted(set(options) | {current})


def _show_notices(notices: Sequence["Notice"]) -> None:
    for notice in notices:
        st.toast(notice.message, icon=_NOTICE_ICONS.get(notice.severity))


def _render_filter_editor(editor: "FilterEditor", key: str) -> None:
    """Filter panel with one multiselect per allowed key."""
    with st.container(border=True):
        st.markdown("**Filters**")
        for control in editor.render_model():
            selected = st.multiselect(
                control.display_name,
                options=control.options,
                default=control.selected,
                key=f"{key}_filter_{id(editor)}_{control.key}",
            )
            editor.edit(control.key, selected)

        apply_col, reset_col, close_col = st.columns(3)
        if apply_col.button("Apply Filters", key=f"{key}_apply", type="primary"):
            with st.spinner("Loading..."):
                asyncio.run(editor.apply())
            st.rerun()
        if reset_col.button("Reset Filters", key=f"{key}_reset"):
            with st.spinner("Loading..."):
                asyncio.run(editor.reset())
            st.rerun()
        if close_col.button("Close", key=f"{key}_close"):
            editor.discard()
            st.rerun()


def _render_table(sync: StateSynchronizer) -> None:
    if sync.rows:
        st.dataframe(
            rows_to_frame(sync.columns, sync.rows),
            hide_index=True,
            use_container_width=True,
        )
    else:
        st.info(MSG_EMPTY_TABLE)


def _render_pagination(sync: StateSynchronizer, key: str) -> None:
    page = sync.state.page
    # Widget keys follow the query string so widgets reset after corrections
    widget_suffix = sync.query_string

    size_col, page_col, info_col = st.columns([1, 1, 2])
    options = page_size_options(sync.config.rows_per_page_options, page.items_per_page)
    new_size = size_col.selectbox(
        "Rows per page",
        options=options,
        index=options.index(page.items_per_page),
        key=f"{key}_size_{widget_suffix}",
    )
    new_page = page_col.number_input(
        "Page",
        min_value=1,
        max_value=max(1, sync.total_pages, page.page_number + 1),
        value=page.page_number + 1,
        step=1,
        key=f"{key}_page_{widget_suffix}",
    )

    first = page.page_number * page.items_per_page + 1 if sync.total else 0
    last = min((page.page_number + 1) * page.items_per_page, sync.total)
    info_col.caption(f"{first}–{last} of {sync.total}")

    if new_size != page.items_per_page:
        with st.spinner("Loading..."):
            asyncio.run(sync.set_items_per_page(new_size))
        st.rerun()
    elif new_page - 1 != page.page_number:
        with st.spinner("Loading..."):
            asyncio.run(sync.set_page(new_page - 1))
        st.rerun()


def render_report(
    config: ReportConfig,
    key: str = "report",
    location: Optional[Location] = None,
) -> StateSynchronizer:
    """
    Render a report in Streamlit.

    This function:
    1. Gets or creates the session's synchronizer
    2. Initializes it from the URL on first render (fetch under a spinner)
    3. Shows pending notices as toasts
    4. Renders the filter button or the open filter panel
    5. Renders the table and pagination controls
    6. Applies user changes through the synchronizer and reruns

    Args:
        config: Report configuration
        key: Unique report key within the page
        location: URL adapter; defaults to StreamlitLocation

    Returns:
        The synchronizer backing the view
    """
    sync = get_synchronizer(config, key, location)

    if not sync.initialized:
        with st.spinner("Loading..."):
            asyncio.run(sync.initialize())

    _show_notices(sync.pop_notices())

    if config.title:
        st.subheader(config.title)

    editor = sync.editor
    if editor is not None:
        _render_filter_editor(editor, key)
    elif sync.can_open_filters:
        if st.button("Open Filters", key=f"{key}_open_filters", icon=":material/filter_alt:"):
            sync.open_filter_editor()
            st.rerun()

    if sync.loading:
        st.caption("Loading...")
        return sync

    _render_table(sync)
    _render_pagination(sync, key)
    return sync
