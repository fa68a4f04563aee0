"""Streamlit rendering of report views."""

from .view import clear_synchronizer, get_synchronizer, render_report, rows_to_frame

__all__ = [
    "render_report",
    "get_synchronizer",
    "clear_synchronizer",
    "rows_to_frame",
]
