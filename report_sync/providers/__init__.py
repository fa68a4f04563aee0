"""Data providers for report views."""

from .mock import (
    SCHOOL_DATA_KEY,
    MockReportProvider,
    column_mapping_from_schema,
    filter_frame,
)

__all__ = [
    "MockReportProvider",
    "SCHOOL_DATA_KEY",
    "column_mapping_from_schema",
    "filter_frame",
]
