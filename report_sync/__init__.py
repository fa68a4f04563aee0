"""
report_sync - Paginated, filterable reports whose view state lives in the URL.

Page, page size and active filters are mirrored in the query string, so
every view is shareable, bookmarkable and restored on reload. Rendering is
done with Streamlit.
"""

from .config import ReportConfig
from .core.codec import decode, encode
from .core.errors import MalformedResponseError, TransitionError
from .core.location import MemoryLocation, StreamlitLocation
from .core.models import FilterSelection, PageState, ReportState
from .core.synchronizer import Phase, StateSynchronizer
from .filters.editor import FilterEditor
from .filters.options import FilterOptionSource
from .providers.mock import MockReportProvider

__version__ = "0.1.0"

__all__ = [
    # Core
    "ReportConfig",
    "StateSynchronizer",
    "Phase",
    "ReportState",
    "PageState",
    "FilterSelection",
    "decode",
    "encode",
    "MemoryLocation",
    "StreamlitLocation",
    "TransitionError",
    "MalformedResponseError",
    # Filters
    "FilterEditor",
    "FilterOptionSource",
    # Providers
    "MockReportProvider",
]
