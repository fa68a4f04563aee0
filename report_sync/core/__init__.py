"""Core infrastructure for report_sync."""

from .codec import DecodedQuery, decode, decode_state, encode
from .errors import MalformedResponseError, TransitionError
from .location import Location, MemoryLocation, StreamlitLocation
from .models import FetchResult, FilterSelection, Notice, PageState, ReportState
from .synchronizer import Phase, StateSynchronizer

__all__ = [
    "StateSynchronizer",
    "Phase",
    "ReportState",
    "PageState",
    "FilterSelection",
    "FetchResult",
    "Notice",
    "DecodedQuery",
    "decode",
    "decode_state",
    "encode",
    "Location",
    "MemoryLocation",
    "StreamlitLocation",
    "TransitionError",
    "MalformedResponseError",
]
