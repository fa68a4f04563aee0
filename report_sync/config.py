"""Report configuration and shared constants."""

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional, Tuple

if TYPE_CHECKING:
    from .filters.options import FilterOptionSource

# URL / API pagination bounds
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MIN_LIMIT = 1
MAX_LIMIT = 50

# Query keys that belong to pagination and can never be filters
RESERVED_KEYS: Tuple[str, ...] = ("page", "limit")

ROWS_PER_PAGE_OPTIONS: Tuple[int, ...] = (5, 10, 20, 50)

# Notice texts shown after a fetch
MSG_EMPTY_PAGE = "No data for current page. Adjust filters or page."
MSG_NO_MATCHES = "No data found matching current filters."
MSG_INVALID_RESPONSE = "No valid data returned from API."
MSG_FETCH_FAILED = "Failed to fetch data: {error}"
MSG_EMPTY_TABLE = "No data available for the selected filters."


def get_mock_delay() -> float:
    """
    Simulated network delay (seconds) for the mock provider.

    Read from REPORT_SYNC_MOCK_DELAY; invalid or negative values fall back
    to the default of 0.5 seconds.
    """
    raw = os.environ.get("REPORT_SYNC_MOCK_DELAY", "0.5")
    try:
        delay = float(raw)
    except ValueError:
        return 0.5
    return delay if delay >= 0 else 0.5


DataProvider = Callable[[Dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ReportConfig:
    """
    Configuration supplied by the page embedding a report.

    Attributes:
        get_report: Async data provider called with
            ``{page, limit, **filters}``.
        data_key: Name of the response field holding the row list.
        allowed_filter_keys: Whitelist of filter keys. Drives both query
            parsing and which filter controls render.
        option_source: Lookup of valid values per filter.
        title: Optional heading shown above the table.
        rows_per_page_options: Page sizes offered by the pagination control.
    """

    get_report: DataProvider
    data_key: str
    allowed_filter_keys: Tuple[str, ...]
    option_source: "FilterOptionSource"
    title: Optional[str] = "Report Data"
    rows_per_page_options: Tuple[int, ...] = field(default=ROWS_PER_PAGE_OPTIONS)

    def __post_init__(self):
        if not self.data_key:
            raise ValueError("data_key must be a non-empty string")

        keys = tuple(self.allowed_filter_keys)
        if len(set(keys)) != len(keys):
            raise ValueError(f"Duplicate filter keys in {list(keys)}")
        reserved = [k for k in keys if k in RESERVED_KEYS]
        if reserved:
            raise ValueError(
                f"Filter keys {reserved} collide with pagination keys {list(RESERVED_KEYS)}"
            )
        # Accept any sequence but store a tuple
        object.__setattr__(self, "allowed_filter_keys", keys)

        options = tuple(self.rows_per_page_options)
        for size in options:
            if not MIN_LIMIT <= size <= MAX_LIMIT:
                raise ValueError(
                    f"Rows-per-page option {size} outside [{MIN_LIMIT}, {MAX_LIMIT}]"
                )
        object.__setattr__(self, "rows_per_page_options", options)
