"""In-process mock data provider over a polars DataFrame."""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Union

import polars as pl

from ..config import get_mock_delay

logger = logging.getLogger(__name__)

SCHOOL_DATA_KEY = "schoolInfo"

SCHOOL_RECORDS: List[Dict[str, Any]] = [
    {"id": 1, "name": "Alice Smith", "class": 8, "gender": "Female", "house": "Red"},
    {"id": 2, "name": "Bob Johnson", "class": 9, "gender": "Male", "house": "Green"},
    {"id": 3, "name": "Charlie Brown", "class": 7, "gender": "Male", "house": "Blue"},
    {"id": 4, "name": "Diana Prince", "class": 10, "gender": "Female", "house": "Yellow"},
    {"id": 5, "name": "Eve Adams", "class": 6, "gender": "Female", "house": "Red"},
    {"id": 6, "name": "Frank White", "class": 5, "gender": "Male", "house": "Green"},
    {"id": 7, "name": "Grace Lee", "class": 8, "gender": "Female", "house": "Blue"},
    {"id": 8, "name": "Henry King", "class": 9, "gender": "Male", "house": "Yellow"},
    {"id": 9, "name": "Ivy Queen", "class": 7, "gender": "Female", "house": "Red"},
    {"id": 10, "name": "Jack Sparrow", "class": 10, "gender": "Male", "house": "Green"},
    {"id": 11, "name": "Karen Davis", "class": 6, "gender": "Female", "house": "Blue"},
    {"id": 12, "name": "Liam Neeson", "class": 5, "gender": "Male", "house": "Yellow"},
    {"id": 13, "name": "Mia Khalifa", "class": 8, "gender": "Female", "house": "Red"},
    {"id": 14, "name": "Noah Centineo", "class": 9, "gender": "Male", "house": "Green"},
    {"id": 15, "name": "Olivia Rodrigo", "class": 7, "gender": "Female", "house": "Blue"},
    {"id": 16, "name": "Peter Parker", "class": 10, "gender": "Male", "house": "Yellow"},
    {"id": 17, "name": "Quinn Fabray", "class": 6, "gender": "Female", "house": "Red"},
    {"id": 18, "name": "Ryan Gosling", "class": 5, "gender": "Male", "house": "Green"},
    {"id": 19, "name": "Sarah Connor", "class": 8, "gender": "Female", "house": "Blue"},
    {"id": 20, "name": "Tom Holland", "class": 9, "gender": "Male", "house": "Yellow"},
    {"id": 21, "name": "Uma Thurman", "class": 7, "gender": "Female", "house": "Red"},
    {"id": 22, "name": "Victor Stone", "class": 10, "gender": "Male", "house": "Green"},
    {"id": 23, "name": "Wendy Darling", "class": 6, "gender": "Female", "house": "Blue"},
    {"id": 24, "name": "Xavier Woods", "class": 5, "gender": "Male", "house": "Yellow"},
    {"id": 25, "name": "Yara Greyjoy", "class": 8, "gender": "Female", "house": "Red"},
    {"id": 26, "name": "Zack Morris", "class": 9, "gender": "Male", "house": "Green"},
]

SCHOOL_COLUMNS: List[Dict[str, str]] = [
    {"key": "id", "title": "ID"},
    {"key": "name", "title": "Name"},
    {"key": "class", "title": "Class"},
    {"key": "gender", "title": "Gender"},
    {"key": "house", "title": "House"},
]

# Filter key -> data column
SCHOOL_FILTER_COLUMNS: Dict[str, str] = {
    "studentClass": "class",
    "gender": "gender",
    "house": "house",
}


def column_mapping_from_schema(data: Union[pl.DataFrame, pl.LazyFrame]) -> List[Dict[str, str]]:
    """Derive ``dataMapping`` entries from column names ("first_name" -> "First Name")."""
    schema = data.collect_schema()
    return [
        {"key": name, "title": name.replace("_", " ").title()} for name in schema.names()
    ]


def filter_frame(
    data: pl.LazyFrame,
    filter_columns: Dict[str, str],
    params: Dict[str, Any],
) -> pl.LazyFrame:
    """
    Keep rows matching every non-empty filter in ``params``.

    Values compare as strings, so ``{"studentClass": ["5"]}`` matches an
    integer ``class`` column.

    Args:
        data: Source rows
        filter_columns: Mapping of filter key to column name
        params: Provider parameters; list values under filter keys are used

    Returns:
        Filtered LazyFrame
    """
    for key, column in filter_columns.items():
        values = params.get(key)
        if not isinstance(values, (list, tuple)) or not values:
            continue
        data = data.filter(
            pl.col(column).cast(pl.Utf8).is_in([str(v) for v in values])
        )
    return data


class MockReportProvider:
    """
    Async data provider serving paginated, filtered rows from a DataFrame.

    Calling the provider returns
    ``{"dataMapping": [...], <data_key>: [...], "total": n}`` after an
    optional simulated delay.

    Example:
        provider = MockReportProvider.school(delay=0)
        await provider({"page": 1, "limit": 20, "gender": ["Female"]})
    """

    def __init__(
        self,
        data: Union[pl.DataFrame, pl.LazyFrame],
        data_key: str,
        filter_columns: Dict[str, str],
        columns: Optional[List[Dict[str, str]]] = None,
        delay: Optional[float] = None,
    ):
        """
        Args:
            data: Full dataset
            data_key: Response field holding the page rows
            filter_columns: Mapping of filter key to column name
            columns: ``dataMapping`` to return. If None, derived from the schema.
            delay: Seconds to sleep per call. If None, read from
                REPORT_SYNC_MOCK_DELAY.
        """
        if isinstance(data, pl.DataFrame):
            data = data.lazy()

        schema_names = data.collect_schema().names()
        for key, column in filter_columns.items():
            if column not in schema_names:
                raise ValueError(
                    f"Filter column '{column}' for key '{key}' not found in data. "
                    f"Available columns: {schema_names}"
                )

        self._data = data
        self._data_key = data_key
        self._filter_columns = dict(filter_columns)
        self._columns = columns if columns is not None else column_mapping_from_schema(data)
        self._delay = get_mock_delay() if delay is None else delay
        self.calls: List[Dict[str, Any]] = []

    @classmethod
    def school(cls, delay: Optional[float] = None) -> "MockReportProvider":
        """Provider over the bundled 26-student fixture."""
        return cls(
            data=pl.DataFrame(SCHOOL_RECORDS),
            data_key=SCHOOL_DATA_KEY,
            filter_columns=SCHOOL_FILTER_COLUMNS,
            columns=SCHOOL_COLUMNS,
            delay=delay,
        )

    @property
    def data_key(self) -> str:
        return self._data_key

    async def __call__(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(dict(params))
        logger.debug("Mock report call with params %s", params)

        if self._delay > 0:
            await asyncio.sleep(self._delay)

        page = int(params.get("page", 1))
        limit = int(params.get("limit", 20))

        filtered = filter_frame(self._data, self._filter_columns, params).collect()
        total = filtered.height

        # Pages are 1-indexed at the API boundary
        offset = max(0, (page - 1) * limit)
        page_rows = filtered.slice(offset, limit).to_dicts()

        return {
            "dataMapping": [dict(col) for col in self._columns],
            self._data_key: page_rows,
            "total": total,
        }
