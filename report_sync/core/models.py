"""Immutable value types describing one report view."""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..config import DEFAULT_LIMIT, MAX_LIMIT, MIN_LIMIT
from .errors import MalformedResponseError


def _unique(values: Iterable[Any]) -> Tuple[str, ...]:
    """Stringify values and drop duplicates, keeping first occurrence."""
    seen = {}
    for value in values:
        seen.setdefault(str(value), None)
    return tuple(seen)


@dataclass(frozen=True, eq=False)
class FilterSelection:
    """
    Immutable mapping of filter key to an ordered tuple of selected values.

    Values are de-duplicated (first occurrence wins) and keys with no values
    are dropped, so every stored key is "active". Equality ignores key order
    but respects the order of values within a key.

    The URL boundary speaks in single-key fragments
    (``[{"gender": ["Male"]}, {"house": ["Red", "Blue"]}]``); the data
    provider receives the flat form (``{"gender": ["Male"], ...}``).
    """

    entries: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    @classmethod
    def from_mapping(
        cls,
        mapping: Mapping[str, Iterable[Any]],
        allowed_keys: Optional[Sequence[str]] = None,
    ) -> "FilterSelection":
        """Build a selection from ``{key: values}``, optionally whitelisting keys."""
        merged: Dict[str, List[Any]] = {}
        for key, values in mapping.items():
            if allowed_keys is not None and key not in allowed_keys:
                continue
            if isinstance(values, str):
                values = [values]
            merged.setdefault(key, []).extend(values or [])
        return cls(
            tuple(
                (key, _unique(values))
                for key, values in merged.items()
                if _unique(values)
            )
        )

    @classmethod
    def from_fragments(
        cls,
        fragments: Iterable[Mapping[str, Iterable[Any]]],
        allowed_keys: Optional[Sequence[str]] = None,
    ) -> "FilterSelection":
        """Build a selection from single-key fragments; repeated keys are merged."""
        merged: Dict[str, List[Any]] = {}
        for fragment in fragments:
            for key, values in fragment.items():
                if isinstance(values, str):
                    values = [values]
                merged.setdefault(key, []).extend(values or [])
        return cls.from_mapping(merged, allowed_keys)

    def to_fragments(self) -> List[Dict[str, List[str]]]:
        return [{key: list(values)} for key, values in self.entries]

    def to_dict(self) -> Dict[str, List[str]]:
        return {key: list(values) for key, values in self.entries}

    def get(self, key: str) -> Tuple[str, ...]:
        for entry_key, values in self.entries:
            if entry_key == key:
                return values
        return ()

    def keys(self) -> List[str]:
        return [key for key, _ in self.entries]

    def restrict(
        self,
        allowed_keys: Sequence[str],
        valid_options: Optional[Mapping[str, Iterable[str]]] = None,
    ) -> "FilterSelection":
        """
        Drop keys outside ``allowed_keys`` and, when ``valid_options`` is
        given, values not present in their key's option set.

        Args:
            allowed_keys: Whitelisted filter keys
            valid_options: Mapping of key to the currently valid values

        Returns:
            A new, possibly smaller, FilterSelection
        """
        kept = {}
        for key, values in self.entries:
            if key not in allowed_keys:
                continue
            if valid_options is not None:
                options = set(valid_options.get(key, ()))
                values = tuple(v for v in values if v in options)
            kept[key] = values
        return FilterSelection.from_mapping(kept)

    def __iter__(self) -> Iterator[Tuple[str, Tuple[str, ...]]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FilterSelection):
            return NotImplemented
        return dict(self.entries) == dict(other.entries)

    def __hash__(self) -> int:
        return hash(frozenset(self.entries))

    def __repr__(self) -> str:
        return f"FilterSelection({self.to_dict()})"


def clamp_limit(value: Optional[int]) -> int:
    """Clamp a page size to [MIN_LIMIT, MAX_LIMIT]; non-positive means default."""
    if value is None or value < MIN_LIMIT:
        return DEFAULT_LIMIT
    return min(value, MAX_LIMIT)


@dataclass(frozen=True)
class PageState:
    """Pagination position. ``page_number`` is 0-indexed."""

    page_number: int = 0
    items_per_page: int = DEFAULT_LIMIT

    def __post_init__(self):
        if self.page_number < 0:
            raise ValueError(f"page_number must be >= 0, got {self.page_number}")
        if not MIN_LIMIT <= self.items_per_page <= MAX_LIMIT:
            raise ValueError(
                f"items_per_page must be in [{MIN_LIMIT}, {MAX_LIMIT}], "
                f"got {self.items_per_page}"
            )


@dataclass(frozen=True)
class ReportState:
    """The single source of truth for one report view."""

    page: PageState = field(default_factory=PageState)
    filters: FilterSelection = field(default_factory=FilterSelection)

    def with_page(self, page_number: int) -> "ReportState":
        return replace(self, page=replace(self.page, page_number=page_number))

    def with_items_per_page(self, items_per_page: int) -> "ReportState":
        # Changing the page size always returns to the first page
        return replace(
            self, page=PageState(page_number=0, items_per_page=items_per_page)
        )

    def with_filters(self, filters: FilterSelection) -> "ReportState":
        return replace(self, filters=filters)

    def fetch_params(self) -> Dict[str, Any]:
        """Data provider parameters; the page is 1-indexed here."""
        return {
            "page": self.page.page_number + 1,
            "limit": self.page.items_per_page,
            **self.filters.to_dict(),
        }


@dataclass(frozen=True)
class Column:
    key: str
    title: str


@dataclass(frozen=True)
class FetchResult:
    """One provider response. Replaced wholesale on every fetch."""

    columns: Tuple[Column, ...] = ()
    rows: Tuple[Dict[str, Any], ...] = ()
    total: int = 0

    @classmethod
    def empty(cls) -> "FetchResult":
        return cls()

    @classmethod
    def from_response(cls, data: Any, data_key: str) -> "FetchResult":
        """
        Validate a raw provider response.

        Args:
            data: Object returned by the data provider
            data_key: Name of the field holding the row list

        Returns:
            Parsed FetchResult

        Raises:
            MalformedResponseError: If the response is not a mapping, has no
                non-negative integer ``total``, or holds non-list rows/columns
        """
        if not isinstance(data, Mapping):
            raise MalformedResponseError(
                f"Expected a mapping, got {type(data).__name__}"
            )

        total = data.get("total")
        if isinstance(total, bool) or not isinstance(total, int) or total < 0:
            raise MalformedResponseError(f"Invalid 'total' in response: {total!r}")

        rows = data.get(data_key)
        if rows is None:
            rows = []
        if not isinstance(rows, (list, tuple)):
            raise MalformedResponseError(
                f"Field '{data_key}' must be a list, got {type(rows).__name__}"
            )

        mapping = data.get("dataMapping")
        if mapping is None:
            mapping = []
        if not isinstance(mapping, (list, tuple)):
            raise MalformedResponseError(
                f"Field 'dataMapping' must be a list, got {type(mapping).__name__}"
            )

        columns = []
        for col in mapping:
            if not isinstance(col, Mapping) or "key" not in col:
                raise MalformedResponseError(f"Invalid column definition: {col!r}")
            columns.append(Column(key=str(col["key"]), title=str(col.get("title", col["key"]))))

        return cls(columns=tuple(columns), rows=tuple(rows), total=total)


@dataclass(frozen=True)
class Notice:
    """Transient user-facing message (rendered as a toast)."""

    message: str
    severity: str = "info"  # "info" | "warning" | "error"
