"""Bidirectional synchronization of report state, URL and data fetches."""

import logging
import math
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Mapping, Optional, Union

from ..config import (
    MSG_EMPTY_PAGE,
    MSG_FETCH_FAILED,
    MSG_INVALID_RESPONSE,
    MSG_NO_MATCHES,
    ReportConfig,
)
from .codec import decode, encode, state_from_decoded
from .errors import MalformedResponseError, TransitionError
from .location import Location
from .models import (
    Column,
    FetchResult,
    FilterSelection,
    Notice,
    ReportState,
    clamp_limit,
)

if TYPE_CHECKING:
    from ..filters.editor import FilterEditor

logger = logging.getLogger(__name__)

FilterInput = Union[
    FilterSelection, Mapping[str, Iterable[str]], Iterable[Mapping[str, Iterable[str]]]
]


class Phase(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FETCHING = "fetching"


class StateSynchronizer:
    """
    Owns the ReportState of one report view and keeps it isomorphic with
    the URL.

    Phases:
        UNINITIALIZED -> READY        once, via ``initialize()``
        READY -> FETCHING -> READY    on every state-driven fetch

    Every transition (page, page size, filters) commits a new immutable
    ReportState, pushes the canonical query string to the location if it
    changed, then fetches. Fetches carry a generation counter; a response
    whose generation is no longer current is discarded, so an older
    response can never overwrite a newer one (last-triggered-wins).

    Example:
        sync = StateSynchronizer(config, MemoryLocation("page=2&gender[]=Male"))
        await sync.initialize()
        await sync.set_page(0)
        sync.rows, sync.total, sync.notice
    """

    def __init__(
        self,
        config: ReportConfig,
        location: Location,
        on_notice: Optional[Callable[[Notice], Any]] = None,
    ):
        """
        Create an uninitialized synchronizer.

        Args:
            config: Report configuration (provider, data key, whitelist,
                option source)
            location: URL adapter to read from and write to
            on_notice: Optional callback invoked for every notice
        """
        self._config = config
        self._location = location
        self._on_notice = on_notice

        self._state = ReportState()
        self._phase = Phase.UNINITIALIZED
        self._generation = 0
        self._result = FetchResult.empty()
        self._notices: List[Notice] = []
        self._editor: Optional["FilterEditor"] = None

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def config(self) -> ReportConfig:
        return self._config

    @property
    def state(self) -> ReportState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def initialized(self) -> bool:
        return self._phase is not Phase.UNINITIALIZED

    @property
    def loading(self) -> bool:
        return self._phase is Phase.FETCHING

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def query_string(self) -> str:
        """Canonical query string of the current state."""
        return encode(self._state)

    @property
    def result(self) -> FetchResult:
        return self._result

    @property
    def columns(self) -> List[Column]:
        return list(self._result.columns)

    @property
    def rows(self) -> List[dict]:
        return list(self._result.rows)

    @property
    def total(self) -> int:
        return self._result.total

    @property
    def total_pages(self) -> int:
        return math.ceil(self._result.total / self._state.page.items_per_page)

    @property
    def notice(self) -> Optional[Notice]:
        """Most recent notice, if any."""
        return self._notices[-1] if self._notices else None

    def pop_notices(self) -> List[Notice]:
        """Return and clear notices not yet shown."""
        notices, self._notices = self._notices, []
        return notices

    @property
    def editor(self) -> Optional["FilterEditor"]:
        if self._editor is not None and not self._editor.is_open:
            self._editor = None
        return self._editor

    @property
    def can_open_filters(self) -> bool:
        return self._phase is Phase.READY and self.editor is None

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Derive state from the current URL, canonicalize the URL and run the
        first fetch.

        A non-canonical URL is replaced (not pushed), so the back button
        never returns to it.

        Raises:
            TransitionError: If called more than once
        """
        if self._phase is not Phase.UNINITIALIZED:
            raise TransitionError("Report view is already initialized")

        current = self._location.search
        if current.startswith("?"):
            current = current[1:]

        decoded = decode(current, self._config.allowed_filter_keys)
        self._state = state_from_decoded(
            decoded, self._config.allowed_filter_keys, self._config.option_source
        )

        canonical = encode(self._state)
        if canonical != current:
            logger.debug("Normalizing URL '%s' -> '%s'", current, canonical)
            self._location.replace(canonical)

        self._phase = Phase.READY
        logger.info("Report view initialized with state %s", self._state)

        await self._fetch()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> None:
        if self._phase is Phase.UNINITIALIZED:
            raise TransitionError(
                "State transitions are not allowed before initialize() completes"
            )

    async def set_page(self, page_number: int) -> None:
        """Move to a 0-indexed page (negative values clamp to 0)."""
        self._ensure_initialized()
        await self._transition(self._state.with_page(max(0, int(page_number))))

    async def set_items_per_page(self, items_per_page: int) -> None:
        """Change the page size and return to the first page in one step."""
        self._ensure_initialized()
        await self._transition(
            self._state.with_items_per_page(clamp_limit(int(items_per_page)))
        )

    async def apply_filters(self, filters: FilterInput) -> None:
        """
        Replace the applied filters.

        Accepts a FilterSelection, a ``{key: values}`` mapping or a list of
        single-key fragments. Unknown keys and values that are not current
        options are dropped.
        """
        self._ensure_initialized()
        if isinstance(filters, FilterSelection):
            selection = filters
        elif isinstance(filters, Mapping):
            selection = FilterSelection.from_mapping(filters)
        else:
            selection = FilterSelection.from_fragments(filters)

        keys = self._config.allowed_filter_keys
        selection = selection.restrict(
            keys, self._config.option_source.valid_options(keys)
        )
        await self._transition(self._state.with_filters(selection))

    async def _transition(self, new_state: ReportState) -> None:
        # Identical state: nothing to sync and nothing to fetch
        if new_state == self._state:
            return
        self._state = new_state
        self._sync_url()
        await self._fetch()

    def _sync_url(self) -> None:
        query = encode(self._state)
        if query != self._location.search:
            logger.debug("Pushing URL '%s'", query)
            self._location.push(query)

    # ------------------------------------------------------------------
    # Filter editor
    # ------------------------------------------------------------------

    def open_filter_editor(self) -> "FilterEditor":
        """
        Open a filter editor seeded from the applied filters.

        Raises:
            TransitionError: If not initialized, a fetch is outstanding, or
                an editor is already open
        """
        from ..filters.editor import FilterEditor

        self._ensure_initialized()
        if self._phase is Phase.FETCHING:
            raise TransitionError("Filters cannot be opened while loading")
        if self.editor is not None:
            raise TransitionError("Filter editor is already open")

        self._editor = FilterEditor(
            applied=self._state.filters,
            allowed_keys=self._config.allowed_filter_keys,
            option_source=self._config.option_source,
            on_commit=self.apply_filters,
        )
        return self._editor

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _notify(self, message: str, severity: str) -> None:
        notice = Notice(message=message, severity=severity)
        self._notices.append(notice)
        if self._on_notice is not None:
            self._on_notice(notice)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _fetch(self) -> None:
        self._generation += 1
        generation = self._generation
        snapshot = self._state
        params = snapshot.fetch_params()

        self._phase = Phase.FETCHING
        logger.debug("Fetch #%d with params %s", generation, params)

        try:
            data = await self._config.get_report(params)
        except Exception as exc:
            if not self._is_current(generation):
                logger.debug("Discarding failure of stale fetch #%d", generation)
                return
            logger.exception("Error fetching report")
            self._result = FetchResult.empty()
            self._phase = Phase.READY
            self._notify(MSG_FETCH_FAILED.format(error=exc), "error")
            return
        except BaseException:
            # Cancelled: back to READY unless a newer fetch owns the phase
            if self._is_current(generation):
                self._phase = Phase.READY
            raise

        if not self._is_current(generation):
            logger.debug(
                "Discarding stale fetch #%d (current is #%d)",
                generation,
                self._generation,
            )
            return

        try:
            result = FetchResult.from_response(data, self._config.data_key)
        except MalformedResponseError as exc:
            logger.warning("Malformed report response: %s", exc)
            self._result = FetchResult.empty()
            self._phase = Phase.READY
            self._notify(MSG_INVALID_RESPONSE, "warning")
            return

        page_number = snapshot.page.page_number
        total_pages = math.ceil(result.total / snapshot.page.items_per_page)
        out_of_range = (result.total > 0 and page_number >= total_pages) or (
            result.total == 0 and page_number != 0
        )
        if out_of_range:
            logger.info(
                "Page %d out of range (%d pages); resetting to first page",
                page_number + 1,
                total_pages,
            )
            # Received rows are not displayed; the reset refetches
            self._phase = Phase.READY
            await self._transition(self._state.with_page(0))
            return

        self._result = result
        self._phase = Phase.READY
        logger.debug(
            "Fetch #%d committed: %d rows of %d", generation, len(result.rows), result.total
        )

        if not result.rows and result.total > 0:
            self._notify(MSG_EMPTY_PAGE, "warning")
        elif result.total == 0:
            self._notify(MSG_NO_MATCHES, "info")

    def __repr__(self) -> str:
        return (
            f"StateSynchronizer(phase={self._phase.value}, "
            f"query='{self.query_string}', "
            f"generation={self._generation}, total={self._result.total})"
        )
