"""Staged filter editing with explicit apply / reset / discard."""

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Sequence, Union

from ..core.errors import TransitionError
from ..core.models import FilterSelection
from .options import FilterOptionSource

logger = logging.getLogger(__name__)

CommitCallback = Callable[[FilterSelection], Union[Awaitable[Any], Any]]


class FilterControl(NamedTuple):
    """What the presentation layer needs to draw one filter control."""

    key: str
    display_name: str
    options: List[str]
    selected: List[str]


class FilterEditor:
    """
    Editor holding a temporary filter set apart from the applied one.

    The temporary set is seeded from the applied filters, re-validated
    against the live option source, and only reaches the applied filters
    through ``apply()`` or ``reset()``. Every closing operation (apply, reset,
    discard) leaves the editor closed; a new editor is created on next open.

    Example:
        editor = FilterEditor(
            applied=sync.state.filters,
            allowed_keys=config.allowed_filter_keys,
            option_source=config.option_source,
            on_commit=sync.apply_filters,
        )
        editor.edit("gender", ["Male"])
        await editor.apply()
    """

    def __init__(
        self,
        applied: FilterSelection,
        allowed_keys: Sequence[str],
        option_source: FilterOptionSource,
        on_commit: CommitCallback,
    ):
        """
        Open the editor.

        Args:
            applied: Currently applied filters; never mutated by the editor
            allowed_keys: Filter keys the editor offers
            option_source: Lookup used to re-validate applied values
            on_commit: Called with the new applied set on apply/reset. May
                return an awaitable, which is awaited.
        """
        self._applied = applied
        self._allowed_keys = tuple(allowed_keys)
        self._option_source = option_source
        self._on_commit = on_commit
        self._temp: Dict[str, List[str]] = self._seed()
        self._open = True

    def _seed(self) -> Dict[str, List[str]]:
        """Copy applied filters, keeping only values valid right now."""
        temp: Dict[str, List[str]] = {}
        for key, values in self._applied:
            if key not in self._allowed_keys:
                continue
            valid = set(self._option_source.options_for_key(key))
            kept = [v for v in values if v in valid]
            if len(kept) != len(values):
                logger.debug(
                    "Dropped stale values %s for filter '%s'",
                    [v for v in values if v not in valid],
                    key,
                )
            temp[key] = kept
        return temp

    def _ensure_open(self) -> None:
        if not self._open:
            raise TransitionError("Filter editor is closed")

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def allowed_keys(self) -> tuple:
        return self._allowed_keys

    @property
    def temp_filters(self) -> Dict[str, List[str]]:
        """Copy of the staged selections."""
        return {key: list(values) for key, values in self._temp.items()}

    def selected(self, key: str) -> List[str]:
        return list(self._temp.get(key, []))

    def edit(self, key: str, values: Sequence[str]) -> None:
        """
        Replace the staged values for one filter.

        No option validation happens here; the controls only offer valid
        options.

        Raises:
            KeyError: If ``key`` is not an allowed filter key
            TransitionError: If the editor is closed
        """
        self._ensure_open()
        if key not in self._allowed_keys:
            raise KeyError(f"Unknown filter key '{key}'. Allowed: {list(self._allowed_keys)}")
        self._temp[key] = list(values)

    def build_selection(self) -> FilterSelection:
        """Staged filters as a selection; keys without values are omitted."""
        return FilterSelection.from_mapping(
            {key: values for key, values in self._temp.items() if values}
        )

    async def _commit(self, selection: FilterSelection) -> None:
        result = self._on_commit(selection)
        if inspect.isawaitable(result):
            await result

    async def apply(self) -> FilterSelection:
        """Commit the staged filters and close the editor."""
        self._ensure_open()
        selection = self.build_selection()
        self._open = False
        await self._commit(selection)
        return selection

    async def reset(self) -> FilterSelection:
        """Clear every filter, commit the empty set and close the editor."""
        self._ensure_open()
        self._temp = {key: [] for key in self._allowed_keys}
        self._open = False
        selection = FilterSelection()
        await self._commit(selection)
        return selection

    def discard(self) -> None:
        """Close without applying; staged edits are reverted."""
        self._ensure_open()
        self._temp = self._seed()
        self._open = False

    def render_model(self) -> List[FilterControl]:
        """One control per allowed key, in whitelist order."""
        return [
            FilterControl(
                key=key,
                display_name=self._option_source.display_name(key),
                options=self._option_source.options_for_key(key),
                selected=self.selected(key),
            )
            for key in self._allowed_keys
        ]

    def __repr__(self) -> str:
        return (
            f"FilterEditor(open={self._open}, "
            f"applied={self._applied.to_dict()}, temp={self._temp})"
        )
