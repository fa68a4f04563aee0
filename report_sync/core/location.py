"""Browser location adapters used by the synchronizer to read and write the URL."""

from abc import ABC, abstractmethod
from typing import Dict, List
from urllib.parse import parse_qsl, urlencode


class Location(ABC):
    """
    Minimal view of the browser location.

    ``search`` is the current query string without the leading '?'.
    ``replace`` rewrites the current history entry; ``push`` adds a new,
    navigable one.
    """

    @property
    @abstractmethod
    def search(self) -> str:
        pass

    @abstractmethod
    def replace(self, query: str) -> None:
        pass

    @abstractmethod
    def push(self, query: str) -> None:
        pass


class MemoryLocation(Location):
    """
    In-memory location with a history stack.

    Used for headless runs and tests. ``history`` lists every entry, oldest
    first; the last one is current.
    """

    def __init__(self, search: str = "", path: str = "/"):
        if search.startswith("?"):
            search = search[1:]
        self.path = path
        self.history: List[str] = [search]
        self.replace_count = 0
        self.push_count = 0

    @property
    def search(self) -> str:
        return self.history[-1]

    @property
    def href(self) -> str:
        return f"{self.path}?{self.search}" if self.search else self.path

    def replace(self, query: str) -> None:
        self.history[-1] = query
        self.replace_count += 1

    def push(self, query: str) -> None:
        self.history.append(query)
        self.push_count += 1

    def back(self) -> str:
        """Pop the current entry and return the previous query."""
        if len(self.history) > 1:
            self.history.pop()
        return self.search

    def __repr__(self) -> str:
        return f"MemoryLocation(href='{self.href}', entries={len(self.history)})"


class StreamlitLocation(Location):
    """
    Location backed by ``st.query_params``.

    Streamlit rewrites the browser URL in place whenever query params are
    assigned, so ``replace`` and ``push`` behave the same here; the
    synchronizer still calls the right one for its phase.
    """

    def __init__(self):
        self.writes: int = 0

    @property
    def search(self) -> str:
        import streamlit as st

        params = st.query_params
        pairs = [(key, value) for key in params for value in params.get_all(key)]
        return urlencode(pairs)

    def _write(self, query: str) -> None:
        import streamlit as st

        grouped: Dict[str, List[str]] = {}
        for key, value in parse_qsl(query, keep_blank_values=True):
            grouped.setdefault(key, []).append(value)
        st.query_params.from_dict(grouped)
        self.writes += 1

    def replace(self, query: str) -> None:
        self._write(query)

    def push(self, query: str) -> None:
        self._write(query)
