"""Pytest configuration and shared fixtures for report-sync tests."""

import asyncio
from typing import Any, Callable, Dict, Iterator, List, Optional, Set
from unittest.mock import patch

import pytest

from report_sync.config import ReportConfig
from report_sync.filters.options import FilterOptionSource, school_option_source
from report_sync.providers.mock import SCHOOL_COLUMNS, SCHOOL_RECORDS

SCHOOL_FILTER_KEYS = ("studentClass", "gender", "house")


class MockSessionState(dict):
    """Mock Streamlit session_state that behaves like a dict."""
    pass


class MockQueryParams:
    """Mock of ``st.query_params`` supporting repeated keys."""

    def __init__(self, pairs: Optional[List[tuple]] = None):
        self._params: Dict[str, List[str]] = {}
        for key, value in pairs or []:
            self._params.setdefault(key, []).append(value)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._params))

    def __contains__(self, key: str) -> bool:
        return key in self._params

    def get_all(self, key: str) -> List[str]:
        return list(self._params.get(key, []))

    def clear(self) -> None:
        self._params.clear()

    def from_dict(self, params: Dict[str, Any]) -> None:
        self._params = {}
        for key, value in params.items():
            if isinstance(value, (list, tuple)):
                self._params[key] = [str(v) for v in value]
            else:
                self._params[key] = [str(value)]


@pytest.fixture
def mock_streamlit():
    """
    Mock Streamlit's session_state for testing rendering helpers.

    This fixture patches st.session_state to allow testing without
    running a full Streamlit server.
    """
    mock_session_state = MockSessionState()

    with patch("streamlit.session_state", mock_session_state):
        yield mock_session_state


@pytest.fixture
def mock_query_params():
    """Patch ``st.query_params`` with an in-memory fake."""
    params = MockQueryParams()

    with patch("streamlit.query_params", params):
        yield params


@pytest.fixture
def school_options() -> FilterOptionSource:
    return school_option_source()


class StubProvider:
    """
    Provider reporting a fixed ``total`` and serving synthetic rows for the
    requested page. ``rows_override`` forces the row list (e.g. empty).
    """

    def __init__(self, total: int, rows_override: Optional[List[dict]] = None):
        self.total = total
        self.rows_override = rows_override
        self.calls: List[Dict[str, Any]] = []

    async def __call__(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(dict(params))
        if self.rows_override is not None:
            rows = list(self.rows_override)
        else:
            start = (params["page"] - 1) * params["limit"]
            stop = min(start + params["limit"], self.total)
            rows = [{"id": i + 1} for i in range(start, max(start, stop))]
        return {
            "dataMapping": [{"key": "id", "title": "ID"}],
            "items": rows,
            "total": self.total,
        }


class GatedProvider:
    """
    Provider whose calls block until the test releases them, so the order in
    which responses resolve can be controlled. Rows are the school records
    matching the ``gender`` filter. Calls whose index is in ``fail_on`` raise
    once released.
    """

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.gates: List[asyncio.Event] = []
        self.fail_on: Set[int] = set()

    async def __call__(self, params: Dict[str, Any]) -> Dict[str, Any]:
        index = len(self.calls)
        gate = asyncio.Event()
        self.calls.append(dict(params))
        self.gates.append(gate)
        await gate.wait()
        if index in self.fail_on:
            raise RuntimeError(f"call {index} failed")

        genders = params.get("gender") or []
        rows = [r for r in SCHOOL_RECORDS if not genders or r["gender"] in genders]
        return {
            "dataMapping": SCHOOL_COLUMNS,
            "items": rows[: params["limit"]],
            "total": len(rows),
        }


@pytest.fixture
def make_config(school_options) -> Callable[..., ReportConfig]:
    """Factory building a ReportConfig around a provider with data_key 'items'."""

    def _make(provider, data_key: str = "items", **kwargs) -> ReportConfig:
        return ReportConfig(
            get_report=provider,
            data_key=data_key,
            allowed_filter_keys=SCHOOL_FILTER_KEYS,
            option_source=school_options,
            **kwargs,
        )

    return _make


@pytest.fixture
def stub_provider() -> Callable[..., StubProvider]:
    """Factory for StubProvider instances: ``stub_provider(total=45)``."""
    return StubProvider


@pytest.fixture
def gated_provider() -> GatedProvider:
    return GatedProvider()
