"""Tests for the Streamlit rendering helpers and the query-param location.

Note: mock_streamlit and mock_query_params are defined in conftest.py
"""

import asyncio

from report_sync.core.location import MemoryLocation, StreamlitLocation
from report_sync.core.models import Column
from report_sync.core.synchronizer import StateSynchronizer
from report_sync.rendering.view import (
    clear_synchronizer,
    get_synchronizer,
    page_size_options,
    rows_to_frame,
)


class TestStreamlitLocation:
    def test_search_reads_repeated_params(self, mock_query_params):
        mock_query_params.from_dict(
            {"page": "2", "limit": "10", "gender[]": ["Male", "Female"]}
        )

        assert StreamlitLocation().search == (
            "page=2&limit=10&gender%5B%5D=Male&gender%5B%5D=Female"
        )

    def test_empty_params(self, mock_query_params):
        assert StreamlitLocation().search == ""

    def test_push_groups_repeated_keys(self, mock_query_params):
        location = StreamlitLocation()

        location.push("page=1&limit=20&house%5B%5D=Red&house%5B%5D=Blue")

        assert mock_query_params.get_all("house[]") == ["Red", "Blue"]
        assert mock_query_params.get_all("page") == ["1"]
        assert location.writes == 1

    def test_replace_overwrites_previous_params(self, mock_query_params):
        mock_query_params.from_dict({"secretKey[]": "x", "limit": "abc"})
        location = StreamlitLocation()

        location.replace("page=1&limit=20")

        assert "secretKey[]" not in mock_query_params
        assert location.search == "page=1&limit=20"

    def test_synchronizer_normalizes_query_params(
        self, mock_query_params, make_config, stub_provider
    ):
        mock_query_params.from_dict(
            {"limit": "1000", "studentClass[]": ["42", "6"], "secretKey[]": "x"}
        )
        sync = StateSynchronizer(make_config(stub_provider(total=5)), StreamlitLocation())

        asyncio.run(sync.initialize())

        assert mock_query_params.get_all("limit") == ["50"]
        assert mock_query_params.get_all("studentClass[]") == ["6"]
        assert "secretKey[]" not in mock_query_params


class TestSessionSynchronizer:
    def test_created_once_per_key(self, mock_streamlit, make_config, stub_provider):
        config = make_config(stub_provider(total=5))

        first = get_synchronizer(config, "report", MemoryLocation())
        second = get_synchronizer(config, "report", MemoryLocation("page=4"))

        assert first is second
        assert len(mock_streamlit) == 1

    def test_keys_are_independent(self, mock_streamlit, make_config, stub_provider):
        config = make_config(stub_provider(total=5))

        a = get_synchronizer(config, "a", MemoryLocation())
        b = get_synchronizer(config, "b", MemoryLocation())

        assert a is not b

    def test_clear_forces_new_synchronizer(self, mock_streamlit, make_config, stub_provider):
        config = make_config(stub_provider(total=5))
        first = get_synchronizer(config, "report", MemoryLocation())

        clear_synchronizer("report")
        clear_synchronizer("missing")

        assert get_synchronizer(config, "report", MemoryLocation()) is not first

    def test_defaults_to_query_param_location(
        self, mock_streamlit, mock_query_params, make_config, stub_provider
    ):
        sync = get_synchronizer(make_config(stub_provider(total=5)), "report")

        asyncio.run(sync.initialize())

        assert mock_query_params.get_all("page") == ["1"]


class TestTableHelpers:
    def test_rows_to_frame_uses_mapping_order_and_titles(self):
        columns = [Column("name", "Name"), Column("id", "ID"), Column("house", "House")]
        rows = [{"id": 1, "name": "Alice", "extra": "x"}, {"id": 2, "name": "Bob"}]

        frame = rows_to_frame(columns, rows)

        assert list(frame.columns) == ["Name", "ID", "House"]
        assert frame["Name"].tolist() == ["Alice", "Bob"]
        assert frame["House"].isna().all()

    def test_rows_to_frame_empty(self):
        frame = rows_to_frame([Column("id", "ID")], [])

        assert frame.empty
        assert list(frame.columns) == ["ID"]

    def test_page_size_options_include_current(self):
        assert page_size_options((5, 10, 20, 50), 20) == [5, 10, 20, 50]
        assert page_size_options((5, 10, 20, 50), 7) == [5, 7, 10, 20, 50]
