"""Tests for staged filter editing."""

import asyncio

import pytest

from report_sync.core.errors import TransitionError
from report_sync.core.models import FilterSelection
from report_sync.filters.editor import FilterEditor
from report_sync.filters.options import FilterOptionSource

ALLOWED = ("studentClass", "gender", "house")


class CommitRecorder:
    """Async commit callback recording every committed selection."""

    def __init__(self):
        self.commits = []

    async def __call__(self, selection):
        self.commits.append(selection)


@pytest.fixture
def recorder():
    return CommitRecorder()


def _editor(applied, options, on_commit, allowed=ALLOWED):
    return FilterEditor(
        applied=FilterSelection.from_mapping(applied),
        allowed_keys=allowed,
        option_source=options,
        on_commit=on_commit,
    )


class TestSeed:
    def test_seeds_from_applied_filters(self, school_options, recorder):
        editor = _editor({"gender": ["Male"], "house": ["Red", "Blue"]}, school_options, recorder)

        assert editor.temp_filters == {"gender": ["Male"], "house": ["Red", "Blue"]}
        assert editor.is_open

    def test_seed_drops_values_no_longer_offered(self, recorder):
        # "Blue" was applied earlier but is no longer a valid house
        options = FilterOptionSource(
            {"class": ["5"], "gender": ["Male", "Female"], "house": ["Red"]},
            {"studentClass": "class"},
        )
        editor = _editor({"house": ["Red", "Blue"], "studentClass": ["6"]}, options, recorder)

        assert editor.selected("house") == ["Red"]
        assert editor.selected("studentClass") == []

    def test_seed_reads_live_options(self, recorder):
        class ShiftingOptions(FilterOptionSource):
            def get_options(self, semantic_name):
                return ["Female"] if semantic_name == "gender" else []

        options = ShiftingOptions({"gender": ["Male", "Female"]})
        editor = _editor({"gender": ["Male", "Female"]}, options, recorder)

        assert editor.selected("gender") == ["Female"]


class TestEdit:
    def test_edit_replaces_one_key_only(self, school_options, recorder):
        editor = _editor({"gender": ["Male"], "house": ["Red"]}, school_options, recorder)

        editor.edit("house", ["Green", "Yellow"])

        assert editor.temp_filters == {"gender": ["Male"], "house": ["Green", "Yellow"]}

    def test_edit_does_not_commit(self, school_options, recorder):
        editor = _editor({}, school_options, recorder)

        editor.edit("gender", ["Male"])

        assert recorder.commits == []

    def test_edit_unknown_key_raises(self, school_options, recorder):
        editor = _editor({}, school_options, recorder)

        with pytest.raises(KeyError):
            editor.edit("secretKey", ["x"])


class TestApply:
    def test_apply_commits_non_empty_keys(self, school_options, recorder):
        editor = _editor({"house": ["Red"]}, school_options, recorder)
        editor.edit("house", [])
        editor.edit("gender", ["Female"])

        selection = asyncio.run(editor.apply())

        assert selection.to_dict() == {"gender": ["Female"]}
        assert recorder.commits == [selection]
        assert not editor.is_open

    def test_apply_accepts_sync_callback(self, school_options):
        commits = []
        editor = _editor({}, school_options, commits.append)
        editor.edit("studentClass", ["5", "6"])

        asyncio.run(editor.apply())

        assert commits[0].to_dict() == {"studentClass": ["5", "6"]}

    def test_closed_editor_rejects_operations(self, school_options, recorder):
        editor = _editor({}, school_options, recorder)
        asyncio.run(editor.apply())

        with pytest.raises(TransitionError):
            editor.edit("gender", ["Male"])
        with pytest.raises(TransitionError):
            asyncio.run(editor.apply())
        with pytest.raises(TransitionError):
            editor.discard()


class TestReset:
    def test_reset_clears_everything_and_commits_empty(self, school_options, recorder):
        editor = _editor({"gender": ["Male"], "house": ["Red"]}, school_options, recorder)

        selection = asyncio.run(editor.reset())

        assert selection == FilterSelection()
        assert recorder.commits == [FilterSelection()]
        assert editor.temp_filters == {"studentClass": [], "gender": [], "house": []}
        assert not editor.is_open


class TestDiscard:
    def test_discard_reverts_edits_without_commit(self, school_options, recorder):
        editor = _editor({"gender": ["Female"]}, school_options, recorder)
        editor.edit("gender", ["Male"])
        editor.edit("house", ["Red"])

        editor.discard()

        assert editor.temp_filters == {"gender": ["Female"]}
        assert recorder.commits == []
        assert not editor.is_open


class TestRenderModel:
    def test_one_control_per_allowed_key(self, school_options, recorder):
        editor = _editor({"studentClass": ["7"]}, school_options, recorder)

        controls = editor.render_model()

        assert [c.key for c in controls] == list(ALLOWED)
        assert controls[0].display_name == "class"
        assert controls[0].options == ["5", "6", "7", "8", "9", "10"]
        assert controls[0].selected == ["7"]
        assert controls[1].options == ["Male", "Female"]
        assert controls[2].selected == []
