"""Tests for dub.selections.json handling."""

import json

import pytest

from registry.dub import DubSelectionsError, read_dub_selections, selected_version


class TestReadDubSelections:
    """Tests for read_dub_selections."""

    def test_valid_file(self, tmp_path):
        """A version 1 file is returned as parsed."""
        path = tmp_path / "dub.selections.json"
        path.write_text(json.dumps({
            "fileVersion": 1,
            "versions": {"vibe-d": "0.9.5", "local": {"path": "../local"}, "pinned": {"version": "1.0.0"}},
        }))
        selections = read_dub_selections(str(path))
        assert selected_version(selections, "vibe-d") == "0.9.5"
        assert selected_version(selections, "pinned") == "1.0.0"
        assert selected_version(selections, "local") is None
        assert selected_version(selections, "absent") is None

    def test_missing_file(self, tmp_path):
        """An absent file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            read_dub_selections(str(tmp_path / "dub.selections.json"))

    def test_unknown_file_version(self, tmp_path):
        """Only fileVersion 1 is understood."""
        path = tmp_path / "dub.selections.json"
        path.write_text(json.dumps({"fileVersion": 2, "versions": {}}))
        with pytest.raises(DubSelectionsError):
            read_dub_selections(str(path))

    def test_invalid_json(self, tmp_path):
        """Garbage is reported as a selections error."""
        path = tmp_path / "dub.selections.json"
        path.write_text("{not json")
        with pytest.raises(DubSelectionsError):
            read_dub_selections(str(path))
