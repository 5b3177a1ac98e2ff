"""Tests for the file validator."""

import pytest

from commitlens_core.models import ChangeKind, FileChange
from commitlens_core.utils.code import BINARY_MARKER
from commitlens_core.validation import MAX_FILE_SIZE, looks_binary, validate_file

SOURCE = "def add(a, b):\n    return a + b\n"


def _make_change(path="src/calc.py", content=SOURCE, kind=ChangeKind.MODIFIED):
    return FileChange(path=path, change_kind=kind, modified_content=content)


class TestValidateFile:
    def test_valid_source_file_passes(self):
        outcome = validate_file(_make_change())
        assert outcome.ok is True
        assert outcome.reason == ""
        assert bool(outcome) is True

    @pytest.mark.parametrize("content", ["", SOURCE, "x" * 10])
    def test_deleted_file_always_fails(self, content):
        outcome = validate_file(_make_change(content=content, kind=ChangeKind.DELETED))
        assert outcome.ok is False
        assert "deleted" in outcome.reason

    def test_missing_path_fails(self):
        outcome = validate_file(_make_change(path=""))
        assert not outcome
        assert "path" in outcome.reason

    def test_denied_extension_fails(self):
        outcome = validate_file(_make_change(path="assets/logo.png"))
        assert not outcome
        assert ".png" in outcome.reason

    def test_non_source_extension_fails(self):
        outcome = validate_file(_make_change(path="docs/notes.md"))
        assert not outcome
        assert "not a source code file" in outcome.reason

    def test_whitespace_only_content_fails(self):
        outcome = validate_file(_make_change(content="  \n\t\n"))
        assert not outcome
        assert "empty" in outcome.reason

    def test_content_over_limit_fails_with_size_reason(self):
        outcome = validate_file(_make_change(content="a" * (MAX_FILE_SIZE + 1)))
        assert not outcome
        assert "too large" in outcome.reason
        assert "KB" in outcome.reason

    def test_content_at_limit_passes(self):
        content = ("x = 1\n" * (MAX_FILE_SIZE // 6 + 1))[:MAX_FILE_SIZE]
        assert len(content) == MAX_FILE_SIZE
        assert validate_file(_make_change(content=content)).ok is True

    def test_custom_limit_is_honoured(self):
        assert not validate_file(_make_change(content=SOURCE), max_size=10)

    def test_binary_marker_fails(self):
        outcome = validate_file(_make_change(content=BINARY_MARKER))
        assert not outcome
        assert "binary" in outcome.reason

    def test_control_characters_fail(self):
        content = "ok" * 10 + "\x00\x01\x02\x03"
        outcome = validate_file(_make_change(content=content))
        assert not outcome
        assert "binary" in outcome.reason


class TestLooksBinary:
    def test_tabs_and_newlines_are_printable(self):
        assert looks_binary("a\tb\r\nc\n" * 100) is False

    def test_exactly_five_percent_is_text(self):
        # 5 control chars in 100 characters is at the threshold, not above it.
        assert looks_binary("\x01" * 5 + "a" * 95) is False

    def test_above_five_percent_is_binary(self):
        assert looks_binary("\x01" * 6 + "a" * 94) is True
