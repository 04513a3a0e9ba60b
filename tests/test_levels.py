"""Tests for keyword log level classification."""

import pytest

from dockwatch.logs import classify
from dockwatch.types import LogLevel


class TestClassify:
    """Tests for classify()."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2024-01-15 12:00:00 ERROR connection refused", LogLevel.ERROR),
            ("[err] bad thing", LogLevel.ERROR),
            ("FATAL: out of memory", LogLevel.ERROR),
            ("Traceback (most recent call last):", LogLevel.ERROR),
            ("panic: runtime error", LogLevel.ERROR),
            ("[warn] disk almost full", LogLevel.WARN),
            ("WARNING: deprecated flag", LogLevel.WARN),
            ("level=debug msg=tick", LogLevel.DEBUG),
            ("TRACE entering handler", LogLevel.DEBUG),
            ("INFO server started", LogLevel.INFO),
            ("[notice] ready for connections", LogLevel.INFO),
            ("GET /index.html 200", LogLevel.UNKNOWN),
            ("", LogLevel.UNKNOWN),
        ],
    )
    def test_levels(self, text, expected):
        assert classify(text) == expected

    def test_case_insensitive(self):
        assert classify("Error: nope") == LogLevel.ERROR
        assert classify("eRrOr: nope") == LogLevel.ERROR

    def test_whole_words_only(self):
        """Markers embedded in longer words do not match."""
        assert classify("no errors found") == LogLevel.UNKNOWN
        assert classify("see information below") == LogLevel.UNKNOWN
        assert classify("interrupted") == LogLevel.UNKNOWN

    def test_earliest_marker_wins(self):
        """The first marker in the line decides the level."""
        assert classify("INFO retrying after error") == LogLevel.INFO
        assert classify("error while logging info") == LogLevel.ERROR
