"""
Log level classification by keyword.

Container output has no common format, so the level is inferred from
markers in the text. Matching is case-insensitive and whole-word: the
marker must not be part of a longer word ("errors" and "information" do
not match). When a line contains several markers, the earliest one wins,
since level prefixes normally come first.

Examples:
    "2024-01-15 12:00:00 ERROR connection refused"  -> ERROR
    "[warn] disk almost full"                        -> WARN
    "level=debug msg=tick"                           -> DEBUG
    "INFO retrying after error"                      -> INFO
    "GET /index.html 200"                            -> UNKNOWN
"""

import re

from dockwatch.types import LogLevel

LEVEL_KEYWORDS: dict[LogLevel, tuple[str, ...]] = {
    LogLevel.ERROR: (
        "error",
        "err",
        "fatal",
        "critical",
        "crit",
        "panic",
        "exception",
        "traceback",
        "emerg",
        "alert",
    ),
    LogLevel.WARN: ("warning", "warn"),
    LogLevel.DEBUG: ("debug", "trace"),
    LogLevel.INFO: ("info", "notice"),
}

_KEYWORD_LEVELS = {
    keyword: level for level, keywords in LEVEL_KEYWORDS.items() for keyword in keywords
}

# Longest keywords first so "error" is tried before "err" at one position
LEVEL_PATTERN = re.compile(
    r"\b("
    + "|".join(sorted(_KEYWORD_LEVELS, key=len, reverse=True))
    + r")\b",
    re.IGNORECASE,
)


def classify(text: str) -> LogLevel:
    """
    Derive a LogLevel from line content.

    Args:
        text: Raw log line

    Returns:
        Level of the earliest marker, UNKNOWN if none matches
    """
    match = LEVEL_PATTERN.search(text)
    if match is None:
        return LogLevel.UNKNOWN
    return _KEYWORD_LEVELS[match.group(1).lower()]
