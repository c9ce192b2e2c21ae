"""
Line splitting and line-ending normalization.
"""

from __future__ import annotations


def normalize_line_endings(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace('\r\n', '\n').replace('\r', '\n')


def split_lines(text: str) -> list[str]:
    """
    Split text into lines on LF after normalizing line endings.

    Empty text has no lines. A trailing newline produces a trailing empty
    line, so joining the result with '\\n' gives back the normalized text.
    """
    if not text:
        return []
    return normalize_line_endings(text).split('\n')
