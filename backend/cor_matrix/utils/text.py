"""Line normalization helpers shared by the recording and scanning paths."""

from __future__ import annotations

import re


WHITESPACE_RE = re.compile(r"\s+")


def normalize_line(line: str) -> str:
    """Collapse whitespace runs to a single space and strip the ends."""
    return WHITESPACE_RE.sub(" ", line).strip()


def split_lines(text: str) -> list[str]:
    """Split on newlines only; a trailing newline yields a final empty line."""
    return text.split("\n")
