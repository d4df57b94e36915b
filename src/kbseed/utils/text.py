"""Text helpers shared by the front-matter parser and the chunker."""

from __future__ import annotations

from typing import Iterable, List


def split_lines(text: str) -> List[str]:
    """Split text into lines, accepting both LF and CRLF endings."""
    return text.replace("\r\n", "\n").split("\n")


def join_trimmed(lines: Iterable[str]) -> str:
    """Join lines and strip surrounding whitespace from the resulting block."""
    return "\n".join(lines).strip()
