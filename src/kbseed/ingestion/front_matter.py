"""Front-matter parsing for knowledge documents.

Knowledge documents start with a small YAML-like header::

    ---
    title: "Sleep and Recovery"
    category: "recovery"
    tags: ["sleep", "recovery"]
    sport: "triathlon"
    difficulty: "beginner"
    source_id: "recovery/sleep-and-recovery"
    ---

Only the subset used by the knowledge base is supported: double-quoted
strings (quotes stripped, no escapes), JSON arrays and bare scalars.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from kbseed.exceptions import ParseError
from kbseed.models import DocumentMetadata
from kbseed.utils.text import join_trimmed, split_lines

DELIMITER = "---"
REQUIRED_FIELDS = ("title", "category", "tags", "sport", "difficulty", "source_id")


def split_front_matter(raw: str) -> Tuple[Optional[List[str]], str]:
    """Separate the front-matter block from the body.

    Returns ``(header_lines, body)``. ``header_lines`` is ``None`` when the
    document does not open with a ``---`` delimited block, in which case the
    body is the whole document.
    """
    lines = split_lines(raw)
    if not lines or lines[0].strip() != DELIMITER:
        return None, raw.strip()

    for index in range(1, len(lines)):
        if lines[index].strip() == DELIMITER:
            return lines[1:index], join_trimmed(lines[index + 1 :])

    return None, raw.strip()


def _parse_value(key: str, raw_value: str) -> Any:
    if raw_value.startswith('"') and raw_value.endswith('"'):
        return raw_value[1:-1]
    if raw_value.startswith("["):
        try:
            return json.loads(raw_value)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f'Invalid array value for front-matter field "{key}"', field=key
            ) from exc
    return raw_value


def parse_fields(header_lines: List[str]) -> Dict[str, Any]:
    """Parse ``key: value`` lines into a dict, skipping blanks and ``#`` comments."""
    fields: Dict[str, Any] = {}
    for line in header_lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, raw_value = stripped.partition(":")
        if not sep:
            continue
        key = key.strip()
        fields[key] = _parse_value(key, raw_value.strip())
    return fields


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or value == []


def parse_front_matter(raw: str) -> DocumentMetadata:
    """Parse and validate the front-matter of a knowledge document.

    Raises:
        ParseError: the block is absent, a required field is missing or
            empty, an array value is not valid JSON, or ``tags`` is not an
            array.
    """
    header_lines, _ = split_front_matter(raw)
    if header_lines is None:
        raise ParseError("No front-matter found (expected --- delimiters)")

    fields = parse_fields(header_lines)

    for name in REQUIRED_FIELDS:
        if _is_missing(fields.get(name)):
            raise ParseError(f"Missing required front-matter field: {name}", field=name)

    tags = fields["tags"]
    if not isinstance(tags, list):
        raise ParseError('Front-matter field "tags" must be an array', field="tags")
    if not all(isinstance(tag, str) for tag in tags):
        raise ParseError('Front-matter field "tags" must contain only strings', field="tags")

    return DocumentMetadata(
        title=str(fields["title"]),
        category=str(fields["category"]),
        tags=tuple(tags),
        sport=str(fields["sport"]),
        difficulty=str(fields["difficulty"]),
        source_id=str(fields["source_id"]),
    )
