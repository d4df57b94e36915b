"""Split knowledge documents into H2 section chunks.

The body is first classified line by line, then folded into sections: every
``## `` heading opens a new section and anything before the first one is the
introduction. Deeper headings stay inside their section's content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from kbseed.ingestion.front_matter import parse_front_matter, split_front_matter
from kbseed.models import DocumentChunk, DocumentMetadata
from kbseed.utils.text import join_trimmed, split_lines

LOGGER = logging.getLogger(__name__)

INTRODUCTION_TITLE = "Introduction"
_FENCE_MARKERS = ("```", "~~~")


class LineKind(Enum):
    HEADING_1 = "h1"
    HEADING_2 = "h2"
    SUBHEADING = "h3+"
    TEXT = "text"
    BLANK = "blank"


@dataclass(frozen=True, slots=True)
class Line:
    kind: LineKind
    text: str


@dataclass(slots=True)
class _Section:
    title: Optional[str]
    lines: List[Line] = field(default_factory=list)


def classify_line(text: str) -> LineKind:
    """Classify a single body line by its markdown heading level."""
    if text.startswith("## "):
        return LineKind.HEADING_2
    if text.startswith("# "):
        return LineKind.HEADING_1
    if text.startswith("###"):
        return LineKind.SUBHEADING
    if not text.strip():
        return LineKind.BLANK
    return LineKind.TEXT


def tokenize(body: str) -> Iterator[Line]:
    """Yield classified lines; anything inside a fenced code block is plain text."""
    fence: Optional[str] = None
    for text in split_lines(body):
        marker = next((m for m in _FENCE_MARKERS if text.lstrip().startswith(m)), None)
        if fence is not None:
            if marker == fence:
                fence = None
            yield Line(LineKind.BLANK if not text.strip() else LineKind.TEXT, text)
            continue
        if marker is not None:
            fence = marker
            yield Line(LineKind.TEXT, text)
            continue
        yield Line(classify_line(text), text)
    if fence is not None:
        LOGGER.warning("Unclosed %s code fence; later headings were not split", fence)


def _fold_sections(lines: Iterator[Line]) -> List[_Section]:
    sections = [_Section(title=None)]
    for line in lines:
        if line.kind is LineKind.HEADING_2:
            sections.append(_Section(title=line.text[3:].strip()))
        else:
            sections[-1].lines.append(line)
    return sections


def _introduction_content(section: _Section) -> str:
    lines = section.lines
    first = next((i for i, line in enumerate(lines) if line.kind is not LineKind.BLANK), None)
    if first is None:
        return ""
    if lines[first].kind is LineKind.HEADING_1:
        # The document title heading duplicates the front-matter title.
        lines = lines[first + 1 :]
    return join_trimmed(line.text for line in lines)


def chunk_document(metadata: DocumentMetadata, raw: str) -> List[DocumentChunk]:
    """Split a document body into ordered section chunks.

    Sections without body text are dropped and do not consume a
    ``chunk_index``. An empty body yields no chunks.
    """
    _, body = split_front_matter(raw)
    if not body:
        return []

    chunks: List[DocumentChunk] = []
    for section in _fold_sections(tokenize(body)):
        if section.title is None:
            title = INTRODUCTION_TITLE
            content = _introduction_content(section)
        else:
            title = section.title
            content = join_trimmed(line.text for line in section.lines)

        if not content:
            LOGGER.debug("Skipping empty section %r in %s", title, metadata.source_id)
            continue

        chunks.append(
            DocumentChunk(
                title=f"{metadata.title} > {title}",
                content=content,
                chunk_index=len(chunks),
                metadata=metadata,
            )
        )
    return chunks


def load_document(raw: str) -> Tuple[DocumentMetadata, List[DocumentChunk]]:
    """Parse front-matter and chunk the body in one step."""
    metadata = parse_front_matter(raw)
    return metadata, chunk_document(metadata, raw)
