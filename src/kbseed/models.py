"""Core kbseed data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True, slots=True)
class DocumentMetadata:
    """Metadata parsed from a knowledge document's front-matter."""

    title: str
    category: str
    tags: Tuple[str, ...]
    sport: str
    difficulty: str
    source_id: str

    def embedding_metadata(self) -> Dict[str, Any]:
        """Projection sent alongside each chunk; title and source_id travel separately."""
        return {
            "category": self.category,
            "tags": list(self.tags),
            "sport": self.sport,
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """One H2 section of a document, ready to embed."""

    title: str
    content: str
    chunk_index: int
    metadata: DocumentMetadata


@dataclass(frozen=True, slots=True)
class SeedError:
    file: str
    chunk_index: int
    error: str

    def __str__(self) -> str:
        return f"{self.file} [chunk {self.chunk_index}]: {self.error}"


@dataclass(frozen=True, slots=True)
class SeedResult:
    """Outcome of a single seeding run."""

    documents_found: int = 0
    chunks_generated: int = 0
    embeddings_created: int = 0
    errors: Tuple[SeedError, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.errors
