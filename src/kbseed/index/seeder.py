"""Knowledge-base seeding pipeline."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from kbseed.config import SeedConfig
from kbseed.exceptions import DeleteError, EmbeddingError, ParseError
from kbseed.index.storage import RemoteEmbeddingStore
from kbseed.ingestion.markdown_loader import load_document
from kbseed.models import DocumentChunk, SeedError, SeedResult
from kbseed.utils.files import ListDir, ReadText, default_list_dir, find_markdown_files, read_text

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SeedStats:
    chunks_generated: int = 0
    embeddings_created: int = 0
    errors: List[SeedError] = field(default_factory=list)

    def record_error(self, file: str, chunk_index: int, error: str) -> None:
        LOGGER.error("%s [chunk %s]: %s", file, chunk_index, error)
        self.errors.append(SeedError(file=file, chunk_index=chunk_index, error=error))

    def to_result(self, documents_found: int) -> SeedResult:
        return SeedResult(
            documents_found=documents_found,
            chunks_generated=self.chunks_generated,
            embeddings_created=self.embeddings_created,
            errors=tuple(self.errors),
        )


class SeedOrchestrator:
    """Coordinates discovery, chunking and idempotent remote persistence.

    Files and chunks are processed strictly one at a time so the remote
    service sees at most one request in flight and log output stays ordered.
    Per-file and per-chunk failures are collected into the result instead of
    being raised.
    """

    def __init__(
        self,
        config: SeedConfig,
        store: Optional[RemoteEmbeddingStore] = None,
        *,
        list_dir: ListDir = default_list_dir,
        read_text: ReadText = read_text,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.list_dir = list_dir
        self.read_text = read_text
        self.sleep = sleep
        if store is None and not config.dry_run:
            store = RemoteEmbeddingStore(
                config.supabase_url,
                config.service_key,
                user_token=config.user_token,
                sleep=sleep,
                max_attempts=config.max_attempts,
                retry_base_delay=config.retry_base_delay,
                timeout=config.request_timeout,
            )
        self.store = store

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.config.knowledge_dir).as_posix()
        except ValueError:
            return path.as_posix()

    def run(self) -> SeedResult:
        """Seed every knowledge document under the configured directory."""
        root = self.config.knowledge_dir
        files = find_markdown_files(root, self.list_dir)
        LOGGER.info("Found %d knowledge documents in %s", len(files), root)
        if not files:
            return SeedResult()

        stats = SeedStats()
        total = len(files)
        for position, path in enumerate(files, start=1):
            self._seed_file(path, f"[{position}/{total}]", stats)
        return stats.to_result(documents_found=total)

    def _seed_file(self, path: Path, progress: str, stats: SeedStats) -> None:
        relative = self._relative(path)
        try:
            raw = self.read_text(path)
        except (OSError, UnicodeDecodeError) as exc:
            stats.record_error(relative, -1, f"Failed to read document: {exc}")
            return

        try:
            metadata, chunks = load_document(raw)
        except ParseError as exc:
            stats.record_error(relative, -1, f"Failed to parse front-matter: {exc}")
            return

        stats.chunks_generated += len(chunks)

        if self.config.dry_run:
            LOGGER.info("%s %s: %d chunks (dry run)", progress, relative, len(chunks))
            return

        try:
            self.store.delete_by_source(metadata.source_id)
        except DeleteError as exc:
            stats.record_error(relative, -1, str(exc))
            return

        embedded = sum(self._embed_chunk(relative, chunk, stats) for chunk in chunks)
        LOGGER.info("%s %s: %d chunks embedded", progress, relative, embedded)

    def _embed_chunk(self, relative: str, chunk: DocumentChunk, stats: SeedStats) -> bool:
        try:
            embedding_id = self.store.generate_embedding(chunk)
        except EmbeddingError as exc:
            stats.record_error(relative, chunk.chunk_index, str(exc))
            embedded = False
        else:
            LOGGER.debug("Embedded %s as %s", chunk.title, embedding_id)
            stats.embeddings_created += 1
            embedded = True

        self.sleep(self.config.inter_request_delay)
        return embedded
