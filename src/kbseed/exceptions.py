"""Exception hierarchy for the seeding pipeline."""

from __future__ import annotations

from typing import Optional


class SeedingError(Exception):
    """Base class for all kbseed errors."""


class ConfigError(SeedingError):
    """Required configuration is missing or invalid; nothing was processed."""


class ParseError(SeedingError, ValueError):
    """A document's front-matter is missing, incomplete or malformed."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class DeleteError(SeedingError):
    """Removing previously persisted chunks for a source_id failed."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class EmbeddingError(SeedingError):
    """A chunk could not be embedded (permanent failure or retries exhausted)."""

    def __init__(
        self, message: str, status: Optional[int] = None, attempts: int = 1
    ) -> None:
        super().__init__(message)
        self.status = status
        self.attempts = attempts
