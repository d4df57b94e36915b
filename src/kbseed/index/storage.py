"""Supabase-backed embedding store.

Persistence happens remotely: stale chunks are removed through the PostgREST
``embeddings`` table and new ones are created by the ``generate-embedding``
edge function, which computes and stores the vector.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from kbseed.config import MAX_ATTEMPTS, REQUEST_TIMEOUT, RETRY_BASE_DELAY
from kbseed.exceptions import DeleteError, EmbeddingError
from kbseed.models import DocumentChunk

LOGGER = logging.getLogger(__name__)

CONTENT_TYPE = "knowledge"
EMBEDDINGS_PATH = "/rest/v1/embeddings"
GENERATE_EMBEDDING_PATH = "/functions/v1/generate-embedding"


def is_transient_status(status: int) -> bool:
    """Rate limiting and server-side errors are worth retrying."""
    return status == 429 or 500 <= status < 600


class _TransientResponseError(RuntimeError):
    """Raised inside the retry loop for a 429/5xx response."""

    def __init__(self, response: requests.Response) -> None:
        super().__init__(f"HTTP {response.status_code}")
        self.status_code = response.status_code
        self.body = response.text


def _should_retry(exc: BaseException) -> bool:
    return isinstance(
        exc,
        (_TransientResponseError, requests.exceptions.ConnectionError, requests.exceptions.Timeout),
    )


class RemoteEmbeddingStore:
    """Deletes and creates knowledge embeddings through the Supabase HTTP APIs."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        *,
        user_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = MAX_ATTEMPTS,
        retry_base_delay: float = RETRY_BASE_DELAY,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.user_token = user_token
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self._sleep = sleep

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "RemoteEmbeddingStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _service_headers(self) -> Dict[str, str]:
        return {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    def _embedding_headers(self) -> Dict[str, str]:
        token = self.user_token or self.service_key
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def delete_by_source(self, source_id: str) -> None:
        """Remove every knowledge embedding previously stored for ``source_id``."""
        url = (
            f"{self.base_url}{EMBEDDINGS_PATH}"
            f"?source_id=eq.{quote(source_id, safe='')}&content_type=eq.{CONTENT_TYPE}"
        )
        try:
            response = self.session.request(
                "DELETE", url, headers=self._service_headers(), timeout=self.timeout
            )
        except requests.exceptions.RequestException as exc:
            raise DeleteError(f"Failed to delete embeddings for {source_id}: {exc}") from exc

        if not response.ok:
            raise DeleteError(
                f"Failed to delete embeddings for {source_id}: "
                f"{response.status_code} {response.text}",
                status=response.status_code,
            )
        LOGGER.debug("Deleted existing embeddings for %s", source_id)

    @staticmethod
    def build_payload(chunk: DocumentChunk) -> Dict[str, Any]:
        return {
            "content": chunk.content,
            "title": chunk.title,
            "content_type": CONTENT_TYPE,
            "source_id": chunk.metadata.source_id,
            "chunk_index": chunk.chunk_index,
            "metadata": chunk.metadata.embedding_metadata(),
        }

    def _post_embedding(self, payload: Dict[str, Any]) -> requests.Response:
        response = self.session.request(
            "POST",
            f"{self.base_url}{GENERATE_EMBEDDING_PATH}",
            headers=self._embedding_headers(),
            json=payload,
            timeout=self.timeout,
        )
        if response.ok:
            return response
        if is_transient_status(response.status_code):
            raise _TransientResponseError(response)
        raise EmbeddingError(
            f"generate-embedding failed: {response.status_code} {response.text}",
            status=response.status_code,
        )

    def generate_embedding(self, chunk: DocumentChunk) -> str:
        """Embed one chunk and return the created ``embedding_id``.

        Transient failures (429, 5xx, connection errors and timeouts) are
        retried with exponential backoff starting at ``retry_base_delay``;
        any other error status fails on the first attempt.

        Raises:
            EmbeddingError: on a permanent failure or once attempts run out.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_base_delay, min=self.retry_base_delay),
            retry=retry_if_exception(_should_retry),
            sleep=self._sleep,
            before_sleep=before_sleep_log(LOGGER, logging.WARNING),
            reraise=True,
        )
        try:
            response = retrying(self._post_embedding, self.build_payload(chunk))
        except _TransientResponseError as exc:
            raise EmbeddingError(
                f"generate-embedding failed after {self.max_attempts} attempts: "
                f"{exc.status_code} {exc.body}",
                status=exc.status_code,
                attempts=self.max_attempts,
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise EmbeddingError(f"generate-embedding request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise EmbeddingError(
                f"generate-embedding returned invalid JSON: {response.text}",
                status=response.status_code,
            ) from exc

        embedding_id = data.get("embedding_id") if isinstance(data, dict) else None
        if not isinstance(embedding_id, str):
            raise EmbeddingError(
                f"generate-embedding response missing embedding_id: {response.text}",
                status=response.status_code,
            )
        return embedding_id
