"""Seeding configuration, loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from kbseed.exceptions import ConfigError

ENV_SUPABASE_URL = "SUPABASE_URL"
ENV_SERVICE_KEY = "SUPABASE_SERVICE_ROLE_KEY"
ENV_USER_TOKEN = "SUPABASE_USER_TOKEN"
ENV_KNOWLEDGE_DIR = "KBSEED_KNOWLEDGE_DIR"
ENV_FILE = ".env"

DEFAULT_KNOWLEDGE_DIR = Path("docs/knowledge")
MAX_ATTEMPTS = 3
RETRY_BASE_DELAY = 0.5
INTER_REQUEST_DELAY = 0.2
REQUEST_TIMEOUT = 30.0


def default_knowledge_dir(environ: Mapping[str, str] | None = None) -> Path:
    environ = os.environ if environ is None else environ
    return Path(environ.get(ENV_KNOWLEDGE_DIR) or DEFAULT_KNOWLEDGE_DIR)


@dataclass(slots=True)
class SeedConfig:
    supabase_url: str
    service_key: str
    knowledge_dir: Path
    user_token: str | None = None
    dry_run: bool = False
    max_attempts: int = MAX_ATTEMPTS
    retry_base_delay: float = RETRY_BASE_DELAY
    inter_request_delay: float = INTER_REQUEST_DELAY
    request_timeout: float = REQUEST_TIMEOUT

    def __post_init__(self) -> None:
        self.supabase_url = self.supabase_url.rstrip("/")
        self.knowledge_dir = Path(self.knowledge_dir)

    @classmethod
    def from_env(
        cls,
        knowledge_dir: Path | None = None,
        *,
        dry_run: bool = False,
        environ: Mapping[str, str] | None = None,
        env_file: Path | None = None,
    ) -> "SeedConfig":
        """Build a config from environment variables.

        When ``environ`` is not given, variables from ``env_file`` (default
        ``./.env``) are loaded into the process environment first. Variables
        already set in the environment take precedence over the file.

        Raises:
            ConfigError: if ``SUPABASE_URL`` or ``SUPABASE_SERVICE_ROLE_KEY``
                is unset or empty.
        """
        if environ is None:
            load_dotenv(env_file or Path.cwd() / ENV_FILE)
            environ = os.environ
        for name in (ENV_SUPABASE_URL, ENV_SERVICE_KEY):
            if not environ.get(name):
                raise ConfigError(f"{name} environment variable is required")

        return cls(
            supabase_url=environ[ENV_SUPABASE_URL],
            service_key=environ[ENV_SERVICE_KEY],
            knowledge_dir=knowledge_dir or default_knowledge_dir(environ),
            user_token=environ.get(ENV_USER_TOKEN) or None,
            dry_run=dry_run,
        )
