"""Tests for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from kbseed.cli import _setup_logging, app
from kbseed.models import SeedError, SeedResult


runner = CliRunner()

ENV = {
    "SUPABASE_URL": "http://localhost:54321",
    "SUPABASE_SERVICE_ROLE_KEY": "test-key",
    "SUPABASE_USER_TOKEN": None,
    "KBSEED_KNOWLEDGE_DIR": None,
}

DOC = """---
title: "Zones"
category: "intensity"
tags: ["zones"]
sport: "running"
difficulty: "intermediate"
source_id: "intensity/zones"
---

## Zone 1

Easy.

## Zone 2

Aerobic.
"""


@pytest.fixture
def knowledge_dir(tmp_path: Path) -> Path:
    root = tmp_path / "knowledge"
    (root / "intensity").mkdir(parents=True)
    (root / "intensity" / "zones.md").write_text(DOC, encoding="utf-8")
    (root / "README.md").write_text("# Knowledge\n", encoding="utf-8")
    return root


class TestSetupLogging:
    """Tests for _setup_logging helper."""

    def test_setup_logging_verbose(self) -> None:
        """Verbose mode sets DEBUG level."""
        with patch("kbseed.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=True)
            mock_config.assert_called_once()
            assert mock_config.call_args[1]["level"] == logging.DEBUG

    def test_setup_logging_normal(self) -> None:
        """Normal mode sets INFO level."""
        with patch("kbseed.cli.logging.basicConfig") as mock_config:
            _setup_logging(verbose=False)
            assert mock_config.call_args[1]["level"] == logging.INFO


class TestSeedCommand:
    """Tests for the seed command."""

    @pytest.mark.parametrize("name", ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"])
    def test_missing_env(self, name: str, knowledge_dir: Path) -> None:
        """Exits 1 before processing when a required variable is unset."""
        with patch("kbseed.cli.SeedOrchestrator") as mock_orchestrator:
            result = runner.invoke(
                app, ["--knowledge-dir", str(knowledge_dir)], env={**ENV, name: None}
            )

        assert result.exit_code == 1
        assert f"{name} environment variable is required" in result.stdout
        mock_orchestrator.assert_not_called()

    def test_missing_directory(self, tmp_path: Path) -> None:
        """Exits 1 when the knowledge directory does not exist."""
        missing = tmp_path / "nope"
        result = runner.invoke(app, ["--knowledge-dir", str(missing)], env=ENV)

        assert result.exit_code == 1
        assert "Knowledge directory not found" in result.stdout

    def test_dry_run(self, knowledge_dir: Path) -> None:
        """Dry run reports counts and exits cleanly."""
        result = runner.invoke(
            app, ["--dry-run", "--knowledge-dir", str(knowledge_dir)], env=ENV
        )

        assert result.exit_code == 0
        assert "=== DRY RUN ===" in result.stdout
        assert "Documents found: 1" in result.stdout
        assert "Chunks generated: 2" in result.stdout
        assert "Embeddings created: 0" in result.stdout

    def test_credentials_from_dotenv(
        self, knowledge_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A .env file in the working directory supplies the credentials."""
        (tmp_path / ".env").write_text(
            "SUPABASE_URL=http://dotenv-host\nSUPABASE_SERVICE_ROLE_KEY=dotenv-key\n",
            encoding="utf-8",
        )
        monkeypatch.chdir(tmp_path)
        env = {**ENV, "SUPABASE_URL": None, "SUPABASE_SERVICE_ROLE_KEY": None}

        result = runner.invoke(app, ["--dry-run", "--knowledge-dir", str(knowledge_dir)], env=env)

        assert result.exit_code == 0
        assert "Supabase URL: http://dotenv-host" in result.stdout
        assert "Chunks generated: 2" in result.stdout

    def test_knowledge_dir_from_env(self, knowledge_dir: Path) -> None:
        result = runner.invoke(
            app, ["--dry-run"], env={**ENV, "KBSEED_KNOWLEDGE_DIR": str(knowledge_dir)}
        )

        assert result.exit_code == 0
        assert "Chunks generated: 2" in result.stdout

    @patch("kbseed.cli.SeedOrchestrator")
    def test_clean_run(self, mock_orchestrator_class: MagicMock, knowledge_dir: Path) -> None:
        """Exits 0 and closes the store after a clean run."""
        orchestrator = MagicMock()
        orchestrator.run.return_value = SeedResult(
            documents_found=1, chunks_generated=2, embeddings_created=2
        )
        mock_orchestrator_class.return_value = orchestrator

        result = runner.invoke(app, ["--knowledge-dir", str(knowledge_dir)], env=ENV)

        assert result.exit_code == 0
        assert "=== Seeding Knowledge Base ===" in result.stdout
        assert "Embeddings created: 2" in result.stdout
        assert "Errors" not in result.stdout
        orchestrator.store.close.assert_called_once()
        config = mock_orchestrator_class.call_args.args[0]
        assert config.dry_run is False
        assert config.knowledge_dir == knowledge_dir

    @patch("kbseed.cli.SeedOrchestrator")
    def test_errors_exit_nonzero(
        self, mock_orchestrator_class: MagicMock, knowledge_dir: Path
    ) -> None:
        """Itemizes every error and exits 1."""
        orchestrator = MagicMock()
        orchestrator.run.return_value = SeedResult(
            documents_found=2,
            chunks_generated=3,
            embeddings_created=1,
            errors=(
                SeedError("intensity/zones.md", 1, "generate-embedding failed: 400 bad"),
                SeedError("broken.md", -1, "Failed to parse front-matter"),
            ),
        )
        mock_orchestrator_class.return_value = orchestrator

        result = runner.invoke(app, ["--knowledge-dir", str(knowledge_dir)], env=ENV)

        assert result.exit_code == 1
        assert "Errors: 2" in result.stdout
        assert "  - intensity/zones.md [chunk 1]: generate-embedding failed: 400 bad" in result.stdout
        assert "  - broken.md [chunk -1]: Failed to parse front-matter" in result.stdout
