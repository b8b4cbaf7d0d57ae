"""Shared pytest fixtures for vault-publisher tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from vault_publisher.config import Config
from vault_publisher.config_schema import PublishConfig
from vault_publisher.core.client import (
    RAW_CONTENT_URL,
    RemoteConflictError,
    RemoteError,
)
from vault_publisher.publish.engine import PublishEngine
from vault_publisher.publish.ledger import LedgerStore
from vault_publisher.validators import validate_remote_path
from vault_publisher.vault import Vault


def _make_config(**overrides: Any) -> Config:
    defaults = {
        "token": "ghp_test",
        "owner": "octocat",
        "repo": "garden",
        "api_url": "https://api.github.com",
        "branch": None,
        "debug": False,
    }
    defaults.update(overrides)
    return Config(**defaults)


class FakeGitHubClient:
    """In-memory replacement for ``GitHubClient``.

    Files are kept in ``files`` as ``{path: (sha, base64_content)}``; every
    call is appended to ``calls`` as ``(method, path)``.  Paths are checked
    with ``validate_remote_path`` like the real client does.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or _make_config()
        self.files: dict[str, tuple[str, str]] = {}
        self.calls: list[tuple[str, str]] = []
        self.messages: list[str] = []
        self.fail_on: dict[tuple[str, str], Exception] = {}
        self._counter = 0

    def _maybe_fail(self, method: str, path: str) -> None:
        valid, reason = validate_remote_path(path)
        if not valid:
            raise ValueError(reason)
        error = self.fail_on.get((method, path))
        if error is not None:
            raise error

    def _next_sha(self) -> str:
        self._counter += 1
        return f"sha{self._counter}"

    def validate_connection(self) -> str:
        self.calls.append(("GET", ""))
        return f"{self.config.owner}/{self.config.repo}"

    def get_existing(self, path: str) -> str | None:
        self.calls.append(("GET", path))
        self._maybe_fail("GET", path)
        entry = self.files.get(path)
        return entry[0] if entry else None

    def create_or_update(
        self,
        path: str,
        content_base64: str,
        message: str,
        sha: str | None = None,
    ) -> dict:
        self.calls.append(("PUT", path))
        self.messages.append(message)
        self._maybe_fail("PUT", path)
        existing = self.files.get(path)
        if existing is not None and existing[0] != sha:
            raise RemoteConflictError(
                f"{path} does not match {sha}", 409
            )
        new_sha = self._next_sha()
        self.files[path] = (new_sha, content_base64)
        return {"content": {"path": path, "sha": new_sha}}

    def delete(self, path: str, sha: str, message: str) -> dict:
        self.calls.append(("DELETE", path))
        self.messages.append(message)
        self._maybe_fail("DELETE", path)
        existing = self.files.get(path)
        if existing is None:
            raise RemoteError("Not Found", 404)
        if existing[0] != sha:
            raise RemoteConflictError(f"{path} does not match {sha}", 409)
        del self.files[path]
        return {"commit": {"message": message}}

    def raw_url(self, path: str) -> str:
        branch = self.config.branch or "main"
        return (
            f"{RAW_CONTENT_URL}/{self.config.owner}/{self.config.repo}/"
            f"{branch}/{path}"
        )

    def writes(self) -> list[tuple[str, str]]:
        """Calls that changed the remote."""
        return [c for c in self.calls if c[0] in ("PUT", "DELETE")]


@pytest.fixture
def mock_config() -> Config:
    """A valid connection Config."""
    return _make_config()


@pytest.fixture
def fake_client(mock_config) -> FakeGitHubClient:
    return FakeGitHubClient(mock_config)


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def write_note(vault_dir: Path) -> Callable[..., str]:
    """Factory: write a file into the vault and return its vault path."""

    def _write(path: str, body: str = "", **frontmatter: Any) -> str:
        target = vault_dir / path
        target.parent.mkdir(parents=True, exist_ok=True)
        if frontmatter:
            lines = ["---"]
            for key, value in frontmatter.items():
                if isinstance(value, bool):
                    value = "true" if value else "false"
                lines.append(f"{key}: {value}")
            lines.append("---")
            body = "\n".join(lines) + "\n" + body
        target.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_engine(
    vault_dir: Path, fake_client: FakeGitHubClient
) -> Callable[..., PublishEngine]:
    """Factory: build a PublishEngine over ``vault_dir`` and ``fake_client``."""

    def _make(**settings: Any) -> PublishEngine:
        publish_settings = PublishConfig(**settings)
        vault = Vault(vault_dir, ignore=(publish_settings.state_dir,))
        ledger = LedgerStore(vault_dir / publish_settings.state_dir)
        return PublishEngine(
            fake_client,  # type: ignore[arg-type]
            publish_settings,
            vault,
            ledger,
        )

    return _make
