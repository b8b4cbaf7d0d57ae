"""Tests for publisher session wiring."""

from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from vault_publisher.config_schema import PublishConfig
from vault_publisher.core.client import GitHubClient
from vault_publisher.session import build_session, ledger_for, load_session


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    for key in (
        "GITHUB_TOKEN",
        "GITHUB_OWNER",
        "GITHUB_REPO",
        "GITHUB_API_URL",
        "GITHUB_BRANCH",
        "VAULT_PUBLISHER_DEBUG",
        "VAULT_PUBLISHER_CONFIG",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    with patch("vault_publisher.session.load_dotenv"):
        yield tmp_path


class TestLedgerFor:
    def test_relative_state_dir_is_inside_vault(self, tmp_path):
        store = ledger_for(PublishConfig(), tmp_path)
        assert store.path == tmp_path / ".vault_publisher" / "ledger.json"

    def test_absolute_state_dir(self, tmp_path):
        state = tmp_path / "elsewhere"
        store = ledger_for(PublishConfig(state_dir=str(state)), tmp_path / "v")
        assert store.path == state / "ledger.json"


class TestBuildSession:
    def test_wires_engine(self, mock_config, fake_client, vault_dir):
        session = build_session(
            mock_config, PublishConfig(), client=fake_client, vault_root=vault_dir
        )

        assert session.client is fake_client
        assert session.vault.root == vault_dir.resolve()
        assert session.engine.client is fake_client
        assert session.engine.vault is session.vault
        assert session.ledger.path.parent == vault_dir / ".vault_publisher"

    def test_state_dir_is_hidden_from_vault(
        self, mock_config, fake_client, vault_dir
    ):
        (vault_dir / "state").mkdir()
        (vault_dir / "state" / "x.md").write_text("x")
        (vault_dir / "a.md").write_text("x")

        session = build_session(
            mock_config,
            PublishConfig(state_dir="state"),
            client=fake_client,
            vault_root=vault_dir,
        )

        assert [d.path for d in session.vault.markdown_documents()] == ["a.md"]

    def test_creates_github_client_when_missing(self, mock_config, vault_dir):
        session = build_session(mock_config, PublishConfig(), vault_root=vault_dir)
        assert isinstance(session.client, GitHubClient)


class TestLoadSession:
    def test_from_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
        monkeypatch.setenv("GITHUB_OWNER", "octocat")
        monkeypatch.setenv("GITHUB_REPO", "garden")

        session = load_session()

        assert session.config.repo == "garden"
        assert session.settings == PublishConfig()
        assert session.vault.root == clean_env.resolve()
        assert session.sources == ["environment variables"]

    def test_yaml_config_and_vault_override(self, clean_env, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
        config_file = clean_env / ".vault_publisher" / "config.yml"
        config_file.parent.mkdir()
        config_file.write_text(
            textwrap.dedent("""\
            github:
              owner: yaml-owner
              repo: yaml-repo
              branch: pages
            publish:
              slugify: true
              publish_root: blog
            """)
        )
        vault = clean_env / "MyVault"
        vault.mkdir()

        session = load_session({"repo": "cli-repo", "vault": str(vault)})

        assert session.config.owner == "yaml-owner"
        assert session.config.repo == "cli-repo"
        assert session.config.branch == "pages"
        assert session.settings.slugify is True
        assert session.settings.publish_root == "blog"
        assert session.vault.root == vault.resolve()
        assert session.sources[0] == f"config file: {config_file}"
        assert "CLI arguments" in session.sources

    def test_missing_credentials_raise(self, clean_env):
        with pytest.raises(ValueError, match="GitHub token not found"):
            load_session()
