"""Unified configuration schema for vault_publisher.

Defines Pydantic models for the unified config structure with dedicated
sections for the GitHub connection, publishing behaviour and logging.
Includes an adapter to the ``Config`` dataclass used by the client.

Usage:
    from vault_publisher.config_schema import (
        UnifiedConfig, build_config, to_legacy_config,
    )

    raw = load_hierarchical_config()
    unified = build_config(raw)
    legacy = to_legacy_config(unified, cli_overrides={"repo": "notes"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GitHubConfig(BaseModel):
    """GitHub connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    token: str | None = Field(
        default=None, description="Personal access token"
    )
    owner: str | None = Field(
        default=None, description="Repository owner"
    )
    repo: str | None = Field(default=None, description="Repository name")
    api_url: str | None = Field(
        default=None, description="REST API base URL"
    )
    branch: str | None = Field(
        default=None,
        description="Target branch (repository default when unset)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class PublishConfig(BaseModel):
    """Publishing behaviour.

    Defaults match the settings a fresh install of the note publisher
    starts with.
    """

    vault: str = Field(default=".", description="Vault root directory")
    state_dir: str = Field(
        default=".vault_publisher",
        description="Ledger directory, relative to the vault root",
    )
    publish_root: str = Field(
        default="notes",
        description="Target folder in the repository ('/' for the root)",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Vault folders that are never published",
    )
    marker_key: str = Field(
        default="share",
        description="Front-matter key that must be literally true",
    )
    track_history: bool = Field(
        default=True,
        description="Detect renamed notes and retire their old remote file",
    )
    slugify: bool = Field(
        default=False, description="Format remote file names as slugs"
    )
    language_key: str = Field(
        default="lang",
        description="Front-matter key holding a language suffix",
    )
    images_root: str = Field(
        default="assets/images",
        description="Target folder for uploaded images",
    )
    process_images: bool = Field(
        default=True,
        description="Upload local images and rewrite their links",
    )
    preserve_image_folders: bool = Field(
        default=False,
        description="Keep the vault folder of each image under images_root",
    )
    ambiguous_renames: Literal["first", "skip"] = Field(
        default="first",
        description="What to do when several missing notes share a fingerprint",
    )

    model_config = {"frozen": True}

    @field_validator("exclude")
    @classmethod
    def _strip_exclude(cls, value: list[str]) -> list[str]:
        """Normalise folder prefixes and drop blanks."""
        return [p.strip().strip("/") for p in value if p.strip().strip("/")]

    @field_validator("images_root")
    @classmethod
    def _strip_images_root(cls, value: str) -> str:
        stripped = value.strip().strip("/")
        if not stripped:
            raise ValueError("images_root cannot be empty")
        return stripped

    @field_validator("marker_key", "language_key")
    @classmethod
    def _non_blank_key(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("front-matter key cannot be empty")
        return value.strip()


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Aggregates all config sections. Every section has sensible defaults,
    so ``UnifiedConfig()`` (zero-config) is always valid.
    """

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully -- anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> Config dataclass
# ---------------------------------------------------------------------------


def to_legacy_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the ``Config`` dataclass,
    applying CLI overrides on top.

    The precedence applied here is:
        CLI override > unified config value > default

    CLI overrides dict keys: token, owner, repo, api_url, branch, debug.

    Args:
        unified: The unified config produced by ``build_config()``.
        cli_overrides: Optional dict of CLI argument values.

    Returns:
        ``Config`` dataclass instance (NOT validated -- caller should run
        ``validate_config()`` separately if needed).
    """
    from .config import DEFAULT_API_URL, Config

    overrides = cli_overrides or {}

    return Config(
        token=overrides.get("token") or unified.github.token or "",
        owner=overrides.get("owner") or unified.github.owner or "",
        repo=overrides.get("repo") or unified.github.repo or "",
        api_url=overrides.get("api_url")
        or unified.github.api_url
        or DEFAULT_API_URL,
        branch=overrides.get("branch") or unified.github.branch,
        debug=overrides.get("debug", False) or unified.github.debug,
    )
