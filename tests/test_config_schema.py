"""Tests for the unified config schema and adapter functions.

Tests the Pydantic models in config_schema.py (UnifiedConfig, GitHubConfig,
PublishConfig, LoggingConfig), the build_config() factory, and the
to_legacy_config() adapter.
"""

import pytest
from pydantic import ValidationError

from vault_publisher.config_schema import (
    GitHubConfig,
    LoggingConfig,
    PublishConfig,
    UnifiedConfig,
    build_config,
    to_legacy_config,
)

# ---------------------------------------------------------------------------
# UnifiedConfig tests
# ---------------------------------------------------------------------------


class TestUnifiedConfig:
    """Tests for the top-level UnifiedConfig model."""

    def test_empty_produces_valid_defaults(self):
        config = UnifiedConfig()
        assert config.github.token is None
        assert config.github.debug is False
        assert config.publish.publish_root == "notes"
        assert config.logging.level == "INFO"

    def test_unknown_sections_ignored(self):
        raw: dict[str, object] = {
            "github": {"owner": "octocat"},
            "future_section": {"key": "value"},
        }
        config = UnifiedConfig(**raw)  # type: ignore[arg-type]
        assert config.github.owner == "octocat"
        assert not hasattr(config, "future_section")

    def test_frozen_model_prevents_mutation(self):
        config = UnifiedConfig()
        with pytest.raises(ValidationError):
            config.logging = LoggingConfig(level="DEBUG")  # type: ignore[misc]


# ---------------------------------------------------------------------------
# GitHubConfig tests
# ---------------------------------------------------------------------------


class TestGitHubConfig:
    def test_all_fields_optional(self):
        config = GitHubConfig()
        assert (config.token, config.owner, config.repo) == (None, None, None)
        assert config.api_url is None
        assert config.branch is None

    def test_frozen_model(self):
        config = GitHubConfig(owner="octocat")
        with pytest.raises(ValidationError):
            config.owner = "other"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# PublishConfig tests
# ---------------------------------------------------------------------------


class TestPublishConfig:
    """Defaults and normalisation of the publishing settings."""

    def test_defaults(self):
        config = PublishConfig()
        assert config.vault == "."
        assert config.state_dir == ".vault_publisher"
        assert config.publish_root == "notes"
        assert config.exclude == []
        assert config.marker_key == "share"
        assert config.track_history is True
        assert config.slugify is False
        assert config.language_key == "lang"
        assert config.images_root == "assets/images"
        assert config.process_images is True
        assert config.preserve_image_folders is False
        assert config.ambiguous_renames == "first"

    def test_exclude_is_normalised(self):
        config = PublishConfig(exclude=[" /Private/ ", "", "  ", "Templates"])
        assert config.exclude == ["Private", "Templates"]

    def test_images_root_is_stripped(self):
        assert PublishConfig(images_root="/media/").images_root == "media"

    def test_images_root_cannot_be_empty(self):
        with pytest.raises(ValidationError, match="images_root"):
            PublishConfig(images_root=" / ")

    @pytest.mark.parametrize("field", ["marker_key", "language_key"])
    def test_keys_cannot_be_blank(self, field):
        with pytest.raises(ValidationError):
            PublishConfig(**{field: "  "})

    def test_keys_are_stripped(self):
        assert PublishConfig(marker_key=" publish ").marker_key == "publish"

    def test_ambiguous_renames_accepts_skip(self):
        assert PublishConfig(ambiguous_renames="skip").ambiguous_renames == "skip"

    def test_ambiguous_renames_rejects_other_values(self):
        with pytest.raises(ValidationError):
            PublishConfig(ambiguous_renames="newest")  # type: ignore[arg-type]

    def test_frozen_model(self):
        config = PublishConfig()
        with pytest.raises(ValidationError):
            config.slugify = True  # type: ignore[misc]


# ---------------------------------------------------------------------------
# LoggingConfig tests
# ---------------------------------------------------------------------------


class TestLoggingConfig:
    def test_defaults(self):
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file is None

    def test_custom_values(self):
        config = LoggingConfig(level="DEBUG", file="/tmp/vp.log")
        assert config.level == "DEBUG"
        assert config.file == "/tmp/vp.log"


# ---------------------------------------------------------------------------
# to_legacy_config() adapter tests
# ---------------------------------------------------------------------------


class TestToLegacyConfig:
    """Tests for the to_legacy_config() adapter function."""

    def test_unified_values_carried_over(self):
        unified = UnifiedConfig(
            github=GitHubConfig(
                token="t",
                owner="o",
                repo="r",
                api_url="https://ghe.example.com/api/v3",
                branch="pages",
                debug=True,
            )
        )

        legacy = to_legacy_config(unified)

        assert legacy.token == "t"
        assert legacy.owner == "o"
        assert legacy.repo == "r"
        assert legacy.api_url == "https://ghe.example.com/api/v3"
        assert legacy.branch == "pages"
        assert legacy.debug is True

    def test_cli_overrides_win(self):
        unified = UnifiedConfig(github=GitHubConfig(owner="o", repo="r"))

        legacy = to_legacy_config(
            unified, cli_overrides={"repo": "cli-repo", "branch": "dev"}
        )

        assert legacy.owner == "o"
        assert legacy.repo == "cli-repo"
        assert legacy.branch == "dev"

    def test_zero_config(self):
        legacy = to_legacy_config(UnifiedConfig())

        assert legacy.token == ""
        assert legacy.owner == ""
        assert legacy.api_url == "https://api.github.com"
        assert legacy.branch is None
        assert legacy.debug is False


# ---------------------------------------------------------------------------
# build_config() factory tests
# ---------------------------------------------------------------------------


class TestBuildConfig:
    def test_empty_dict_returns_defaults(self):
        assert build_config({}) == UnifiedConfig()

    def test_partial_sections_fill_defaults(self):
        config = build_config(
            {"publish": {"slugify": True, "exclude": ["Private"]}}
        )

        assert config.publish.slugify is True
        assert config.publish.exclude == ["Private"]
        assert config.publish.publish_root == "notes"
        assert config.github.owner is None

    def test_invalid_section_raises(self):
        with pytest.raises(ValidationError):
            build_config({"publish": {"ambiguous_renames": 3}})
