"""GitHub connection configuration.

Reads connection settings from CLI args, environment variables, .env
files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    GITHUB_TOKEN: Personal access token with contents:write (required)
    GITHUB_OWNER: Repository owner, user or organisation (required)
    GITHUB_REPO: Repository name (required)
    GITHUB_API_URL: REST API base URL (optional, default: https://api.github.com)
    GITHUB_BRANCH: Target branch (optional, default: repository default branch)
    VAULT_PUBLISHER_DEBUG: Enable debug logging (optional, default: false)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


@dataclass
class Config:
    token: str
    owner: str
    repo: str
    api_url: str = DEFAULT_API_URL
    branch: str | None = None
    debug: bool = False


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the API URL is malformed or credentials are empty.
    """
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid GitHub API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid GitHub API URL '{config.api_url}': URL must include a hostname"
        )

    config.api_url = config.api_url.removesuffix("/")

    if not config.token.strip():
        raise ValueError(
            "GitHub token cannot be empty. Set GITHUB_TOKEN environment variable."
        )

    if not config.owner.strip():
        raise ValueError(
            "GitHub owner cannot be empty. Set GITHUB_OWNER environment variable."
        )

    if not config.repo.strip():
        raise ValueError(
            "GitHub repository cannot be empty. Set GITHUB_REPO environment variable."
        )

    if config.api_url.startswith("http://"):
        logger.warning(
            "WARNING: GitHub API URL is not using TLS (%s). Use only for development.",
            config.api_url,
        )


def load_config(
    token: str | None = None,
    owner: str | None = None,
    repo: str | None = None,
    api_url: str | None = None,
    branch: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        token: Override access token.
        owner: Override repository owner.
        repo: Override repository name.
        api_url: Override REST API base URL.
        branch: Override target branch.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML ``github`` section.
            Used as fallback when CLI arg and env var are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If token, owner or repo is missing after checking
            all sources.
    """
    fb = yaml_fallbacks or {}

    # --- Required string fields: CLI > env > YAML > error ---

    final_token = token or os.getenv("GITHUB_TOKEN") or fb.get("token")
    if not final_token:
        raise ValueError(
            "GitHub token not found. Set GITHUB_TOKEN environment variable, "
            "pass --token CLI argument, or add 'token' to config.yml."
        )

    final_owner = owner or os.getenv("GITHUB_OWNER") or fb.get("owner")
    if not final_owner:
        raise ValueError(
            "GitHub owner not found. Set GITHUB_OWNER environment variable, "
            "pass --owner CLI argument, or add 'owner' to config.yml."
        )

    final_repo = repo or os.getenv("GITHUB_REPO") or fb.get("repo")
    if not final_repo:
        raise ValueError(
            "GitHub repository not found. Set GITHUB_REPO environment variable, "
            "pass --repo CLI argument, or add 'repo' to config.yml."
        )

    # --- Optional string fields: CLI > env > YAML > default ---

    final_api_url = (
        api_url
        or os.getenv("GITHUB_API_URL")
        or fb.get("api_url")
        or DEFAULT_API_URL
    )
    final_branch = (
        branch or os.getenv("GITHUB_BRANCH") or fb.get("branch") or None
    )

    # --- Boolean fields: CLI > env > YAML > default ---

    def get_bool_env(key: str) -> bool | None:
        """Return True/False from env var, or None if unset."""
        val = os.getenv(key)
        if val is None:
            return None
        return val.lower() in ("true", "1", "yes", "on")

    if debug:
        final_debug = True
    else:
        env_debug = get_bool_env("VAULT_PUBLISHER_DEBUG")
        if env_debug is not None:
            final_debug = env_debug
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        token=final_token.strip(),
        owner=final_owner.strip(),
        repo=final_repo.strip(),
        api_url=final_api_url,
        branch=final_branch.strip() if final_branch else None,
        debug=final_debug,
    )

    validate_config(config)

    return config
