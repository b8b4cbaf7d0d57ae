"""Publisher session: the object that owns settings, client, vault and ledger.

Both host surfaces (MCP server and CLI) build exactly one session and pass
it to every operation.  Nothing in the publishing code reads module-level
settings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .config import Config, load_config
from .config_loader import load_config_layers, merge_layers
from .config_schema import PublishConfig, UnifiedConfig, build_config
from .core.client import GitHubClient
from .publish.engine import PublishEngine
from .publish.ledger import LedgerStore
from .vault import Vault

logger = logging.getLogger(__name__)


@dataclass
class PublisherSession:
    """Everything a publish operation needs.

    Attributes:
        config: Validated connection settings.
        settings: Publish section of the configuration.
        client: GitHub client bound to ``config``.
        vault: The local vault.
        ledger: Ledger store under ``<vault>/<state_dir>``.
        engine: Publish engine wired to the above.
        sources: Human-readable list of configuration sources used.
    """

    config: Config
    settings: PublishConfig
    client: GitHubClient
    vault: Vault
    ledger: LedgerStore
    engine: PublishEngine
    sources: list[str] = field(default_factory=list)


def ledger_for(settings: PublishConfig, vault_root: Path) -> LedgerStore:
    """Ledger store for *settings*; a relative ``state_dir`` sits in the vault."""
    state_dir = Path(settings.state_dir).expanduser()
    if not state_dir.is_absolute():
        state_dir = vault_root / state_dir
    return LedgerStore(state_dir)


def build_session(
    config: Config,
    settings: PublishConfig,
    client: GitHubClient | None = None,
    vault_root: Path | None = None,
) -> PublisherSession:
    """Wire a session from already-resolved settings.

    Args:
        config: Validated connection settings.
        settings: Publish settings.
        client: Client to use; a ``GitHubClient`` is created when omitted.
        vault_root: Overrides ``settings.vault``.

    Returns:
        A ready ``PublisherSession``.
    """
    root = (vault_root or Path(settings.vault)).expanduser()

    ignore: tuple[str, ...] = ()
    if not Path(settings.state_dir).is_absolute():
        ignore = (Path(settings.state_dir).as_posix(),)

    vault = Vault(root, ignore=ignore)
    ledger = ledger_for(settings, root)
    client = client or GitHubClient(config)
    engine = PublishEngine(client, settings, vault, ledger)
    logger.debug("Vault %s, ledger %s", vault.root, ledger.path)
    return PublisherSession(
        config=config,
        settings=settings,
        client=client,
        vault=vault,
        ledger=ledger,
        engine=engine,
    )


def load_unified_config() -> tuple[UnifiedConfig, Path | None]:
    """Load YAML configuration; returns the config and the most specific file."""
    layers = load_config_layers()
    if not layers:
        return UnifiedConfig(), None
    return build_config(merge_layers(layers)), layers[0].path


def load_session(
    overrides: dict[str, Any] | None = None,
) -> PublisherSession:
    """Build a session from every configuration source.

    Precedence: CLI overrides > environment (``.env`` loaded first) >
    YAML config > defaults.

    Args:
        overrides: CLI values.  Connection keys are ``token``, ``owner``,
            ``repo``, ``api_url``, ``branch``, ``debug``; ``vault`` overrides
            the vault root.

    Raises:
        ValueError: If required connection settings are missing or invalid.
    """
    overrides = overrides or {}

    # .env before YAML so ${VAR} interpolation sees its values
    load_dotenv()

    unified, config_path = load_unified_config()
    sources: list[str] = []
    if config_path is not None:
        sources.append(f"config file: {config_path}")

    yaml_fallbacks = {
        k: v for k, v in unified.github.model_dump().items() if v is not None
    }
    config = load_config(
        token=overrides.get("token"),
        owner=overrides.get("owner"),
        repo=overrides.get("repo"),
        api_url=overrides.get("api_url"),
        branch=overrides.get("branch"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )

    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")

    vault_root = overrides.get("vault")
    session = build_session(
        config,
        unified.publish,
        vault_root=Path(vault_root) if vault_root else None,
    )
    session.sources = sources
    logger.info("Configuration loaded from: %s", ", ".join(sources))
    return session
