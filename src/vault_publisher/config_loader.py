"""
Configuration file discovery and loading for vault_publisher.

Each discovered YAML file becomes a ``ConfigLayer``.  Loading a layer
expands ``!include`` directives and ``${VAR}`` references, checks that the
known sections are mappings, and anchors a relative ``publish.vault`` to
the directory the file belongs to.  Layers are then merged so the most
specific file wins per top-level section.

Usage:
    from vault_publisher.config_loader import load_hierarchical_config

    raw = load_hierarchical_config()
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "VAULT_PUBLISHER_CONFIG"
PROJECT_DIR_NAME = ".vault_publisher"
GLOBAL_CONFIG_PATH = Path("~/.config/vault_publisher/config.yml")

SECTIONS = ("github", "publish", "logging")

_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+?)(?::-(?P<default>.*?))?\}")


@dataclass(frozen=True)
class ConfigLayer:
    """One loaded config file.

    Attributes:
        path: The file the data came from.
        data: Top-level sections after includes, interpolation and
            path anchoring.
    """

    path: Path
    data: dict[str, Any]


# ---------------------------------------------------------------------------
# ${VAR} references
# ---------------------------------------------------------------------------


def interpolate_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in *value*.

    An unset or empty variable expands to its default, or to ``""`` when
    there is none.  An unterminated ``${`` is kept as written.
    """
    return _ENV_REF.sub(
        lambda m: os.environ.get(m["name"]) or (m["default"] or ""), value
    )


def _interpolate_tree(node: Any) -> Any:
    if isinstance(node, str):
        return interpolate_env_vars(node)
    if isinstance(node, dict):
        return {key: _interpolate_tree(item) for key, item in node.items()}
    if isinstance(node, list):
        return [_interpolate_tree(item) for item in node]
    return node


# ---------------------------------------------------------------------------
# YAML with !include
# ---------------------------------------------------------------------------


class _IncludeLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!include``.

    ``chain`` holds the files currently being loaded, outermost first.
    """

    chain: tuple[Path, ...] = ()


def _construct_include(loader: _IncludeLoader, node: yaml.ScalarNode) -> Any:
    current = loader.chain[-1]
    target = Path(loader.construct_scalar(node)).expanduser()
    if not target.is_absolute():
        target = current.parent / target
    target = target.resolve()

    if target in loader.chain:
        raise ValueError(f"Circular include: {current} includes {target}")
    if not target.is_file():
        raise FileNotFoundError(
            f"Include file not found: {target} (referenced from {current})"
        )
    return load_yaml_file(target, _chain=loader.chain)


_IncludeLoader.add_constructor("!include", _construct_include)


def load_yaml_file(path: Path, *, _chain: tuple[Path, ...] = ()) -> Any:
    """Parse *path*, following ``!include`` relative to the including file."""
    path = path.resolve()
    with open(path, encoding="utf-8") as fh:
        loader = _IncludeLoader(fh)
        loader.chain = (*_chain, path)
        try:
            return loader.get_single_data()
        finally:
            loader.dispose()


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def config_search_paths() -> list[Path]:
    """Candidate config files, most specific first.

    1. ``$VAULT_PUBLISHER_CONFIG``
    2. ``./.vault_publisher/config.yml`` and ``config.yaml``
    3. ``~/.config/vault_publisher/config.yml``
    """
    paths: list[Path] = []
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        paths.append(Path(explicit).expanduser().resolve())
    project_dir = Path.cwd() / PROJECT_DIR_NAME
    paths += [project_dir / "config.yml", project_dir / "config.yaml"]
    paths.append(GLOBAL_CONFIG_PATH.expanduser())
    return paths


def discover_config_files() -> list[Path]:
    """Existing config files, most specific first."""
    return [p for p in config_search_paths() if p.is_file()]


# ---------------------------------------------------------------------------
# Layers
# ---------------------------------------------------------------------------


def anchor_dir(path: Path) -> Path:
    """Directory that relative paths in *path* are resolved against.

    A file inside a ``.vault_publisher`` folder describes the folder that
    contains it, so its anchor is one level up.
    """
    parent = path.parent
    if parent.name == PROJECT_DIR_NAME:
        return parent.parent
    return parent


def _check_sections(data: dict[str, Any], path: Path) -> None:
    for key, value in data.items():
        if key not in SECTIONS:
            logger.warning("Unknown config section %r in %s", key, path)
        elif not isinstance(value, dict):
            raise ValueError(
                f"Config section '{key}' in {path} must be a mapping, "
                f"got {type(value).__name__}"
            )


def _anchor_vault(data: dict[str, Any], path: Path) -> dict[str, Any]:
    publish = data.get("publish")
    if not publish or not isinstance(publish.get("vault"), str):
        return data
    vault = Path(publish["vault"]).expanduser()
    if vault.is_absolute():
        return data
    anchored = anchor_dir(path) / vault
    logger.debug("Vault %s from %s resolves to %s", vault, path, anchored)
    return {**data, "publish": {**publish, "vault": str(anchored)}}


def load_layer(path: Path) -> ConfigLayer | None:
    """Load one config file; ``None`` when it holds no mapping.

    Raises:
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If a known section is not a mapping, or on a
            circular ``!include``.
        FileNotFoundError: If an ``!include`` target is missing.
    """
    logger.debug("Loading config: %s", path)
    data = load_yaml_file(path)
    if data is None:
        return None
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring config file %s: top level is a %s, not a mapping",
            path,
            type(data).__name__,
        )
        return None

    # An empty section header means defaults
    data = {k: v for k, v in _interpolate_tree(data).items() if v is not None}
    _check_sections(data, path)
    return ConfigLayer(path=path, data=_anchor_vault(data, path))


def load_config_layers() -> list[ConfigLayer]:
    """Load every discovered config file, most specific first."""
    layers = []
    for path in discover_config_files():
        layer = load_layer(path)
        if layer is not None:
            layers.append(layer)
    return layers


def merge_layers(layers: list[ConfigLayer]) -> dict[str, Any]:
    """Merge *layers* (most specific first); whole sections are replaced."""
    merged: dict[str, Any] = {}
    for layer in reversed(layers):
        merged.update(layer.data)
    return merged


def load_hierarchical_config() -> dict[str, Any]:
    """Merged configuration from all discovered files, ``{}`` when none."""
    layers = load_config_layers()
    if not layers:
        logger.debug("No config files found, using defaults")
    return merge_layers(layers)


# ---------------------------------------------------------------------------
# Starter file
# ---------------------------------------------------------------------------

_STARTER_CONFIG = """\
# vault-publisher configuration
#
# Connection settings can also be set via environment variables:
#   GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO, GITHUB_API_URL, GITHUB_BRANCH
#
# github:
#   token: ${GITHUB_TOKEN}
#   owner: octocat
#   repo: notes
#   branch: main
#
# publish:
#   vault: .              # relative to the folder holding .vault_publisher/
#   publish_root: notes
#   exclude:
#     - Private
#     - Templates
#   marker_key: share
#   track_history: true
#   slugify: false
#   language_key: lang
#   images_root: assets/images
#   process_images: true
#   preserve_image_folders: false
#   ambiguous_renames: first
#
# logging:
#   level: INFO
#   file: null
"""


def resolve_config_path() -> Path:
    """The config file in effect, or the project default when none exists."""
    existing = discover_config_files()
    if existing:
        return existing[0]
    return Path.cwd() / PROJECT_DIR_NAME / "config.yml"


def ensure_config(target: Path | None = None) -> Path:
    """Return the config file in effect, writing a starter file if needed.

    Args:
        target: Where to write the starter file; defaults to
            ``resolve_config_path()``.
    """
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    path = target or resolve_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path
