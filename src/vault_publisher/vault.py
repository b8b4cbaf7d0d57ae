"""Local vault access: document lookup, front matter, encoding-aware reads.

Documents are addressed by POSIX paths relative to the vault root
(``Notes/Idea.md``).  ``Vault.lookup()`` returns a tagged result --
``Found`` or ``NotFound`` -- so callers never probe the filesystem
themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import yaml
from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSION = "md"

# Folders the host application keeps its own state in
_HIDDEN_PREFIXES = (".",)


# =============================================================================
# Documents and lookup results
# =============================================================================


@dataclass(frozen=True, slots=True)
class Document:
    """A file in the vault.

    Attributes:
        path: POSIX path relative to the vault root.
    """

    path: str

    @property
    def name(self) -> str:
        """File name with extension (``Idea.md``)."""
        return PurePosixPath(self.path).name

    @property
    def basename(self) -> str:
        """File name without extension (``Idea``)."""
        return PurePosixPath(self.path).stem

    @property
    def extension(self) -> str:
        """Extension without the dot, lowercased (``md``)."""
        return PurePosixPath(self.path).suffix.lstrip(".").lower()

    @property
    def folder(self) -> str:
        """Parent folder path, ``""`` for documents at the vault root."""
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent


@dataclass(frozen=True, slots=True)
class Found:
    document: Document


@dataclass(frozen=True, slots=True)
class NotFound:
    path: str


LookupResult = Found | NotFound


# =============================================================================
# Reading
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def parse_frontmatter(content: str) -> dict:
    """Return the YAML front matter at the top of *content* as a dict.

    The block must open on the very first line with ``---`` and close with
    a line holding ``---`` (or ``...``).  Missing, empty, malformed or
    non-mapping front matter yields ``{}``.
    """
    text = content.lstrip("\ufeff")
    lines = text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}

    for idx in range(1, len(lines)):
        if lines[idx].strip() in ("---", "..."):
            block = "\n".join(lines[1:idx])
            break
    else:
        return {}

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        logger.warning("Ignoring malformed front matter: %s", exc)
        return {}

    return data if isinstance(data, dict) else {}


# =============================================================================
# Vault
# =============================================================================


class Vault:
    """Read-only view of a vault directory.

    Args:
        root: Vault root directory.
        ignore: Extra top-level folders to skip when enumerating documents
            (the ledger directory, for instance).
    """

    def __init__(self, root: Path, ignore: tuple[str, ...] = ()) -> None:
        self.root = root.resolve()
        self._ignore = tuple(p.strip("/") for p in ignore if p.strip("/"))

    def _resolve(self, path: str) -> Path | None:
        """Map a vault path to a filesystem path, refusing escapes."""
        if not path or path.startswith("/"):
            return None
        candidate = (self.root / path).resolve()
        if not candidate.is_relative_to(self.root):
            return None
        return candidate

    def lookup(self, path: str) -> LookupResult:
        """Find the file at *path* (relative to the vault root)."""
        normalised = str(PurePosixPath(path)) if path else path
        resolved = self._resolve(normalised)
        if resolved is None or not resolved.is_file():
            return NotFound(path)
        return Found(Document(normalised))

    def read_text(self, document: Document) -> str:
        """Return the decoded text of *document*."""
        content, _ = read_file_with_encoding(self.root / document.path)
        return content

    def read_binary(self, document: Document) -> bytes:
        """Return the raw bytes of *document*."""
        return (self.root / document.path).read_bytes()

    def frontmatter(self, document: Document) -> dict:
        """Return the parsed front matter of a Markdown document."""
        if document.extension != MARKDOWN_EXTENSION:
            return {}
        return parse_frontmatter(self.read_text(document))

    def markdown_documents(self) -> list[Document]:
        """Every Markdown document in the vault, sorted by path.

        Hidden folders (``.obsidian``, ``.git``, ...) and ignored folders
        are skipped.
        """
        if not self.root.is_dir():
            return []

        documents: list[Document] = []
        for path in sorted(self.root.rglob(f"*.{MARKDOWN_EXTENSION}")):
            if not path.is_file():
                continue
            rel = path.relative_to(self.root).as_posix()
            parts = rel.split("/")
            if any(part.startswith(_HIDDEN_PREFIXES) for part in parts[:-1]):
                continue
            if any(
                rel == prefix or rel.startswith(prefix + "/")
                for prefix in self._ignore
            ):
                continue
            documents.append(Document(rel))
        return documents
