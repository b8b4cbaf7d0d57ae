"""Remote path resolution for published notes.

Resolution order (each step feeds the next):

1. **Base file name** -- front-matter ``slug`` + ``.md``, else ``title`` +
   ``.md``, else the note's own file name.
2. **Slug formatting** -- optional: transliterate, lowercase, hyphenate,
   drop everything outside ``[A-Za-z0-9_-]``.
3. **Language suffix** -- optional: ``name.md`` becomes ``name.<tag>.md``.
4. **Publish root** -- ``root/name.md`` unless the root is empty or ``/``.

Only pristine names may be passed in.  Feeding a resolved path back
through ``resolve_target_path`` would add the language suffix twice.
"""

from __future__ import annotations

import re
from typing import Any

from vault_publisher.config_schema import PublishConfig
from vault_publisher.vault import Document

MARKDOWN_SUFFIX = ".md"
ROOT_SENTINEL = "/"

_TRANSLITERATION: dict[str, str] = {
    "ç": "c", "Ç": "C",
    "ğ": "g", "Ğ": "G",
    "ı": "i", "İ": "I",
    "ö": "o", "Ö": "O",
    "ş": "s", "Ş": "S",
    "ü": "u", "Ü": "U",
    "â": "a", "Â": "A",
    "î": "i", "Î": "I",
    "û": "u", "Û": "U",
    "é": "e", "É": "E",
    "è": "e", "È": "E",
    "à": "a", "À": "A",
    "ñ": "n", "Ñ": "N",
    "ß": "ss",
    "å": "a", "Å": "A",
    "ä": "a", "Ä": "A",
    "æ": "ae", "Æ": "AE",
}
_TRANSLITERATION_TABLE = str.maketrans(_TRANSLITERATION)

_WHITESPACE_RUN = re.compile(r"\s+")
_NON_SLUG_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def transliterate(text: str) -> str:
    """Replace accented Latin letters with their closest ASCII spelling.

    Uses a fixed table rather than Unicode normalisation, so ``İ`` becomes
    ``I`` and ``ß`` becomes ``ss``.  Characters outside the table are kept.
    """
    return text.translate(_TRANSLITERATION_TABLE)


def slugify_filename(filename: str) -> str:
    """Format a ``.md`` file name as a URL-friendly slug.

    >>> slugify_filename("İdea Çöz.md")
    'idea-coz.md'
    """
    name = filename.removesuffix(MARKDOWN_SUFFIX)
    name = transliterate(name)
    name = name.lower()
    name = _WHITESPACE_RUN.sub("-", name)
    name = _NON_SLUG_CHARS.sub("", name)
    return name + MARKDOWN_SUFFIX


def apply_language_suffix(filename: str, language: str | None) -> str:
    """Insert a language tag before the extension (``a.md`` -> ``a.tr.md``).

    Blank or missing tags leave the name unchanged.
    """
    if language is None or not language.strip():
        return filename
    tag = language.strip().lower()
    name = filename.removesuffix(MARKDOWN_SUFFIX)
    return f"{name}.{tag}{MARKDOWN_SUFFIX}"


def apply_publish_root(filename: str, publish_root: str | None) -> str:
    """Prefix *filename* with the publish root folder."""
    if not publish_root or publish_root.strip() == ROOT_SENTINEL:
        return filename
    root = publish_root.strip().strip("/")
    if not root:
        return filename
    return f"{root}/{filename}"


def resolve_target_path(
    basename: str,
    slug: str | None = None,
    title: str | None = None,
    format_as_slug: bool = False,
    language: str | None = None,
    publish_root: str | None = "notes",
) -> str:
    """Derive the remote path for a note.

    Args:
        basename: The note's own file name, extension included
            (``Idea.md``).  A name without ``.md`` gets it appended.
        slug: Front-matter slug; wins over title and file name.
        title: Front-matter title; wins over the file name.
        format_as_slug: Apply ``slugify_filename`` to the chosen name.
        language: Optional language tag.
        publish_root: Repository folder, ``/`` or empty for the root.

    Returns:
        Repository-relative path ending in ``.md``.
    """
    # Outer slashes would leave empty path segments
    slug = slug.strip("/") if slug else None
    title = title.strip("/") if title else None

    if slug:
        filename = slug + MARKDOWN_SUFFIX
    elif title:
        filename = title + MARKDOWN_SUFFIX
    else:
        filename = basename

    if not filename.endswith(MARKDOWN_SUFFIX):
        filename += MARKDOWN_SUFFIX

    if format_as_slug:
        filename = slugify_filename(filename)

    filename = apply_language_suffix(filename, language)
    return apply_publish_root(filename, publish_root)


def _text_field(frontmatter: dict, key: str) -> str | None:
    """Return a front-matter value as stripped text, ``None`` when blank."""
    value: Any = frontmatter.get(key)
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


class PathResolver:
    """Bind ``resolve_target_path`` to the publish settings.

    Args:
        settings: Publish section of the configuration.
    """

    def __init__(self, settings: PublishConfig) -> None:
        self._settings = settings

    def language_for(self, frontmatter: dict) -> str | None:
        """Language tag from front matter; only string values count."""
        value = frontmatter.get(self._settings.language_key)
        if isinstance(value, str) and value.strip():
            return value.strip().lower()
        return None

    def target_for(self, document: Document, frontmatter: dict) -> str:
        """Remote path for *document* given its parsed front matter."""
        return resolve_target_path(
            document.name,
            slug=_text_field(frontmatter, "slug"),
            title=_text_field(frontmatter, "title"),
            format_as_slug=self._settings.slugify,
            language=self.language_for(frontmatter),
            publish_root=self._settings.publish_root,
        )

    def target_for_previous(self, local_path: str) -> str:
        """Remote path a previously published note occupied.

        Only the old file name is known once the note is gone, so slug,
        title and language are not applied.
        """
        filename = local_path.rsplit("/", 1)[-1] or local_path
        return resolve_target_path(
            filename,
            format_as_slug=self._settings.slugify,
            publish_root=self._settings.publish_root,
        )
