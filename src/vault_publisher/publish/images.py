"""Image extraction, upload, and link rewriting.

For every local ``![alt](path)`` reference in a note, the image is read
from the vault, uploaded under the configured images folder and the
reference is rewritten to the file's raw-content URL.

Failures are per image: a missing file or a failed upload is logged and
the original reference is left as it was.
"""

from __future__ import annotations

import base64
import logging
import re
from posixpath import normpath
from urllib.parse import unquote

from vault_publisher.config_schema import PublishConfig
from vault_publisher.core.async_utils import run_sync
from vault_publisher.core.client import GitHubClient, RemoteError
from vault_publisher.vault import Document, Found, Vault

logger = logging.getLogger(__name__)

IMAGE_PATTERN = re.compile(r"!\[.*?\]\((.*?)\)")
_REMOTE_PREFIXES = ("http://", "https://")


def is_remote_reference(reference: str) -> bool:
    """True when *reference* already points at a network location."""
    return reference.lower().startswith(_REMOTE_PREFIXES)


def extract_image_references(content: str) -> list[str]:
    """Return local image references in order of appearance.

    Remote URLs are left out.  Duplicates are kept; callers that upload
    should de-duplicate.
    """
    return [
        ref
        for ref in IMAGE_PATTERN.findall(content)
        if ref and not is_remote_reference(ref)
    ]


def rewrite_image_references(
    content: str, image_map: dict[str, str]
) -> str:
    """Replace mapped references inside image markup.

    Only the ``(...)`` target of ``![alt](...)`` is touched; references
    missing from *image_map* stay as they are.
    """
    if not image_map:
        return content

    def _replace(match: re.Match) -> str:
        reference = match.group(1)
        if reference not in image_map:
            return match.group(0)
        start, end = match.span(1)
        offset = match.start(0)
        whole = match.group(0)
        return (
            whole[: start - offset]
            + image_map[reference]
            + whole[end - offset :]
        )

    return IMAGE_PATTERN.sub(_replace, content)


class ImagePublisher:
    """Upload a note's local images and rewrite their links.

    Args:
        client: GitHub client used for probing and uploading.
        vault: Vault the images are read from.
        settings: Publish settings (``images_root``,
            ``preserve_image_folders``).
    """

    def __init__(
        self,
        client: GitHubClient,
        vault: Vault,
        settings: PublishConfig,
    ) -> None:
        self.client = client
        self.vault = vault
        self.settings = settings

    def locate(self, reference: str, document: Document) -> Document | None:
        """Find the vault file an image reference points at.

        Tried in order: the reference as a vault path, the reference
        relative to the note's folder, and both again URL-decoded.
        """
        target = reference.strip().removeprefix("<").removesuffix(">")
        candidates = [target]
        decoded = unquote(target)
        if decoded != target:
            candidates.append(decoded)

        for candidate in candidates:
            paths = [candidate.lstrip("/")]
            if document.folder:
                paths.append(normpath(f"{document.folder}/{candidate}"))
            for path in paths:
                match self.vault.lookup(path):
                    case Found(document=image):
                        return image
        return None

    def remote_path_for(self, image: Document) -> str:
        """Repository path an image is uploaded to."""
        if self.settings.preserve_image_folders:
            return f"{self.settings.images_root}/{image.path}"
        return f"{self.settings.images_root}/{image.name}"

    async def upload_image(self, image: Document) -> str:
        """Upload one image and return its raw-content URL.

        Raises:
            RemoteError: If probing or uploading fails.
        """
        remote_path = self.remote_path_for(image)
        payload = base64.b64encode(self.vault.read_binary(image)).decode(
            "ascii"
        )
        sha = await run_sync(self.client.get_existing, remote_path)
        await run_sync(
            self.client.create_or_update,
            remote_path,
            payload,
            f"Upload image {image.name} via vault-publisher",
            sha,
        )
        logger.info(
            "%s image %s -> %s",
            "Updated" if sha else "Uploaded",
            image.path,
            remote_path,
        )
        return self.client.raw_url(remote_path)

    async def upload_and_rewrite(
        self, content: str, document: Document
    ) -> tuple[str, int]:
        """Upload every local image in *content* and rewrite its links.

        A reference that appears several times is uploaded once, and
        every occurrence is rewritten.  ``uploaded_count`` therefore
        counts distinct images, not occurrences.

        Args:
            content: Note text.
            document: The note, used to resolve relative references.

        Returns:
            ``(updated_content, uploaded_count)`` where the count is the
            number of distinct images uploaded.
        """
        references = list(dict.fromkeys(extract_image_references(content)))
        if not references:
            return content, 0

        image_map: dict[str, str] = {}
        for reference in references:
            image = self.locate(reference, document)
            if image is None:
                logger.warning(
                    "Image %s referenced by %s not found in vault",
                    reference,
                    document.path,
                )
                continue
            try:
                image_map[reference] = await self.upload_image(image)
            except (RemoteError, OSError, ValueError) as exc:
                logger.error("Error uploading image %s: %s", reference, exc)

        return rewrite_image_references(content, image_map), len(image_map)
