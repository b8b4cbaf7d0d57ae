"""Publish engine: one-way reconciliation of vault notes with a repository.

``PublishEngine.publish_document`` walks a single note through:

1. Configuration and eligibility gates (no network traffic on rejection).
2. Content fingerprint.
3. Rename detection against the ledger.
4. Remote path resolution.
5. Image upload and link rewriting.
6. Retirement of a renamed predecessor's remote file.
7. Version-token probe and create-or-update.
8. Ledger update (only after a confirmed write).

``publish_all`` runs that sequence for every eligible note, one at a
time.  A failing note is recorded and the batch carries on.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from datetime import datetime, timezone

from vault_publisher.config import validate_config
from vault_publisher.config_schema import PublishConfig
from vault_publisher.core.async_utils import run_sync
from vault_publisher.core.client import GitHubClient, RemoteError
from vault_publisher.publish.fingerprint import fingerprint
from vault_publisher.publish.images import ImagePublisher
from vault_publisher.publish.ledger import LedgerStore
from vault_publisher.publish.models import (
    PublishAction,
    PublishRecord,
    PublishReport,
    PublishResult,
)
from vault_publisher.publish.resolver import PathResolver
from vault_publisher.vault import (
    MARKDOWN_EXTENSION,
    Document,
    Found,
    NotFound,
    Vault,
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def encode_content(content: str) -> str:
    """Base64 of the UTF-8 bytes of *content*."""
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


class PublishEngine:
    """Publish vault notes to a GitHub repository.

    Args:
        client: GitHub client for the target repository.
        settings: Publish section of the configuration.
        vault: Vault the notes live in.
        ledger: Ledger store; loaded lazily on first use.
    """

    def __init__(
        self,
        client: GitHubClient,
        settings: PublishConfig,
        vault: Vault,
        ledger: LedgerStore,
    ) -> None:
        self.client = client
        self.settings = settings
        self.vault = vault
        self.ledger = ledger

        self.resolver = PathResolver(settings)
        self.images = ImagePublisher(client, vault, settings)
        self._state: dict | None = None

    @property
    def state(self) -> dict:
        """In-memory ledger state, loaded on first access."""
        if self._state is None:
            self._state = self.ledger.load()
        return self._state

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def is_excluded(self, local_path: str) -> bool:
        """True when *local_path* sits in an excluded folder."""
        return any(
            local_path == folder or local_path.startswith(folder + "/")
            for folder in self.settings.exclude
        )

    def ineligibility_reason(
        self, document: Document, frontmatter: dict
    ) -> str | None:
        """Why *document* cannot be published, or ``None`` if it can."""
        if document.extension != MARKDOWN_EXTENSION:
            return f"{document.name} is not a Markdown note"
        if self.is_excluded(document.path):
            return f"{document.path} is in an excluded folder"
        if frontmatter.get(self.settings.marker_key) is not True:
            return (
                f"Note {document.name} is not shareable. Make sure it has "
                f"'{self.settings.marker_key}: true' in its frontmatter."
            )
        return None

    def shareable_documents(self) -> list[Document]:
        """Every eligible note, in vault enumeration order."""
        return [
            doc
            for doc in self.vault.markdown_documents()
            if self.ineligibility_reason(doc, self.vault.frontmatter(doc))
            is None
        ]

    # ------------------------------------------------------------------
    # Rename detection
    # ------------------------------------------------------------------

    def find_predecessor(
        self, local_path: str, content_fingerprint: str
    ) -> str | None:
        """Find the ledger entry *local_path* was most likely renamed from.

        A candidate is a ledger entry for another path whose note no
        longer exists in the vault and whose stored fingerprint equals
        *content_fingerprint*.  Candidates are scanned in ledger order and
        the first one wins, unless ``ambiguous_renames`` is ``skip`` and
        there is more than one.
        """
        candidates: list[str] = []
        for record in self.ledger.iter_records(self.state):
            if record.local_path == local_path:
                continue
            if record.content_fingerprint != content_fingerprint:
                continue
            match self.vault.lookup(record.local_path):
                case Found():
                    continue
                case NotFound():
                    candidates.append(record.local_path)

        if not candidates:
            return None

        if len(candidates) > 1:
            logger.warning(
                "Several missing notes match the content of %s: %s",
                local_path,
                ", ".join(candidates),
            )
            if self.settings.ambiguous_renames == "skip":
                return None

        logger.info("%s looks like a rename of %s", local_path, candidates[0])
        return candidates[0]

    def previous_remote_path(self, predecessor: str) -> str:
        """Remote path the predecessor was last written to."""
        record = self.ledger.get_record(self.state, predecessor)
        if record is not None and record.remote_path:
            return record.remote_path
        return self.resolver.target_for_previous(predecessor)

    # ------------------------------------------------------------------
    # Single note
    # ------------------------------------------------------------------

    def _check_configuration(self) -> None:
        """Raise ``ValueError`` before any request when credentials are missing."""
        validate_config(self.client.config)

    async def publish_document(
        self, local_path: str, dry_run: bool = False
    ) -> PublishResult:
        """Publish one note.

        Args:
            local_path: Vault path of the note.
            dry_run: Resolve and report without touching the remote.

        Returns:
            ``PublishResult`` describing the outcome.

        Raises:
            ValueError: If the connection settings are incomplete.
        """
        self._check_configuration()

        match self.vault.lookup(local_path):
            case NotFound():
                return PublishResult(
                    local_path=local_path,
                    action=PublishAction.SKIP,
                    success=False,
                    error=f"Note not found: {local_path}",
                )
            case Found(document=document):
                pass

        frontmatter = self.vault.frontmatter(document)
        reason = self.ineligibility_reason(document, frontmatter)
        if reason is not None:
            logger.info("Skipping %s: %s", document.path, reason)
            return PublishResult(
                local_path=document.path,
                action=PublishAction.SKIP,
                success=False,
                error=reason,
            )

        content = self.vault.read_text(document)
        content_fingerprint = fingerprint(content)

        predecessor = None
        if self.settings.track_history:
            predecessor = self.find_predecessor(
                document.path, content_fingerprint
            )

        target_path = self.resolver.target_for(document, frontmatter)

        if dry_run:
            existing = self.ledger.get_record(self.state, document.path)
            retired = (
                self.previous_remote_path(predecessor) if predecessor else None
            )
            return PublishResult(
                local_path=document.path,
                remote_path=target_path,
                action=PublishAction.UPDATE
                if existing
                else PublishAction.CREATE,
                success=True,
                retired_path=retired if retired != target_path else None,
            )

        uploaded = 0
        if self.settings.process_images:
            content, uploaded = await self.images.upload_and_rewrite(
                content, document
            )
            if uploaded:
                logger.info(
                    "Uploaded %d images to %s",
                    uploaded,
                    self.settings.images_root,
                )

        retired_path = None
        if predecessor is not None:
            retired_path = await self._retire_predecessor(
                predecessor, target_path, document
            )

        sha = None
        try:
            sha = await run_sync(self.client.get_existing, target_path)
            await run_sync(
                self.client.create_or_update,
                target_path,
                encode_content(content),
                f"Update {document.name} via vault-publisher",
                sha,
            )
        except (RemoteError, ValueError) as exc:
            logger.error("Failed to publish %s: %s", document.path, exc)
            return PublishResult(
                local_path=document.path,
                remote_path=target_path,
                action=PublishAction.UPDATE if sha else PublishAction.CREATE,
                success=False,
                error=str(exc),
                uploaded_images=uploaded,
                retired_path=retired_path,
            )

        self.ledger.put_record(
            self.state,
            PublishRecord(
                local_path=document.path,
                last_published=_now(),
                content_fingerprint=content_fingerprint,
                remote_path=target_path,
            ),
        )
        self.ledger.save(self.state)

        action = PublishAction.UPDATE if sha else PublishAction.CREATE
        logger.info(
            "Published %s as %s (%s)",
            document.path,
            target_path,
            action.value,
        )
        return PublishResult(
            local_path=document.path,
            remote_path=target_path,
            action=action,
            success=True,
            uploaded_images=uploaded,
            retired_path=retired_path,
        )

    async def _retire_predecessor(
        self, predecessor: str, target_path: str, document: Document
    ) -> str | None:
        """Delete the remote file of a renamed note.

        Returns the deleted remote path, or ``None`` when nothing was
        deleted.  Failures are logged and never raised.
        """
        old_path = self.previous_remote_path(predecessor)

        if old_path == target_path:
            # The new note overwrites the same file
            self.ledger.remove_record(self.state, predecessor)
            self.ledger.save(self.state)
            return None

        try:
            sha = await run_sync(self.client.get_existing, old_path)
            if sha is None:
                logger.info(
                    "Previous file %s is already gone from the remote",
                    old_path,
                )
            else:
                await run_sync(
                    self.client.delete,
                    old_path,
                    sha,
                    f"Delete {old_path} (renamed to {document.name})",
                )
                logger.info("Previous version at %s has been deleted", old_path)
        except (RemoteError, ValueError) as exc:
            logger.warning("Could not delete previous file %s: %s", old_path, exc)
            return None

        self.ledger.remove_record(self.state, predecessor)
        self.ledger.save(self.state)
        return old_path if sha else None

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def publish_all(
        self,
        dry_run: bool = False,
        cancel: asyncio.Event | None = None,
    ) -> PublishReport:
        """Publish every eligible note, strictly one at a time.

        Args:
            dry_run: Resolve and report without touching the remote.
            cancel: Optional event; once set, no further note is started.

        Returns:
            A ``PublishReport`` with one result per processed note.

        Raises:
            ValueError: If the connection settings are incomplete.
        """
        self._check_configuration()
        started_at = _now()

        documents = self.shareable_documents()
        logger.info("Publishing %d notes", len(documents))

        results: list[PublishResult] = []
        cancelled = False
        for document in documents:
            if cancel is not None and cancel.is_set():
                logger.info(
                    "Publish run cancelled with %d notes remaining",
                    len(documents) - len(results),
                )
                cancelled = True
                break
            try:
                result = await self.publish_document(
                    document.path, dry_run=dry_run
                )
            except Exception as exc:
                logger.error("Error publishing %s: %s", document.path, exc)
                result = PublishResult(
                    local_path=document.path,
                    action=PublishAction.SKIP,
                    success=False,
                    error=str(exc),
                )
            results.append(result)

        report = PublishReport(
            dry_run=dry_run,
            cancelled=cancelled,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )
        logger.info(
            "Published %d notes. %d failed.",
            len(report.succeeded),
            len(report.errors),
        )
        return report

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def ledger_status(self) -> list[PublishRecord]:
        """Every ledger record, in ledger order."""
        return list(self.ledger.iter_records(self.state))
