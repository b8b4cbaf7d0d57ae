"""Pydantic models for the publish engine.

Defines the data contracts shared by the publish modules:

- ``PublishAction``: What happened (or would happen) to a note.
- ``PublishRecord``: Ledger entry for one published note.
- ``PublishResult``: Outcome of publishing one note.
- ``PublishReport``: Aggregate results for a batch run.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class PublishAction(str, Enum):
    """Possible outcomes for a single note."""

    SKIP = "skip"
    CREATE = "create"
    UPDATE = "update"


class PublishRecord(BaseModel):
    """Ledger entry for one published note.

    Attributes:
        local_path: Vault path of the note (ledger key).
        last_published: ISO 8601 timestamp of the last successful write.
        content_fingerprint: Fingerprint of the note content at that time.
        remote_path: Repository path the note was written to.
    """

    local_path: str
    last_published: str
    content_fingerprint: str | None = None
    remote_path: str | None = None

    model_config = {"frozen": True}


class PublishResult(BaseModel):
    """Result of publishing one note.

    Attributes:
        local_path: Vault path of the note.
        remote_path: Resolved repository path ("" when never resolved).
        action: Action performed.
        success: Whether the note ended up published.
        error: Failure or rejection message, verbatim.
        uploaded_images: Number of images uploaded for this note.
        retired_path: Remote path of a renamed predecessor that was deleted.
    """

    local_path: str
    remote_path: str = ""
    action: PublishAction
    success: bool
    error: str | None = None
    uploaded_images: int = 0
    retired_path: str | None = None

    model_config = {"frozen": True}


class PublishReport(BaseModel):
    """Aggregate report for a batch run.

    Attributes:
        dry_run: Whether this was a dry-run (no remote changes).
        cancelled: Whether the run was stopped before the last note.
        results: Individual results in processing order.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run ended.
    """

    dry_run: bool = False
    cancelled: bool = False
    results: list[PublishResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def created(self) -> list[PublishResult]:
        """Successful results where action is CREATE."""
        return [
            r
            for r in self.results
            if r.success and r.action == PublishAction.CREATE
        ]

    @property
    def updated(self) -> list[PublishResult]:
        """Successful results where action is UPDATE."""
        return [
            r
            for r in self.results
            if r.success and r.action == PublishAction.UPDATE
        ]

    @property
    def retired(self) -> list[PublishResult]:
        """Results that retired a renamed predecessor."""
        return [r for r in self.results if r.retired_path]

    @property
    def succeeded(self) -> list[PublishResult]:
        """Results where success is True."""
        return [r for r in self.results if r.success]

    @property
    def errors(self) -> list[PublishResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def uploaded_images(self) -> int:
        """Total images uploaded across the run."""
        return sum(r.uploaded_images for r in self.results)

    def summary(self) -> str:
        """Format a short human-readable summary of the run.

        Returns:
            Multi-line summary string with counts by outcome.
        """
        lines = [
            "Publish report"
            + (" (dry run)" if self.dry_run else "")
            + (" (cancelled)" if self.cancelled else ""),
            f"  Created:  {len(self.created)}",
            f"  Updated:  {len(self.updated)}",
            f"  Retired:  {len(self.retired)}",
            f"  Images:   {self.uploaded_images}",
            f"  Failed:   {len(self.errors)}",
            f"  Total:    {len(self.results)}",
        ]
        return "\n".join(lines)
