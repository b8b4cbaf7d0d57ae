"""Publication ledger persistence.

Tracks, per vault path, when a note was last published, the fingerprint
of its content at that time and the remote path it was written to.  The
ledger lives in ``<vault>/<state_dir>/ledger.json``.

Key design choices:

* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Dict-based state** -- ``load()`` returns a plain ``dict`` the engine
  mutates during a run; entries keep insertion order, which is the order
  rename detection scans them in.
* **Legacy import** -- older publishers stored one string per note,
  either a bare ISO timestamp or ``"<timestamp>:hash:<fingerprint>"``.
  Such files (or a plugin ``data.json`` with a ``publishedNotes`` map) are
  migrated on load and always written back in the structured format.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from .models import PublishRecord

logger = logging.getLogger(__name__)

LEDGER_VERSION = 2
LEDGER_FILENAME = "ledger.json"
LEGACY_HASH_SEPARATOR = ":hash:"


def decode_legacy_value(local_path: str, value: str) -> PublishRecord:
    """Turn a legacy ledger string into a ``PublishRecord``.

    >>> decode_legacy_value("a.md", "2024-01-01T00:00:00.000Z:hash:42").content_fingerprint
    '42'
    """
    if LEGACY_HASH_SEPARATOR in value:
        timestamp, fp = value.split(LEGACY_HASH_SEPARATOR, 1)
        return PublishRecord(
            local_path=local_path,
            last_published=timestamp,
            content_fingerprint=fp or None,
        )
    return PublishRecord(local_path=local_path, last_published=value)


def _empty_state() -> dict:
    return {"version": LEDGER_VERSION, "updated_at": None, "entries": {}}


def _migrate_legacy(mapping: dict) -> dict:
    state = _empty_state()
    for local_path, value in mapping.items():
        if not isinstance(value, str):
            logger.warning(
                "Skipping legacy ledger entry %s: not a string", local_path
            )
            continue
        record = decode_legacy_value(local_path, value)
        state["entries"][local_path] = record.model_dump(
            exclude={"local_path"}
        )
    logger.info("Migrated %d legacy ledger entries", len(state["entries"]))
    return state


class LedgerStore:
    """Load, save, and query the publication ledger.

    Args:
        state_dir: Directory holding ``ledger.json``.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir

    @property
    def path(self) -> Path:
        return self._state_dir / LEDGER_FILENAME

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> dict:
        """Load the ledger from disk.

        Returns:
            The state dict.  A missing file yields an empty ledger; a
            legacy file is migrated in memory.
        """
        if not self.path.exists():
            return _empty_state()
        with open(self.path, encoding="utf-8") as fh:
            data = json.load(fh)
        return self.coerce(data)

    def coerce(self, data: dict) -> dict:
        """Normalise loaded JSON into the current state layout.

        Accepts the structured format, a legacy ``{path: string}`` map, or
        a plugin settings object carrying ``publishedNotes``.
        """
        if not isinstance(data, dict):
            raise ValueError(
                f"Ledger {self.path} has non-object root ({type(data).__name__})"
            )
        if "publishedNotes" in data:
            return _migrate_legacy(data.get("publishedNotes") or {})
        if "entries" in data and "version" in data:
            data.setdefault("updated_at", None)
            return data
        return _migrate_legacy(data)

    def save(self, state: dict) -> None:
        """Persist the ledger atomically.

        Writes to a temporary file in the same directory then atomically
        replaces the target.  Creates ``state_dir`` if it does not exist
        and stamps ``updated_at`` with the current UTC time.
        """
        self._state_dir.mkdir(parents=True, exist_ok=True)
        state["version"] = LEDGER_VERSION
        state["updated_at"] = datetime.now(timezone.utc).isoformat()

        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._state_dir), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    # ------------------------------------------------------------------
    # Record helpers
    # ------------------------------------------------------------------

    def get_record(
        self, state: dict, local_path: str
    ) -> PublishRecord | None:
        """Return the record for *local_path*, or ``None`` if absent."""
        entry = state.get("entries", {}).get(local_path)
        if entry is None:
            return None
        return PublishRecord(local_path=local_path, **entry)

    def put_record(self, state: dict, record: PublishRecord) -> None:
        """Upsert *record* under its local path.

        An existing key keeps its position; new keys go last.
        """
        state.setdefault("entries", {})[record.local_path] = (
            record.model_dump(exclude={"local_path"})
        )

    def remove_record(self, state: dict, local_path: str) -> None:
        """Remove *local_path*.  No-op if not present."""
        state.get("entries", {}).pop(local_path, None)

    def iter_records(self, state: dict) -> Iterator[PublishRecord]:
        """Yield every record in insertion order."""
        for local_path, entry in list(state.get("entries", {}).items()):
            yield PublishRecord(local_path=local_path, **entry)
