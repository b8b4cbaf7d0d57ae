"""One-way publishing of vault notes to a GitHub repository.

Modules:

- ``engine``      -- ``PublishEngine``: per-note reconciliation and batch runs.
- ``ledger``      -- ``LedgerStore``: load/save/query the publication ledger.
- ``resolver``    -- ``PathResolver``: front matter to remote path.
- ``images``      -- ``ImagePublisher``: image upload and link rewriting.
- ``fingerprint`` -- content fingerprint used for rename detection.
- ``models``      -- ``PublishAction``, ``PublishRecord``, ``PublishResult``,
  ``PublishReport``: core data contracts.
- ``reporter``    -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from pathlib import Path
    from vault_publisher.config_schema import PublishConfig
    from vault_publisher.publish import (
        LedgerStore,
        PublishEngine,
        format_publish_report,
    )
    from vault_publisher.vault import Vault

    settings = PublishConfig(vault="~/notes")
    vault = Vault(Path(settings.vault).expanduser())
    engine = PublishEngine(
        client=github_client,        # GitHubClient instance
        settings=settings,
        vault=vault,
        ledger=LedgerStore(vault.root / settings.state_dir),
    )

    report = await engine.publish_all(dry_run=True)
    print(format_publish_report(report))
"""

from .engine import PublishEngine
from .fingerprint import fingerprint
from .images import ImagePublisher
from .ledger import LedgerStore
from .models import (
    PublishAction,
    PublishRecord,
    PublishReport,
    PublishResult,
)
from .reporter import (
    format_ledger_status,
    format_publish_report,
    format_publish_result,
    report_to_json,
)
from .resolver import PathResolver, resolve_target_path

__all__ = [
    "ImagePublisher",
    "LedgerStore",
    "PathResolver",
    "PublishAction",
    "PublishEngine",
    "PublishRecord",
    "PublishReport",
    "PublishResult",
    "fingerprint",
    "format_ledger_status",
    "format_publish_report",
    "format_publish_result",
    "report_to_json",
    "resolve_target_path",
]
