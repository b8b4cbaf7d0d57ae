"""Publish report formatting functions.

Provides human-readable and machine-readable output for publish runs:

- ``format_publish_result`` -- one line per note.
- ``format_publish_report`` -- full post-run summary.
- ``format_ledger_status`` -- tracked notes for the status surfaces.
- ``result_to_json`` / ``report_to_json`` / ``ledger_to_json`` --
  structured dicts for MCP tool output.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import PublishRecord, PublishReport, PublishResult

# ------------------------------------------------------------------
# Human-readable output
# ------------------------------------------------------------------


def format_publish_result(result: PublishResult) -> str:
    """Format a single publish result as one line (two with a rename)."""
    if not result.success:
        target = f" -> {result.remote_path}" if result.remote_path else ""
        return f"FAILED {result.local_path}{target}: {result.error}"

    line = f"{result.action.value.upper()} {result.local_path} -> {result.remote_path}"
    if result.uploaded_images:
        line += f" ({result.uploaded_images} images)"
    if result.retired_path:
        line += f"\n  retired {result.retired_path}"
    return line


def format_publish_report(report: PublishReport) -> str:
    """Format a complete publish report as human-readable text.

    Sections are only included when they contain at least one result.

    Args:
        report: The completed publish report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = "Publish report"
    if report.dry_run:
        header += " (DRY RUN)"
    if report.cancelled:
        header += " (CANCELLED)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Processed {len(report.results)} notes: "
        f"{len(report.created)} created, {len(report.updated)} updated, "
        f"{len(report.retired)} renamed, {len(report.errors)} failed, "
        f"{report.uploaded_images} images uploaded"
    )
    lines.append("")

    if report.created:
        lines.append("Created:")
        for r in report.created:
            lines.append(f"  {r.local_path} -> {r.remote_path}")
        lines.append("")

    if report.updated:
        lines.append("Updated:")
        for r in report.updated:
            lines.append(f"  {r.local_path} -> {r.remote_path}")
        lines.append("")

    if report.retired:
        lines.append("Renamed:")
        for r in report.retired:
            lines.append(f"  {r.retired_path} -> {r.remote_path}")
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.local_path}: {r.error}")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_ledger_status(records: list[PublishRecord]) -> str:
    """List tracked notes with their remote path and last publish time."""
    if not records:
        return "No notes have been published yet."

    lines = [f"{len(records)} published notes:"]
    for record in records:
        remote = record.remote_path or "(remote path unknown)"
        lines.append(
            f"  {record.local_path} -> {remote}  [{record.last_published}]"
        )
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def result_to_json(result: PublishResult) -> dict:
    """Convert one result to a dict, omitting empty optional fields."""
    entry: dict = {
        "local_path": result.local_path,
        "remote_path": result.remote_path,
        "action": result.action.value,
        "success": result.success,
    }
    if result.error:
        entry["error"] = result.error
    if result.uploaded_images:
        entry["uploaded_images"] = result.uploaded_images
    if result.retired_path:
        entry["retired_path"] = result.retired_path
    return entry


def report_to_json(report: PublishReport) -> dict:
    """Convert a publish report to a structured dict for JSON serialisation.

    Suitable for MCP ``structuredContent`` output.

    Args:
        report: The publish report.

    Returns:
        Dict with run info, counts, and per-result details.
    """
    return {
        "dry_run": report.dry_run,
        "cancelled": report.cancelled,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "updated": len(report.updated),
            "renamed": len(report.retired),
            "errors": len(report.errors),
            "uploaded_images": report.uploaded_images,
        },
        "results": [result_to_json(r) for r in report.results],
    }


def ledger_to_json(records: list[PublishRecord]) -> dict:
    return {
        "count": len(records),
        "records": [r.model_dump() for r in records],
    }
