"""Sync report formatting functions.

- ``format_sync_report``: post-run summary with per-action sections.
- ``format_dry_run_preview``: dry-run preview grouped by action.
- ``format_stale_warning``: the list shown before offering stale removal.
- ``report_to_json``: structured dict for ``--json`` output.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncReport, SyncResult

from .models import SyncAction

_SECTION_TITLES: dict[SyncAction, str] = {
    SyncAction.CREATE: "Created on ReadMe:",
    SyncAction.UPDATE: "Updated on ReadMe:",
    SyncAction.DELETE: "Deleted from ReadMe:",
    SyncAction.FETCH: "Fetched:",
    SyncAction.STALE: "Possibly stale (not found on ReadMe):",
    SyncAction.DELETE_LOCAL: "Removed locally:",
}

# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def _describe(result: SyncResult) -> str:
    line = f"  {result.reference} ({result.path})"
    if result.detail and result.detail != "dry run":
        line += f" [{result.detail}]"
    return line


def format_sync_report(report: SyncReport) -> str:
    """Format a complete report as human-readable text.

    Sections are only included when they contain at least one result.
    Unchanged documents are summarised by count only.

    Args:
        report: The completed report.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []

    header = f"{report.operation.capitalize()} report"
    if report.dry_run:
        header += " (DRY RUN)"
    lines.append(header)
    lines.append(f"Started: {report.started_at}")
    if report.completed_at:
        lines.append(f"Completed: {report.completed_at}")
    lines.append("")

    lines.append(
        f"Processed {len(report.results)} documents: "
        f"{len(report.created)} created, {len(report.updated)} updated, "
        f"{len(report.skipped)} unchanged, {len(report.deleted)} deleted, "
        f"{len(report.fetched)} fetched, {len(report.stale)} stale, "
        f"{len(report.errors)} errors"
    )
    lines.append("")

    successful: dict[SyncAction, list[SyncResult]] = defaultdict(list)
    for r in report.results:
        if r.success:
            successful[r.action].append(r)

    for action, title in _SECTION_TITLES.items():
        if not successful[action]:
            continue
        lines.append(title)
        lines.extend(_describe(r) for r in successful[action])
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.reference}: {r.error}")
        lines.append("")

    if report.skipped:
        lines.append(f"Unchanged: {len(report.skipped)} documents")
        lines.append("")

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# Dry-run preview
# ------------------------------------------------------------------


def format_dry_run_preview(report: SyncReport) -> str:
    """Format a dry-run preview grouped by action type.

    Each proposed action is shown as ``[ACTION]`` followed by the affected
    references.

    Args:
        report: A dry-run report (``dry_run=True``).

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append("DRY RUN -- No changes will be made")
    lines.append(f"Operation: {report.operation}")
    lines.append("")

    groups: dict[SyncAction, list[SyncResult]] = defaultdict(list)
    for r in report.results:
        if r.success:
            groups[r.action].append(r)

    display_order = [
        SyncAction.CREATE,
        SyncAction.UPDATE,
        SyncAction.DELETE,
        SyncAction.FETCH,
        SyncAction.STALE,
        SyncAction.DELETE_LOCAL,
    ]

    for action in display_order:
        if action not in groups:
            continue
        label = action.value.upper().replace("_", " ")
        lines.append(f"[{label}]")
        for r in groups[action]:
            lines.append(f"  {r.reference} <-> {r.path}")
        lines.append("")

    skip_count = len(groups.get(SyncAction.SKIP, []))
    if skip_count > 0:
        lines.append(f"Skipped: {skip_count} documents (unchanged)")
        lines.append("")

    if report.errors:
        lines.append("Errors:")
        for r in report.errors:
            lines.append(f"  {r.reference}: {r.error}")
        lines.append("")

    if not any(a != SyncAction.SKIP for a in groups) and not report.errors:
        lines.append("No changes needed.")
        lines.append("")

    return "\n".join(lines).rstrip()


def format_stale_warning(report: SyncReport) -> str:
    """List the stale candidates of a fetch report, or ``""`` if none."""
    stale = report.stale
    if not stale:
        return ""
    lines = [
        f"WARNING: Found {len(stale)} possibly stale local content pages; "
        "they were not fetched after crawling ReadMe:"
    ]
    lines.extend(f" - {r.reference}" for r in stale)
    return "\n".join(lines)


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def report_to_json(report: SyncReport) -> dict:
    """Convert a report to a structured dict for JSON serialisation.

    Args:
        report: The sync report.

    Returns:
        Dict with run info, counts, and per-result details.
    """
    results_list = []
    for r in report.results:
        entry: dict = {
            "reference": r.reference,
            "path": r.path,
            "action": r.action.value,
            "success": r.success,
        }
        if r.detail:
            entry["detail"] = r.detail
        if r.error:
            entry["error"] = r.error
        results_list.append(entry)

    return {
        "operation": report.operation,
        "dry_run": report.dry_run,
        "started_at": report.started_at,
        "completed_at": report.completed_at,
        "counts": {
            "total": len(report.results),
            "created": len(report.created),
            "updated": len(report.updated),
            "skipped": len(report.skipped),
            "deleted": len(report.deleted),
            "fetched": len(report.fetched),
            "stale": len(report.stale),
            "deleted_local": len(report.deleted_local),
            "errors": len(report.errors),
        },
        "results": results_list,
    }
