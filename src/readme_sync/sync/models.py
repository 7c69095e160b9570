"""Pydantic models for sync results.

- ``SyncAction``: what happened (or would happen) to one document.
- ``SyncResult``: outcome for one document.
- ``SyncReport``: aggregate results of a push, fetch or prune run.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class SyncAction(str, Enum):
    """Per-document outcomes.

    ``CREATE``/``UPDATE``/``SKIP`` come from push, ``DELETE`` from remote
    prune, ``FETCH``/``STALE`` from fetch and ``DELETE_LOCAL`` from stale
    removal.
    """

    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
    DELETE = "delete"
    FETCH = "fetch"
    STALE = "stale"
    DELETE_LOCAL = "delete_local"


class SyncResult(BaseModel):
    """Result of syncing one document.

    Attributes:
        reference: ``category[:parent]:slug`` of the document.
        path: Local path relative to the docs directory.
        action: Action that was performed (or attempted).
        success: Whether the action succeeded.
        error: Error message if the action failed.
        detail: Short note on a successful decision (e.g. "unchanged").
    """

    reference: str
    path: str
    action: SyncAction
    success: bool = True
    error: str | None = None
    detail: str | None = None

    model_config = {"frozen": True}

    @property
    def slug(self) -> str:
        return self.reference.rsplit(":", 1)[-1]


class SyncReport(BaseModel):
    """Aggregate report for one run.

    Attributes:
        operation: ``push``, ``fetch`` or ``prune``.
        dry_run: Whether side effects were suppressed.
        results: Per-document results, in processing order.
        started_at: ISO 8601 timestamp when the run started.
        completed_at: ISO 8601 timestamp when the run completed.
    """

    operation: str
    dry_run: bool = False
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    def _with_action(self, action: SyncAction) -> list[SyncResult]:
        return [r for r in self.results if r.action == action and r.success]

    @property
    def created(self) -> list[SyncResult]:
        return self._with_action(SyncAction.CREATE)

    @property
    def updated(self) -> list[SyncResult]:
        return self._with_action(SyncAction.UPDATE)

    @property
    def skipped(self) -> list[SyncResult]:
        return self._with_action(SyncAction.SKIP)

    @property
    def deleted(self) -> list[SyncResult]:
        return self._with_action(SyncAction.DELETE)

    @property
    def fetched(self) -> list[SyncResult]:
        return self._with_action(SyncAction.FETCH)

    @property
    def stale(self) -> list[SyncResult]:
        """Local documents not found by the remote walk."""
        return self._with_action(SyncAction.STALE)

    @property
    def deleted_local(self) -> list[SyncResult]:
        return self._with_action(SyncAction.DELETE_LOCAL)

    @property
    def errors(self) -> list[SyncResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def has_errors(self) -> bool:
        return any(not r.success for r in self.results)

    def summary(self) -> str:
        """Counts by action, one per line."""
        lines = [
            f"{self.operation.capitalize()} report"
            + (" (dry run)" if self.dry_run else ""),
            f"  Created:        {len(self.created)}",
            f"  Updated:        {len(self.updated)}",
            f"  Unchanged:      {len(self.skipped)}",
            f"  Deleted:        {len(self.deleted)}",
            f"  Fetched:        {len(self.fetched)}",
            f"  Stale:          {len(self.stale)}",
            f"  Removed local:  {len(self.deleted_local)}",
            f"  Errors:         {len(self.errors)}",
            f"  Total:          {len(self.results)}",
        ]
        return "\n".join(lines)
