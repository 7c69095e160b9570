"""Reconciliation engine between the local docs directory and ReadMe.

The ``SyncEngine`` drives three operations:

``push``
    For every selected local document: apply the filter pipeline, look up
    the remote counterpart by slug, then create it (404), skip it (identity
    hashes equal) or update it. A document's parent is pushed first through
    the same per-run task, so each parent is created at most once.

``fetch``
    Walk each category's remote tree in pre-order, load every doc, roll
    the pipeline back and write the file. Local documents in a walked
    category that the walk did not produce are reported as stale. Nothing
    is deleted until ``remove_stale`` is called.

``prune``
    After a push, delete remote docs that have no local counterpart in the
    pushed selection.

Error handling is per document: one failure is recorded in the report and
never aborts the rest of the batch. Only configuration errors, raised
before the engine exists, stop a run.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterable, Iterator

from ..catalog import Catalog, Predicate, by_slug, in_categories, not_in
from ..core.async_utils import gather_isolated
from ..document.metadata import DocumentMetadata
from ..document.model import Document
from ..errors import DocNotFound, ParentResolutionError, ReadmeSyncError
from ..filters.pipeline import FilterPipeline
from .models import SyncAction, SyncReport, SyncResult
from .payloads import document_to_payload, payload_to_document, remote_identity_hash

if TYPE_CHECKING:
    from ..local_store import LocalStore
    from .remote import RemoteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncOptions:
    """Run-wide switches.

    Attributes:
        dry_run: Report decisions without any write, remote or local.
        force: Update remote docs even when their hash matches.
        hidden: Push every document as hidden.
    """

    dry_run: bool = False
    force: bool = False
    hidden: bool = False


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def walk_tree(
    nodes: Iterable[dict[str, Any]], parent: str | None = None
) -> Iterator[tuple[dict[str, Any], str | None]]:
    """Yield ``(node, parent_slug)`` for a remote doc forest, parents first."""
    for node in nodes:
        yield node, parent
        yield from walk_tree(node.get("children") or [], node["slug"])


def _duplicate_slugs(documents: Iterable[Document]) -> dict[str, list[str]]:
    """Slugs claimed by more than one path, mapped to those paths."""
    paths: dict[str, set[str]] = {}
    for document in documents:
        paths.setdefault(document.slug, set()).add(document.path)
    return {slug: sorted(found) for slug, found in paths.items() if len(found) > 1}


class SyncEngine:
    """Push, fetch and prune documents for one docs directory.

    Args:
        remote: The remote document store.
        local_store: File store rooted at the docs directory.
        catalog: Every local document; used for parent and related-page
            lookups and for stale detection.
        pipeline: Filters applied before push and rolled back after fetch.
        options: Run-wide switches.
    """

    def __init__(
        self,
        remote: RemoteStore,
        local_store: LocalStore,
        catalog: Catalog,
        pipeline: FilterPipeline | None = None,
        options: SyncOptions | None = None,
    ) -> None:
        self.remote = remote
        self.local_store = local_store
        self.catalog = catalog
        self.pipeline = pipeline or FilterPipeline()
        self.options = options or SyncOptions()

        self._inflight: dict[str, asyncio.Task[SyncResult]] = {}
        self._duplicates: dict[str, list[str]] = {}

    @property
    def dry_run(self) -> bool:
        return self.options.dry_run

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def push(self, selection: Catalog) -> SyncReport:
        """Push every document of *selection*.

        Parents pushed on behalf of a selected child are reported as well,
        after the selected documents.
        """
        started_at = _now()
        self._inflight = {}

        documents = list(selection)
        self._duplicates = _duplicate_slugs([*self.catalog, *documents])
        outcomes = await gather_isolated(
            [self._push_task(document) for document in documents]
        )

        results: list[SyncResult] = []
        for document, outcome in zip(documents, outcomes):
            if isinstance(outcome, BaseException):
                results.append(self._failure(document, SyncAction.SKIP, outcome))
            else:
                results.append(outcome)

        selected = {document.slug for document in documents}
        for slug, task in self._inflight.items():
            if slug not in selected and task.done() and not task.cancelled():
                results.append(task.result())

        self._inflight = {}
        self._duplicates = {}
        return SyncReport(
            operation="push",
            dry_run=self.dry_run,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )

    def _push_task(self, document: Document) -> asyncio.Task[SyncResult]:
        """The single task pushing *document* during this run."""
        if document.slug in self._duplicates:
            return asyncio.ensure_future(self._reject_duplicate(document))
        task = self._inflight.get(document.slug)
        if task is None:
            task = asyncio.ensure_future(self._push_one(document))
            self._inflight[document.slug] = task
        return task

    async def _reject_duplicate(self, document: Document) -> SyncResult:
        paths = ", ".join(self._duplicates[document.slug])
        error = ReadmeSyncError(
            f"Slug '{document.slug}' is used by more than one page: {paths}"
        )
        return self._failure(document, SyncAction.SKIP, error)

    async def _push_one(self, document: Document) -> SyncResult:
        action = SyncAction.SKIP
        try:
            local = document
            if self.options.hidden:
                local = local.with_metadata(hidden=True)
            local = await self.pipeline.apply(local)

            try:
                remote_payload = await self.remote.get(local.slug)
            except DocNotFound:
                action = SyncAction.CREATE
                return await self._create(local)

            if not self.options.force and (
                remote_identity_hash(remote_payload) == local.identity_hash
            ):
                logger.info(
                    "Contents of page [%s] were not pushed because contents are the same",
                    local.reference,
                )
                return self._result(local, SyncAction.SKIP, detail="unchanged")

            action = SyncAction.UPDATE
            return await self._update(local, remote_payload)
        except Exception as exc:
            return self._failure(document, action, exc)

    async def _create(self, local: Document) -> SyncResult:
        parent_id = await self._resolve_parent(local)
        category = await self.remote.get_category(local.category)

        payload = {
            **document_to_payload(local, self.catalog),
            "category": category.get("_id"),
            "parentDoc": parent_id,
            "slug": local.slug,
            "lastUpdatedHash": local.identity_hash,
        }

        if self.dry_run:
            logger.info("DRY RUN: Would create page [%s] on ReadMe", local.reference)
            return self._result(local, SyncAction.CREATE, detail="dry run")

        await self.remote.create(payload)
        logger.info("Created page [%s] on ReadMe", local.reference)
        return self._result(local, SyncAction.CREATE)

    async def _update(
        self, local: Document, remote_payload: dict[str, Any]
    ) -> SyncResult:
        detail = "forced" if self.options.force else None

        if self.dry_run:
            logger.info(
                "DRY RUN: Would update contents of [%s] on ReadMe", local.reference
            )
            return self._result(local, SyncAction.UPDATE, detail="dry run")

        payload = {
            **remote_payload,
            **document_to_payload(local, self.catalog),
            "lastUpdatedHash": local.identity_hash,
        }
        await self.remote.update(local.slug, payload)
        logger.info("Updated contents of existing page [%s] on ReadMe", local.reference)
        return self._result(local, SyncAction.UPDATE, detail=detail)

    def _check_parent_chain(self, document: Document) -> None:
        seen = {document.slug}
        current: Document | None = document
        while current is not None and current.parent:
            if current.parent in seen:
                raise ParentResolutionError(
                    f"Circular parent chain for [{document.reference}] at '{current.parent}'"
                )
            seen.add(current.parent)
            current = self.catalog.find(by_slug(current.parent))

    async def _resolve_parent(self, local: Document) -> str | None:
        """Make sure *local*'s parent exists remotely and return its id.

        Raises:
            ParentResolutionError: If the parent is not in the local
                catalog, forms a cycle, or failed to push.
        """
        if not local.parent:
            return None

        self._check_parent_chain(local)
        parent = self.catalog.find(by_slug(local.parent))
        if parent is None:
            raise ParentResolutionError(
                f"No page with slug '{local.parent}' exists in the local catalog"
            )

        logger.debug(
            "Making sure parent page [%s] exists on ReadMe...", parent.reference
        )
        parent_result = await self._push_task(parent)
        if not parent_result.success:
            raise ParentResolutionError(
                f"Parent page '{local.parent}' could not be pushed: {parent_result.error}"
            )

        if self.dry_run and parent_result.action == SyncAction.CREATE:
            return None

        parent_payload = await self.remote.get(local.parent)
        return parent_payload.get("_id")

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def fetch(self, categories: Iterable[str]) -> SyncReport:
        """Mirror remote categories into the docs directory.

        Results are in remote pre-order, followed by stale candidates.
        """
        started_at = _now()
        results: list[SyncResult] = []
        walked: list[str] = []
        remote_paths: set[str] = set()

        for category in categories:
            try:
                tree = await self.remote.list_tree(category)
            except Exception as exc:
                logger.error("Failed to list docs of category [%s]: %s", category, exc)
                results.append(
                    SyncResult(
                        reference=category,
                        path=category,
                        action=SyncAction.FETCH,
                        success=False,
                        error=str(exc),
                    )
                )
                continue

            nodes = list(walk_tree(tree))
            outcomes = await gather_isolated(
                [self._fetch_one(node, category, parent) for node, parent in nodes]
            )
            for (node, parent), outcome in zip(nodes, outcomes):
                placeholder = Document(category=category, parent=parent, slug=node["slug"])
                remote_paths.add(placeholder.path)
                if isinstance(outcome, BaseException):
                    outcome = self._failure(placeholder, SyncAction.FETCH, outcome)
                results.append(outcome)
            walked.append(category)

        for document in self.catalog.select(in_categories(walked)):
            if document.path in remote_paths:
                continue
            logger.warning(
                "Local page [%s] was not found on ReadMe; it may have been deleted or moved",
                document.reference,
            )
            results.append(
                self._result(document, SyncAction.STALE, detail="not found on ReadMe")
            )

        return SyncReport(
            operation="fetch",
            dry_run=self.dry_run,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )

    async def _fetch_one(
        self, node: dict[str, Any], category: str, parent: str | None
    ) -> SyncResult:
        slug = node["slug"]
        try:
            payload = await self.remote.get(slug)
            document = payload_to_document(payload, category, parent)
            document = await self.pipeline.rollback(document)

            if self.dry_run:
                logger.info(
                    "DRY RUN: Would write contents of doc [%s] to file [%s]",
                    document.reference,
                    document.path,
                )
                return self._result(document, SyncAction.FETCH, detail="dry run")

            await self.local_store.write_async(document.path, document.serialized)
            logger.info(
                "Wrote contents of doc [%s] to file [%s]", document.reference, document.path
            )
            return self._result(document, SyncAction.FETCH)
        except Exception as exc:
            placeholder = Document(category=category, parent=parent, slug=slug)
            return self._failure(placeholder, SyncAction.FETCH, exc)

    async def remove_stale(self, report: SyncReport) -> SyncReport:
        """Delete the local files a fetch reported as stale."""
        started_at = _now()
        results: list[SyncResult] = []

        for stale in report.stale:
            if self.dry_run:
                logger.info("DRY RUN: Would delete local file [%s]", stale.path)
                results.append(
                    stale.model_copy(
                        update={"action": SyncAction.DELETE_LOCAL, "detail": "dry run"}
                    )
                )
                continue
            try:
                await self.local_store.delete_async(stale.path)
            except Exception as exc:
                logger.error("Failed to delete local file [%s]: %s", stale.path, exc)
                results.append(
                    stale.model_copy(
                        update={
                            "action": SyncAction.DELETE_LOCAL,
                            "success": False,
                            "error": str(exc),
                            "detail": None,
                        }
                    )
                )
                continue
            logger.info("Deleted stale local file [%s]", stale.path)
            results.append(
                stale.model_copy(update={"action": SyncAction.DELETE_LOCAL, "detail": None})
            )

        return SyncReport(
            operation="fetch",
            dry_run=self.dry_run,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )

    # ------------------------------------------------------------------
    # Prune
    # ------------------------------------------------------------------

    async def prune(
        self,
        categories: Iterable[str],
        selection: Catalog,
        *predicates: Predicate,
    ) -> SyncReport:
        """Delete remote docs missing from *selection*.

        The remote tree is narrowed with the same *predicates* used to
        select the pushed documents, so docs outside that selection are
        never considered. Children are deleted before their parents.
        """
        started_at = _now()
        results: list[SyncResult] = []
        remote_documents: list[Document] = []

        for category in categories:
            try:
                tree = await self.remote.list_tree(category)
            except Exception as exc:
                logger.error("Failed to list docs of category [%s]: %s", category, exc)
                results.append(
                    SyncResult(
                        reference=category,
                        path=category,
                        action=SyncAction.DELETE,
                        success=False,
                        error=str(exc),
                    )
                )
                continue
            for node, parent in walk_tree(tree):
                remote_documents.append(
                    Document(
                        category=category,
                        parent=parent,
                        slug=node["slug"],
                        metadata=DocumentMetadata(title=node.get("title") or ""),
                    )
                )

        orphans = Catalog(remote_documents).select(*predicates, not_in(selection))

        for orphan in reversed(list(orphans)):
            if self.dry_run:
                logger.info("DRY RUN: Would delete page [%s] from ReadMe", orphan.slug)
                results.append(self._result(orphan, SyncAction.DELETE, detail="dry run"))
                continue
            try:
                await self.remote.delete(orphan.slug)
            except Exception as exc:
                results.append(self._failure(orphan, SyncAction.DELETE, exc))
                continue
            logger.info("Deleted page [%s] from ReadMe", orphan.slug)
            results.append(self._result(orphan, SyncAction.DELETE))

        return SyncReport(
            operation="prune",
            dry_run=self.dry_run,
            results=results,
            started_at=started_at,
            completed_at=_now(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _result(
        document: Document, action: SyncAction, detail: str | None = None
    ) -> SyncResult:
        return SyncResult(
            reference=document.reference,
            path=document.path,
            action=action,
            success=True,
            detail=detail,
        )

    @staticmethod
    def _failure(
        document: Document, action: SyncAction, exc: BaseException
    ) -> SyncResult:
        logger.error("Error syncing %s (%s): %s", document.reference, action.value, exc)
        return SyncResult(
            reference=document.reference,
            path=document.path,
            action=action,
            success=False,
            error=str(exc),
        )
