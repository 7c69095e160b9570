"""Reconciliation between the local docs directory and ReadMe.

Architecture
------------
Change detection rests on one value, the document identity hash (see
``readme_sync.document.identity``). Push recomputes it from the remote
payload and from the filtered local document; equal hashes mean nothing
to do. There is no sync state file and no merge: the last writer wins.

Modules:

- ``engine``   -- ``SyncEngine``: push, fetch, prune and stale removal.
- ``remote``   -- ``RemoteStore`` protocol and ``ReadmeRemoteStore``.
- ``payloads`` -- ReadMe payload <-> ``Document`` conversion.
- ``models``   -- ``SyncAction``, ``SyncResult``, ``SyncReport``.
- ``reporter`` -- Human-readable and JSON report formatting.

Usage example
-------------
::

    from readme_sync.catalog import Catalog, in_categories
    from readme_sync.core.client import ReadmeClient
    from readme_sync.local_store import LocalStore
    from readme_sync.sync import ReadmeRemoteStore, SyncEngine, format_sync_report

    store = LocalStore("docs")
    catalog = Catalog.build(store)
    engine = SyncEngine(ReadmeRemoteStore(ReadmeClient(config)), store, catalog)

    report = await engine.push(catalog.select(in_categories(["guides"])))
    print(format_sync_report(report))
"""

from .engine import SyncEngine, SyncOptions, walk_tree
from .models import SyncAction, SyncReport, SyncResult
from .remote import ReadmeRemoteStore, RemoteStore
from .reporter import (
    format_dry_run_preview,
    format_stale_warning,
    format_sync_report,
    report_to_json,
)

__all__ = [
    "ReadmeRemoteStore",
    "RemoteStore",
    "SyncAction",
    "SyncEngine",
    "SyncOptions",
    "SyncReport",
    "SyncResult",
    "format_dry_run_preview",
    "format_stale_warning",
    "format_sync_report",
    "report_to_json",
    "walk_tree",
]
