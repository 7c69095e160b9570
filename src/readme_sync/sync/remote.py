"""Async remote-store protocol and its ReadMe implementation.

The engine only talks to a ``RemoteStore``. ``ReadmeRemoteStore`` wraps the
blocking ``ReadmeClient`` and runs every call in the thread pool, bounded
by the request semaphore (see ``core.async_utils``).
"""

from __future__ import annotations

from typing import Any, Protocol

from ..core.async_utils import run_sync_limited
from ..core.client import ReadmeClient


class RemoteStore(Protocol):
    """Operations the sync engine needs from the remote authority."""

    async def get(self, slug: str) -> dict[str, Any]:
        """Full payload of a doc; raises ``DocNotFound`` if absent."""
        ...

    async def create(self, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def update(self, slug: str, payload: dict[str, Any]) -> dict[str, Any]: ...

    async def delete(self, slug: str) -> None: ...

    async def list_tree(self, category: str) -> list[dict[str, Any]]:
        """Doc summaries of a category, each with a ``children`` list."""
        ...

    async def get_category(self, slug: str) -> dict[str, Any]: ...


class ReadmeRemoteStore:
    """``RemoteStore`` backed by the ReadMe REST API."""

    def __init__(self, client: ReadmeClient) -> None:
        self.client = client

    async def get(self, slug: str) -> dict[str, Any]:
        return await run_sync_limited(self.client.get_doc, slug)

    async def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await run_sync_limited(self.client.create_doc, payload)

    async def update(self, slug: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await run_sync_limited(self.client.update_doc, slug, payload)

    async def delete(self, slug: str) -> None:
        await run_sync_limited(self.client.delete_doc, slug)

    async def list_tree(self, category: str) -> list[dict[str, Any]]:
        return await run_sync_limited(self.client.get_category_docs, category)

    async def get_category(self, slug: str) -> dict[str, Any]:
        return await run_sync_limited(self.client.get_category, slug)
