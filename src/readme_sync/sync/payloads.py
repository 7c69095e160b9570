"""Conversion between ReadMe doc payloads and Documents.

ReadMe stores related pages as objects (``{slug, name, icon, type}``)
while the local front matter lists slugs only. On the way out each slug is
resolved against the local catalog so the name can be filled in; slugs
with no local document are dropped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Mapping

from ..catalog import by_slug
from ..document.identity import identity_hash
from ..document.metadata import DocumentMetadata, RelatedPages
from ..document.model import Document

if TYPE_CHECKING:
    from ..catalog import Catalog

logger = logging.getLogger(__name__)

RELATED_PAGE_ICON = "file-text-o"
RELATED_PAGE_TYPE = "doc"


def payload_metadata(payload: Mapping[str, Any]) -> DocumentMetadata:
    """Front matter fields of a full doc payload."""
    next_data = payload.get("next") or {}
    pages = next_data.get("pages") or []

    related = None
    if pages:
        related = RelatedPages(
            pages=[p["slug"] if isinstance(p, Mapping) else str(p) for p in pages],
            description=next_data.get("description") or "",
        )

    return DocumentMetadata(
        title=payload.get("title") or "",
        excerpt=payload.get("excerpt") or "",
        hidden=bool(payload.get("hidden")),
        next=related,
    )


def remote_identity_hash(payload: Mapping[str, Any]) -> str:
    """Identity hash recomputed from what ReadMe actually stores."""
    return identity_hash(payload_metadata(payload), payload.get("body") or "")


def payload_to_document(
    payload: Mapping[str, Any],
    category: str,
    parent: str | None = None,
) -> Document:
    return Document(
        category=category,
        parent=parent,
        slug=payload["slug"],
        body=payload.get("body") or "",
        metadata=payload_metadata(payload),
    )


def resolve_related_pages(
    slugs: Iterable[str], catalog: Catalog | None
) -> list[dict[str, str]]:
    resolved = []
    for slug in slugs:
        target = catalog.find(by_slug(slug)) if catalog is not None else None
        if target is None:
            logger.warning("Related page '%s' not found in the local catalog; dropping it", slug)
            continue
        resolved.append(
            {
                "slug": target.slug,
                "name": target.title,
                "icon": RELATED_PAGE_ICON,
                "type": RELATED_PAGE_TYPE,
            }
        )
    return resolved


def document_to_payload(
    document: Document, catalog: Catalog | None = None
) -> dict[str, Any]:
    """Fields ReadMe accepts for creating or updating a doc."""
    related = document.metadata.next
    return {
        "title": document.title,
        "excerpt": document.excerpt,
        "hidden": document.hidden,
        "body": document.body,
        "next": {
            "pages": resolve_related_pages(related.pages, catalog) if related else [],
            "description": related.description if related else "",
        },
    }
