"""Pydantic models for document front matter.

All models are frozen; use ``model_copy(update=...)`` to derive a changed
copy.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RelatedPages(BaseModel):
    """The "What's next" block of a document.

    Attributes:
        pages: Slugs of the related documents, in display order.
        description: Free text shown above the related pages.
    """

    pages: list[str] = Field(default_factory=list)
    description: str = ""

    model_config = {"frozen": True}


class DocumentMetadata(BaseModel):
    """Front matter of a document.

    Attributes:
        title: Page title.
        excerpt: Short summary shown under the title.
        hidden: Whether the page is hidden from navigation.
        next: Optional related pages block.
    """

    title: str = ""
    excerpt: str = ""
    hidden: bool = False
    next: RelatedPages | None = None

    model_config = {"frozen": True}
