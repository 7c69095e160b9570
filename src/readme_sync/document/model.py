"""The Document type.

A Document is immutable. Its serialized form, identity hash and element
list are derived lazily from ``(metadata, body)`` and cached on the
instance, so every element of one Document points into the same string.
Editing goes through ``with_body``, ``with_metadata``, ``replace_elements``
or ``from_serialized``, each of which returns a fresh Document.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import Any, Callable, Iterable

from . import frontmatter
from .elements import Element, Heading, Link, LinkKind, parse_headings, parse_links
from .identity import identity_hash
from .metadata import DocumentMetadata
from .replacer import replace_elements

DOCUMENT_EXTENSION = ".md"


@dataclass(frozen=True)
class Document:
    """One page, addressed by ``category[:parent]:slug``.

    Attributes:
        category: Category slug the document belongs to.
        parent: Slug of the parent document, if any.
        slug: Document slug, unique within its category/parent scope.
        body: Markdown body, without front matter.
        metadata: Front matter fields.
    """

    category: str
    parent: str | None
    slug: str
    body: str = ""
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    @classmethod
    def from_serialized(
        cls,
        category: str,
        parent: str | None,
        slug: str,
        text: str,
    ) -> Document:
        """Parse the persisted shape (front matter + body)."""
        metadata, body = frontmatter.parse(text)
        return cls(
            category=category,
            parent=parent,
            slug=slug,
            body=body,
            metadata=metadata,
        )

    @classmethod
    def from_path(cls, path: str, text: str) -> Document:
        """Build a document from a ``category/[parent/]slug.md`` path."""
        parts = path.replace("\\", "/").split("/")
        if len(parts) not in (2, 3) or not parts[-1].endswith(DOCUMENT_EXTENSION):
            raise ValueError(
                f"Expected '<category>/[<parent>/]<slug>{DOCUMENT_EXTENSION}', got '{path}'"
            )
        slug = parts[-1][: -len(DOCUMENT_EXTENSION)]
        parent = parts[1] if len(parts) == 3 else None
        return cls.from_serialized(parts[0], parent, slug, text)

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    @property
    def directory(self) -> str:
        if self.parent:
            return posixpath.join(self.category, self.parent)
        return self.category

    @property
    def filename(self) -> str:
        return f"{self.slug}{DOCUMENT_EXTENSION}"

    @property
    def path(self) -> str:
        return posixpath.join(self.directory, self.filename)

    @property
    def reference(self) -> str:
        return ":".join(
            part for part in (self.category, self.parent, self.slug) if part
        )

    # ------------------------------------------------------------------
    # Metadata shortcuts
    # ------------------------------------------------------------------

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def excerpt(self) -> str:
        return self.metadata.excerpt

    @property
    def hidden(self) -> bool:
        return self.metadata.hidden

    # ------------------------------------------------------------------
    # Derived content
    # ------------------------------------------------------------------

    @cached_property
    def serialized(self) -> str:
        return frontmatter.serialize(self.metadata, self.body)

    @cached_property
    def identity_hash(self) -> str:
        return identity_hash(self.metadata, self.body)

    @cached_property
    def elements(self) -> tuple[Element, ...]:
        return (*parse_headings(self), *parse_links(self))

    @property
    def headings(self) -> list[Heading]:
        return [e for e in self.elements if isinstance(e, Heading)]

    @property
    def links(self) -> list[Link]:
        return [e for e in self.elements if isinstance(e, Link)]

    @property
    def images(self) -> list[Link]:
        return [link for link in self.links if link.kind is LinkKind.IMAGE]

    def find_element(self, predicate: Callable[[Element], bool]) -> Element | None:
        for element in self.elements:
            if predicate(element):
                return element
        return None

    @property
    def body_offset(self) -> int:
        """Offset at which ``body`` starts within ``serialized``."""
        return len(self.serialized) - len(self.body)

    def index_of(self, text: str, start: int = 0) -> int:
        """Offset of the first occurrence of *text* in ``serialized``, or -1."""
        return self.serialized.find(text, start)

    def line_number_at(self, offset: int) -> int:
        """1-based line number of *offset* in ``serialized``."""
        return self.serialized.count("\n", 0, offset) + 1

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def with_body(self, body: str) -> Document:
        return replace(self, body=body)

    def with_metadata(self, **changes: Any) -> Document:
        return replace(self, metadata=self.metadata.model_copy(update=changes))

    def replace_elements(
        self, replacements: Iterable[tuple[Element, str]]
    ) -> Document:
        """Rewrite several elements at once; see ``replacer.replace_elements``."""
        return replace_elements(self, replacements)
