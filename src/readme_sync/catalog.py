"""Ordered, filterable collections of documents.

A Catalog is read-only. ``select`` narrows it into a new Catalog with the
original order preserved; order matters when a catalog mirrors a remote
tree, where parents come before their children.

Predicates are plain callables ``Document -> bool``; the factories below
cover the selections the CLI and the sync engine need.
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING, Callable, Iterable, Iterator

import yaml

from .document.model import Document

if TYPE_CHECKING:
    from .local_store import LocalStore

logger = logging.getLogger(__name__)

Predicate = Callable[[Document], bool]


class Catalog:
    """An ordered sequence of documents."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self._documents: tuple[Document, ...] = tuple(documents)

    @classmethod
    def build(cls, local_store: LocalStore) -> Catalog:
        """Read every ``<category>/[<parent>/]<slug>.md`` under the store root.

        Files at any other depth, unreadable files and files with invalid
        front matter are skipped with a warning.
        """
        documents = []
        for path in local_store.discover():
            try:
                documents.append(Document.from_path(path, local_store.read(path)))
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning("Skipping %s: %s", path, e)
        logger.debug("Built catalog of %d document(s) from %s", len(documents), local_store.root)
        return cls(documents)

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __bool__(self) -> bool:
        return bool(self._documents)

    def __repr__(self) -> str:
        return f"Catalog({[d.reference for d in self._documents]!r})"

    def select(self, *predicates: Predicate) -> Catalog:
        """Documents accepted by every predicate, in catalog order."""
        return Catalog(
            d for d in self._documents if all(p(d) for p in predicates)
        )

    def find(self, predicate: Predicate) -> Document | None:
        """First document accepted by *predicate*, or None."""
        for document in self._documents:
            if predicate(document):
                return document
        return None

    def paths(self) -> set[str]:
        return {d.path for d in self._documents}


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def by_path(path: str) -> Predicate:
    """Match the document stored at *path* (relative to the docs root)."""
    wanted = posixpath.normpath(path.replace("\\", "/"))
    return lambda document: document.path == wanted


def by_slug(slug: str) -> Predicate:
    return lambda document: document.slug == slug


def in_categories(categories: Iterable[str]) -> Predicate:
    wanted = frozenset(categories)
    return lambda document: document.category in wanted


def not_in(catalog: Catalog) -> Predicate:
    """Match documents whose path does not appear in *catalog*."""
    paths = catalog.paths()
    return lambda document: document.path not in paths
