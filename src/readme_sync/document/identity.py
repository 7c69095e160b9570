"""Content identity hashing.

The identity hash is the only thing the push path looks at to decide
whether a remote document is already up to date, so it must be a pure
function of the fields ReadMe actually stores:

1. ``title``
2. ``excerpt``
3. ``hidden`` (rendered ``true``/``false``)
4. ``body``, with one trailing newline removed

ReadMe always strips the last newline of a document body, so the local
side does the same before hashing. The remote document id is never part
of the digest: the same content stored under a different id (e.g. a new
docs version) hashes identically.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .metadata import DocumentMetadata


def normalize_body(body: str) -> str:
    """Drop a single trailing newline, mirroring ReadMe's storage."""
    if body.endswith("\n"):
        return body[:-1]
    return body


def hash_input(metadata: DocumentMetadata, body: str) -> str:
    """Return the exact string that gets digested."""
    return "\n".join(
        [
            metadata.title or "",
            metadata.excerpt or "",
            "true" if metadata.hidden else "false",
            normalize_body(body),
        ]
    )


def identity_hash(metadata: DocumentMetadata, body: str) -> str:
    """SHA-1 hex digest of a document's semantic content."""
    data = hash_input(metadata, body)
    return hashlib.sha1(data.encode("utf-8")).hexdigest()
