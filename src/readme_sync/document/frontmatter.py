"""Read and write the persisted document shape.

Both the local files and the pipeline operate on this exact string::

    ---
    title: "Getting started"
    excerpt: "First steps"
    hidden: true
    next:
      description: "Read on"
      pages:
        - "install"
    ---

    Body text...

Key order is fixed. ``hidden`` is only written when true and ``next`` only
when related pages exist. Scalars are written as JSON strings, which are
valid YAML double-quoted scalars, so titles containing quotes or colons
survive a round trip through ``yaml.safe_load``.
"""

from __future__ import annotations

import json
import re

import yaml

from .metadata import DocumentMetadata, RelatedPages

FRONT_MATTER_DELIMITER = "---"

# Opening delimiter, YAML block, closing delimiter, then at most one blank line.
_FRONT_MATTER_RE = re.compile(
    r"\A---\r?\n(?:(?P<yaml>.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)(?:\r?\n)?",
    re.DOTALL,
)


# Characters YAML will not read back verbatim from a double-quoted scalar.
_YAML_UNSAFE_RE = re.compile("[\x7f-\x9f\u2028\u2029\ufeff\ufffe\uffff\ud800-\udfff]")


def _quote(value: str) -> str:
    quoted = json.dumps(value, ensure_ascii=False)
    return _YAML_UNSAFE_RE.sub(lambda m: f"\\u{ord(m.group()):04x}", quoted)


def render_front_matter(metadata: DocumentMetadata) -> str:
    """Render the metadata block, delimiters included, without trailing newline."""
    lines = [
        FRONT_MATTER_DELIMITER,
        f"title: {_quote(metadata.title)}",
        f"excerpt: {_quote(metadata.excerpt)}",
    ]
    if metadata.hidden:
        lines.append("hidden: true")
    if metadata.next is not None:
        lines.append("next:")
        lines.append(f"  description: {_quote(metadata.next.description)}")
        if metadata.next.pages:
            lines.append("  pages:")
            lines.extend(f"    - {_quote(slug)}" for slug in metadata.next.pages)
        else:
            lines.append("  pages: []")
    lines.append(FRONT_MATTER_DELIMITER)
    return "\n".join(lines)


def serialize(metadata: DocumentMetadata, body: str) -> str:
    """Metadata block, one blank line, then the body verbatim."""
    return f"{render_front_matter(metadata)}\n\n{body}"


def parse(text: str) -> tuple[DocumentMetadata, str]:
    """Split serialized text into ``(metadata, body)``.

    Text without a front matter block yields default metadata and the
    whole text as body. Unknown keys are ignored.

    Raises:
        yaml.YAMLError: If the front matter is not valid YAML.
    """
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return DocumentMetadata(), text

    data = yaml.safe_load(match.group("yaml") or "") or {}
    if not isinstance(data, dict):
        data = {}

    body = text[match.end():]
    return _metadata_from_dict(data), body


def _metadata_from_dict(data: dict) -> DocumentMetadata:
    related = None
    next_data = data.get("next")
    if isinstance(next_data, dict):
        pages = next_data.get("pages") or []
        if not isinstance(pages, list):
            pages = [pages]
        related = RelatedPages(
            pages=[str(slug) for slug in pages],
            description=next_data.get("description") or "",
        )

    return DocumentMetadata(
        title=_as_text(data.get("title")),
        excerpt=_as_text(data.get("excerpt")),
        hidden=data.get("hidden") or False,
        next=related,
    )


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value)
