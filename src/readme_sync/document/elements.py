"""Addressable elements of a serialized document.

An element is a span of one document's serialized text: a heading or a
link. Every element records the exact offset at which it was found, which
makes it usable for rewriting (see ``replacer``), but only against that
same snapshot of text. Any edit produces a new ``Document`` whose elements
are derived again from scratch.

Link kinds are a closed set. Classification walks ``LINK_CLASSIFIERS`` in
order and the first predicate that accepts the link wins, so an image
whose href contains ``@`` is still an image and ``doc:foo`` is a
cross-reference, never a plain URL.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable

import mistune

if TYPE_CHECKING:
    from .model import Document

logger = logging.getLogger(__name__)


# =============================================================================
# Element types
# =============================================================================


@dataclass(frozen=True)
class Element:
    """A span of a document's serialized text.

    Attributes:
        document: The document snapshot the element was parsed from.
        raw: The matched text.
        offset: Character offset of ``raw`` within ``document.serialized``.
    """

    document: Document = field(repr=False, compare=False)
    raw: str
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.raw)

    @property
    def line_number(self) -> int:
        return self.document.line_number_at(self.offset)

    @property
    def reference(self) -> str:
        """Human-readable location, ``path:line``."""
        return f"{self.document.path}:{self.line_number}"

    def belongs_to(self, document: Document) -> bool:
        """True if the element's offset is valid against *document*."""
        if self.document is not document and (
            self.document.serialized != document.serialized
        ):
            return False
        return document.serialized[self.offset : self.end] == self.raw


@dataclass(frozen=True)
class Heading(Element):
    """A section heading, located by its canonical ATX rendering."""

    depth: int
    text: str

    @property
    def markdown(self) -> str:
        return heading_markdown(self.depth, self.text)


class LinkKind(str, Enum):
    """Closed set of link variants."""

    MAILTO = "mailto"
    XREF = "xref"
    URL = "url"
    IMAGE = "image"


# Absolute (``scheme://``) or protocol-relative (``//host``) references.
_REMOTE_HREF_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*:)?//")


@dataclass(frozen=True)
class Link(Element):
    """A Markdown link or image.

    Attributes:
        kind: Which variant the link was classified as.
        label: Text between the brackets.
        href: Link target, without angle brackets.
        title: Optional quoted title.
        href_offset: Offset of ``href`` within ``raw``.
        slug: Target document slug (``XREF`` only).
        anchor: Target heading anchor (``XREF`` only).
    """

    kind: LinkKind
    label: str
    href: str
    title: str | None = None
    href_offset: int = 0
    slug: str | None = None
    anchor: str | None = None

    def is_remote(self) -> bool:
        return _REMOTE_HREF_RE.match(self.href) is not None

    def is_local(self) -> bool:
        return not self.is_remote()

    def is_url(self) -> bool:
        """True for URL links and images (an image is a marked URL link)."""
        return self.kind in (LinkKind.URL, LinkKind.IMAGE)

    def with_href(self, href: str) -> str:
        """Return ``raw`` with only the href replaced.

        Brackets, title quoting and spacing are kept byte for byte.
        """
        start = self.href_offset
        return self.raw[:start] + href + self.raw[start + len(self.href) :]


# =============================================================================
# Headings
# =============================================================================


def heading_markdown(depth: int, text: str) -> str:
    return f"{'#' * depth} {text}"


def _keep_block_tokens(md: mistune.Markdown, state: mistune.BlockState) -> None:
    # Inline rendering replaces each token's raw "text" with parsed
    # children; keep shallow copies so headings retain their source text.
    state.env["block_tokens"] = [dict(token) for token in state.tokens]


_block_lexer = mistune.create_markdown(renderer="ast")
_block_lexer.before_render_hooks.append(_keep_block_tokens)


def lex_blocks(text: str) -> list[dict]:
    """Return top-level mistune block tokens for *text*."""
    _, state = _block_lexer.parse(text)
    return state.env.get("block_tokens", [])


# Only trailing blanks or an ATX closing sequence may follow the heading text.
_HEADING_TAIL_RE = re.compile(r"(?:[ \t]+#+)?[ \t]*(?:\r?\n|\Z)")


def find_heading(document: Document, markdown: str) -> int:
    """Offset of the first body line starting with *markdown*, or -1."""
    serialized = document.serialized
    offset = document.index_of(markdown, document.body_offset)
    while offset >= 0:
        end = offset + len(markdown)
        at_line_start = offset == 0 or serialized[offset - 1] == "\n"
        if at_line_start and _HEADING_TAIL_RE.match(serialized, end):
            return offset
        offset = document.index_of(markdown, offset + 1)
    return -1


def parse_headings(document: Document) -> list[Heading]:
    """Find the top-level headings of *document*'s body.

    Offsets are resolved by searching the body part of
    ``document.serialized`` for the canonical rendering at the start of a
    line, so two identically rendered headings both point at the first
    occurrence.
    """
    headings: list[Heading] = []
    seen: set[str] = set()

    for token in lex_blocks(document.body):
        if token.get("type") != "heading":
            continue
        depth = token["attrs"]["level"]
        text = token.get("text", "").strip()
        markdown = heading_markdown(depth, text)

        offset = find_heading(document, markdown)
        if offset < 0:
            logger.warning(
                "Heading '%s' in %s has no canonical '#' rendering in the source; skipping",
                text,
                document.path,
            )
            continue
        if markdown in seen:
            logger.debug(
                "Ambiguous heading '%s' in %s resolves to its first occurrence",
                markdown,
                document.path,
            )
        seen.add(markdown)

        headings.append(
            Heading(
                document=document,
                raw=markdown,
                offset=offset,
                depth=depth,
                text=text,
            )
        )
    return headings


# =============================================================================
# Links
# =============================================================================

_LINK_RE = re.compile(
    r"!?\[(?P<label>.*?)\]\( *<?(?P<href>.*?)>?"
    r"(?: *[\"'(](?P<title>.*?)[\"')])? *\)"
)

_XREF_PATTERNS = (
    re.compile(r"^doc:(?P<slug>[a-zA-Z0-9-]+)(#(?P<anchor>.*))?"),
    re.compile(r"^#(?P<anchor>.*)"),
)


def match_xref(href: str) -> re.Match | None:
    """Match *href* against the cross-reference forms, first pattern wins."""
    for pattern in _XREF_PATTERNS:
        match = pattern.match(href)
        if match is not None:
            return match
    return None


def _is_image(raw: str, href: str) -> bool:
    return raw.startswith("!")


def _is_mailto(raw: str, href: str) -> bool:
    return "@" in href


def _is_xref(raw: str, href: str) -> bool:
    return match_xref(href) is not None


def _is_url(raw: str, href: str) -> bool:
    return True


# Evaluated in order; the first predicate returning True decides the kind.
LINK_CLASSIFIERS: tuple[tuple[Callable[[str, str], bool], LinkKind], ...] = (
    (_is_image, LinkKind.IMAGE),
    (_is_mailto, LinkKind.MAILTO),
    (_is_xref, LinkKind.XREF),
    (_is_url, LinkKind.URL),
)


def classify_link(
    raw: str,
    href: str,
    classifiers: tuple[
        tuple[Callable[[str, str], bool], LinkKind], ...
    ] = LINK_CLASSIFIERS,
) -> LinkKind | None:
    """Return the kind of the first classifier accepting the link."""
    for predicate, kind in classifiers:
        if predicate(raw, href):
            return kind
    return None


def parse_links(
    document: Document,
    classifiers: tuple[
        tuple[Callable[[str, str], bool], LinkKind], ...
    ] = LINK_CLASSIFIERS,
) -> list[Link]:
    """Find every link and image in ``document.serialized``.

    Links that no classifier accepts are logged and left out.
    """
    links: list[Link] = []
    for match in _LINK_RE.finditer(document.serialized):
        raw = match.group(0)
        href = match.group("href")

        kind = classify_link(raw, href, classifiers)
        if kind is None:
            logger.warning(
                "Link [%s] in %s does not correspond to a supported type of link",
                href,
                document.path,
            )
            continue

        slug = anchor = None
        if kind is LinkKind.XREF:
            xref = match_xref(href)
            if xref is not None:
                slug = xref.groupdict().get("slug")
                anchor = xref.group("anchor")

        links.append(
            Link(
                document=document,
                raw=raw,
                offset=match.start(),
                kind=kind,
                label=match.group("label"),
                href=href,
                title=match.group("title"),
                href_offset=match.start("href") - match.start(),
                slug=slug,
                anchor=anchor,
            )
        )
    return links
