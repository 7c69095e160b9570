"""Position-safe multi-element rewriting.

All replacements in one batch must come from the same serialized
snapshot. They are applied from the highest offset down, so splicing one
span never shifts the offsets of the spans still waiting to be applied.
The result is re-parsed into a new Document; the input is never touched.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from ..errors import StaleElementError

if TYPE_CHECKING:
    from .elements import Element
    from .model import Document

logger = logging.getLogger(__name__)


def replace_elements(
    document: Document,
    replacements: Iterable[tuple[Element, str]],
) -> Document:
    """Return a new Document with each element's span replaced.

    Args:
        document: The snapshot every element was derived from.
        replacements: ``(element, new_text)`` pairs, in any order.

    Returns:
        A Document re-parsed from the rewritten text, or *document* itself
        when there is nothing to replace.

    Raises:
        StaleElementError: If an element does not match *document*'s text.
        ValueError: If two element spans overlap.
    """
    pending = list(replacements)
    if not pending:
        return document

    for element, _ in pending:
        if not element.belongs_to(document):
            raise StaleElementError(
                f"Element {element.raw!r} at offset {element.offset} does not "
                f"belong to the current text of {document.path}"
            )

    pending.sort(key=lambda pair: pair[0].offset, reverse=True)

    for (later, _), (earlier, _) in zip(pending, pending[1:]):
        if earlier.end > later.offset:
            raise ValueError(
                f"Overlapping elements in {document.path}: "
                f"[{earlier.offset}, {earlier.end}) and [{later.offset}, {later.end})"
            )

    text = document.serialized
    for element, new_text in pending:
        text = text[: element.offset] + new_text + text[element.end :]

    logger.debug("Replaced %d element(s) in %s", len(pending), document.path)
    return type(document).from_serialized(
        document.category, document.parent, document.slug, text
    )
