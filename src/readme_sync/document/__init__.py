"""Document model: metadata, serialization, elements and identity."""

from .elements import (
    LINK_CLASSIFIERS,
    Element,
    Heading,
    Link,
    LinkKind,
    classify_link,
)
from .metadata import DocumentMetadata, RelatedPages
from .model import Document
from .replacer import replace_elements

__all__ = [
    "Document",
    "DocumentMetadata",
    "Element",
    "Heading",
    "LINK_CLASSIFIERS",
    "Link",
    "LinkKind",
    "RelatedPages",
    "classify_link",
    "replace_elements",
]
