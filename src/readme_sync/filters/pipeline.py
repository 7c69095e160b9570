"""Filter registry and the ordered pipeline built from configuration.

``create_pipeline`` turns the YAML ``filters`` mapping into a
``FilterPipeline``. Mapping order is application order, and the same
forward order is used for ``rollback``. Unknown names and invalid options
raise ``ConfigurationError`` here, before any remote call is made.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping

from ..errors import ConfigurationError
from .base import Filter
from .footer import FooterFilter
from .hosted_files import HostedFilesFilter

if TYPE_CHECKING:
    from ..document.model import Document

logger = logging.getLogger(__name__)

FILTER_REGISTRY: dict[str, type[Filter]] = {
    HostedFilesFilter.name: HostedFilesFilter,
    FooterFilter.name: FooterFilter,
}


class FilterPipeline:
    """Filters applied one after another to a single document."""

    def __init__(self, filters: Iterable[Filter] = ()) -> None:
        self.filters: tuple[Filter, ...] = tuple(filters)

    def __len__(self) -> int:
        return len(self.filters)

    def __iter__(self) -> Iterator[Filter]:
        return iter(self.filters)

    @property
    def names(self) -> list[str]:
        return [f.name for f in self.filters]

    async def apply(self, document: Document) -> Document:
        for content_filter in self.filters:
            document = await content_filter.apply(document)
        return document

    async def rollback(self, document: Document) -> Document:
        for content_filter in self.filters:
            document = await content_filter.rollback(document)
        return document


def create_pipeline(
    filters_config: Mapping[str, Mapping[str, Any] | None] | None,
    registry: Mapping[str, type[Filter]] = FILTER_REGISTRY,
) -> FilterPipeline:
    """Build a pipeline from an ordered ``{name: options}`` mapping.

    Raises:
        ConfigurationError: On an unknown filter name, invalid options or a
            missing footer template.
    """
    filters = []
    for name, options in (filters_config or {}).items():
        filter_cls = registry.get(name)
        if filter_cls is None:
            raise ConfigurationError(
                f"Unknown filter [{name}] specified in config file. "
                f"Available filters: {', '.join(sorted(registry))}"
            )
        filters.append(filter_cls.from_options(options))

    pipeline = FilterPipeline(filters)
    logger.debug("Filter pipeline: %s", pipeline.names or "(empty)")
    return pipeline
