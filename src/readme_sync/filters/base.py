"""Base class for content filters.

A filter gives a document a different representation on ReadMe than in
the local ``.md`` file. ``apply`` runs on the way to ReadMe and
``rollback`` on the way back, and the pair must be symmetric:
``rollback(apply(doc))`` reproduces ``doc`` exactly for every document
within the filter's precondition. Anything a filter does not recognise
passes through both directions untouched.

Each filter declares a pydantic ``config_model``; options from the YAML
``filters`` mapping are validated against it when the pipeline is built.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Mapping

from pydantic import BaseModel, ValidationError

from ..errors import ConfigurationError

if TYPE_CHECKING:
    from ..document.model import Document


class Filter(ABC):
    """A named, independently configured, bidirectional transform."""

    name: ClassVar[str]
    config_model: ClassVar[type[BaseModel]]

    def __init__(self, config: BaseModel) -> None:
        self.config = config

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> Filter:
        """Validate raw options and build the filter.

        Raises:
            ConfigurationError: If the options do not validate.
        """
        try:
            config = cls.config_model(**dict(options or {}))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid options for filter '{cls.name}': {e}"
            ) from e
        return cls(config)

    @abstractmethod
    async def apply(self, document: Document) -> Document:
        """Transform a local document into its remote representation."""

    @abstractmethod
    async def rollback(self, document: Document) -> Document:
        """Undo ``apply`` on a fetched document."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.config!r})"
