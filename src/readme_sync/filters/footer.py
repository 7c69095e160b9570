"""Append a rendered footer to every pushed document.

The footer is wrapped between two empty Markdown link definitions, which
render as nothing on ReadMe but let ``rollback`` find and remove the block
reliably::

    <body>
    [footer]: #
    <rendered template>

    [/footer]: #

The template is a Jinja2 file. Its scope holds ``document`` (also exposed
as ``page``) plus every option of the filter, so extra keys in the YAML
config are available as template variables.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, TemplateError
from pydantic import BaseModel

from ..errors import ConfigurationError
from .base import Filter

if TYPE_CHECKING:
    from ..document.model import Document

logger = logging.getLogger(__name__)


class ContentMarker:
    """Delimits a named block of content with invisible Markdown stubs."""

    def __init__(self, name: str) -> None:
        self.name = name
        escaped = re.escape(name)
        # Greedy: one pass removes everything from the first opening
        # sentinel to the last closing one.
        self._pattern = re.compile(rf"\n\[{escaped}\]: #[\s\S]*\[/{escaped}\]: #")

    @property
    def opening(self) -> str:
        return f"[{self.name}]: #"

    def wrap(self, content: str) -> str:
        return f"\n[{self.name}]: #\n{content}\n\n[/{self.name}]: #"

    def contains(self, text: str) -> bool:
        return self._pattern.search(text) is not None

    def remove_all(self, text: str) -> str:
        return self._pattern.sub("", text)


class FooterConfig(BaseModel):
    """Options for ``footer``; unknown keys are passed to the template."""

    template: str

    model_config = {"frozen": True, "extra": "allow"}


class FooterFilter(Filter):
    name = "footer"
    config_model = FooterConfig

    def __init__(self, config: FooterConfig) -> None:
        super().__init__(config)
        self.marker = ContentMarker("footer")

        template_path = Path(config.template)
        if not template_path.is_file():
            raise ConfigurationError(f"Footer template not found: {template_path}")

        env = Environment(
            loader=FileSystemLoader(str(template_path.parent.resolve())),
            autoescape=False,
        )
        try:
            self._template = env.get_template(template_path.name)
        except TemplateError as e:
            raise ConfigurationError(
                f"Footer template {template_path} could not be loaded: {e}"
            ) from e

    def render(self, document: Document) -> str:
        scope = {**self.config.model_dump(), "document": document, "page": document}
        return self._template.render(scope)

    async def apply(self, document: Document) -> Document:
        if self.marker.contains(document.body):
            logger.warning(
                "%s already contains a footer block; it will be replaced on fetch",
                document.path,
            )
        footer = self.marker.wrap(self.render(document))
        return document.with_body(document.body + footer)

    async def rollback(self, document: Document) -> Document:
        body = self.marker.remove_all(document.body)
        if body == document.body:
            return document
        return document.with_body(body)
