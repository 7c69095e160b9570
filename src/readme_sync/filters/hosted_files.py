"""Serve local files from a public web server.

Relative links and images point at files next to the ``.md`` documents.
ReadMe cannot resolve those, so on push every local href is rewritten to
``baseUrl + <path from the docs root>``, and on fetch any href under
``baseUrl`` is turned back into a path relative to the document.

The files are assumed to be published at the same location under
``baseUrl`` as they have under the docs root. Local hrefs must already be
normalized (no ``./``, no leading ``/``) for the round trip to be exact.
"""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING
from urllib.parse import quote, unquote

from pydantic import BaseModel, Field, field_validator

from .base import Filter

if TYPE_CHECKING:
    from ..document.elements import Link
    from ..document.model import Document

logger = logging.getLogger(__name__)


class HostedFilesConfig(BaseModel):
    """Options for ``hostedFiles``.

    Attributes:
        base_url: Public URL the docs root is published under (``baseUrl``).
    """

    base_url: str = Field(alias="baseUrl", min_length=1)

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("base_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"baseUrl must start with http:// or https://, got '{value}'")
        return value if value.endswith("/") else value + "/"


class HostedFilesFilter(Filter):
    name = "hostedFiles"
    config_model = HostedFilesConfig

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def _is_hosted(self, link: Link) -> bool:
        return link.is_url() and link.is_remote() and link.href.startswith(self.base_url)

    async def apply(self, document: Document) -> Document:
        replacements = []
        for link in document.links:
            if not (link.is_url() and link.is_local() and link.href):
                continue
            local_path = posixpath.normpath(posixpath.join(document.directory, link.href))
            replacements.append((link, link.with_href(self.base_url + quote(local_path))))

        if replacements:
            logger.debug(
                "Rehomed %d local link(s) of %s under %s",
                len(replacements),
                document.path,
                self.base_url,
            )
        return document.replace_elements(replacements)

    async def rollback(self, document: Document) -> Document:
        replacements = []
        for link in document.links:
            if not self._is_hosted(link):
                continue
            local_path = unquote(link.href[len(self.base_url):])
            relative = posixpath.relpath(local_path, document.directory)
            replacements.append((link, link.with_href(relative)))
        return document.replace_elements(replacements)
