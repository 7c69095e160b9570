import logging
import threading
from typing import Any

import requests

from ..config import Config
from ..errors import DocNotFound, TransportError

logger = logging.getLogger(__name__)


class ReadmeClient:
    """Blocking client for the ReadMe v1 REST API.

    One ``requests.Session`` per thread; the async layer calls into this
    client from ``asyncio.to_thread`` workers.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.api_url = config.api_url.rstrip("/")

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        # ReadMe takes the API key as the basic-auth user with no password.
        session.auth = (self.config.api_key, "")
        session.headers.update(
            {
                "x-readme-version": self.config.docs_version,
                "Accept": "application/json",
            }
        )
        return session

    def _request(
        self,
        method: str,
        path: str,
        payload: dict | None = None,
        missing_slug: str | None = None,
    ) -> Any:
        """
        Send one request and decode the JSON response.

        Raises:
            DocNotFound: On 404 when *missing_slug* is given.
            TransportError: On any other HTTP or connection failure.
        """
        url = f"{self.api_url}/{path.lstrip('/')}"
        logger.debug("%s %s", method, url)
        try:
            response = self._get_session().request(
                method,
                url,
                json=payload,
                timeout=(10, 60),
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if response.status_code == 404 and missing_slug is not None:
            raise DocNotFound(missing_slug)

        if not response.ok:
            raise TransportError(
                f"{method} {url} returned {response.status_code}: "
                f"{self._error_message(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body)
        return str(body)

    # ------------------------------------------------------------------
    # Docs
    # ------------------------------------------------------------------

    def get_doc(self, slug: str) -> dict:
        """
        Load a document's full payload by slug.

        Raises:
            DocNotFound: If no document has this slug.
        """
        return self._request("GET", f"docs/{slug}", missing_slug=slug)

    def create_doc(self, payload: dict) -> dict:
        return self._request("POST", "docs", payload)

    def update_doc(self, slug: str, payload: dict) -> dict:
        return self._request("PUT", f"docs/{slug}", payload, missing_slug=slug)

    def delete_doc(self, slug: str) -> None:
        self._request("DELETE", f"docs/{slug}", missing_slug=slug)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_category(self, slug: str) -> dict:
        return self._request("GET", f"categories/{slug}")

    def get_category_docs(self, slug: str) -> list[dict]:
        """
        List a category's documents as a forest.

        Each entry is a summary (``slug``, ``title``, ...) with a
        ``children`` list of the same shape.
        """
        return self._request("GET", f"categories/{slug}/docs") or []
