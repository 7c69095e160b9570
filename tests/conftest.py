"""Shared pytest fixtures for readme-sync tests."""

import copy
from typing import Any

import pytest
from dotenv import load_dotenv

from readme_sync.config import Config
from readme_sync.document import Document
from readme_sync.errors import DocNotFound
from readme_sync.local_store import LocalStore

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live ReadMe project",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live ReadMe project"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def reset_semaphore():
    """Each test runs on its own loop; never share the request semaphore."""
    import readme_sync.core.async_utils as mod

    original = mod._semaphore
    mod._semaphore = None
    yield
    mod._semaphore = original


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        api_key="rdme_test_key",
        docs_version="1.0",
        api_url="https://dash.readme.example/api/v1",
    )


@pytest.fixture
def local_store(tmp_path):
    """A LocalStore rooted at a fresh docs directory."""
    root = tmp_path / "docs"
    root.mkdir()
    return LocalStore(root)


@pytest.fixture
def write_doc(local_store):
    """Factory fixture writing a serialized document into the local store."""

    def _write(path: str, body: str = "Hello\n", **metadata: Any) -> Document:
        document = Document.from_path(path, "").with_body(body)
        if metadata:
            document = document.with_metadata(**metadata)
        local_store.write(document.path, document.serialized)
        return document

    return _write


class FakeRemoteStore:
    """In-memory RemoteStore that records every call in order.

    ``docs`` maps slug to full payload, ``trees`` maps category slug to its
    doc forest. ``failures`` maps ``(method, key)`` to an exception raised
    instead of performing the call.
    """

    def __init__(self):
        self.docs: dict[str, dict[str, Any]] = {}
        self.trees: dict[str, list[dict[str, Any]]] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str]] = []

    def _record(self, method: str, key: str) -> None:
        self.calls.append((method, key))
        failure = self.failures.get((method, key))
        if failure is not None:
            raise failure

    def calls_to(self, method: str) -> list[str]:
        return [key for name, key in self.calls if name == method]

    def add_doc(
        self, slug: str, category: str, parent: str | None = None, **fields: Any
    ) -> dict[str, Any]:
        """Store a doc payload and hang it in its category tree."""
        payload = {
            "_id": f"id-{slug}",
            "slug": slug,
            "title": slug.title(),
            "excerpt": "",
            "hidden": False,
            "body": "",
            "next": {"pages": [], "description": ""},
            **fields,
        }
        self.docs[slug] = payload

        node = {"slug": slug, "title": payload["title"], "children": []}
        if parent is None:
            self.trees.setdefault(category, []).append(node)
        else:
            self._find_node(self.trees[category], parent)["children"].append(node)
        return payload

    def _find_node(self, nodes: list[dict[str, Any]], slug: str) -> dict[str, Any]:
        for node in nodes:
            if node["slug"] == slug:
                return node
            try:
                return self._find_node(node["children"], slug)
            except KeyError:
                continue
        raise KeyError(slug)

    async def get(self, slug: str) -> dict[str, Any]:
        self._record("get", slug)
        if slug not in self.docs:
            raise DocNotFound(slug)
        return copy.deepcopy(self.docs[slug])

    async def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        self._record("create", payload["slug"])
        stored = {**copy.deepcopy(payload), "_id": f"id-{payload['slug']}"}
        self.docs[payload["slug"]] = stored
        return stored

    async def update(self, slug: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._record("update", slug)
        self.docs[slug] = copy.deepcopy(payload)
        return payload

    async def delete(self, slug: str) -> None:
        self._record("delete", slug)
        self.docs.pop(slug, None)

    async def list_tree(self, category: str) -> list[dict[str, Any]]:
        self._record("list_tree", category)
        return copy.deepcopy(self.trees.get(category, []))

    async def get_category(self, slug: str) -> dict[str, Any]:
        self._record("get_category", slug)
        return {"_id": f"cat-{slug}", "slug": slug}


@pytest.fixture
def fake_remote():
    """An empty FakeRemoteStore."""
    return FakeRemoteStore()
