"""
Tests for readme_sync.catalog.
"""

import logging

from readme_sync.catalog import Catalog, by_path, by_slug, in_categories, not_in
from readme_sync.document import Document


def _docs(*paths: str) -> list[Document]:
    return [Document.from_path(path, "") for path in paths]


class TestBuild:
    def test_reads_every_document(self, write_doc, local_store):
        write_doc("guides/intro.md", title="Intro")
        write_doc("guides/intro/install.md", title="Install")

        catalog = Catalog.build(local_store)

        assert [d.path for d in catalog] == ["guides/intro.md", "guides/intro/install.md"]
        assert catalog.find(by_slug("install")).title == "Install"

    def test_skips_files_at_other_depths(self, local_store, caplog):
        local_store.write("README.md", "top level")
        local_store.write("guides/intro.md", "x")

        with caplog.at_level(logging.WARNING, logger="readme_sync.catalog"):
            catalog = Catalog.build(local_store)

        assert len(catalog) == 1
        assert "Skipping README.md" in caplog.text

    def test_skips_invalid_front_matter(self, local_store, caplog):
        local_store.write("guides/broken.md", "---\ntitle: [oops\n---\n\nBody\n")
        local_store.write("guides/intro.md", "x")

        with caplog.at_level(logging.WARNING, logger="readme_sync.catalog"):
            catalog = Catalog.build(local_store)

        assert [d.slug for d in catalog] == ["intro"]
        assert "Skipping guides/broken.md" in caplog.text

    def test_skips_unreadable_files(self, local_store, monkeypatch, caplog):
        local_store.write("guides/locked.md", "x")
        local_store.write("guides/intro.md", "x")
        read = local_store.read

        def guarded_read(path):
            if path == "guides/locked.md":
                raise PermissionError(13, "Permission denied", path)
            return read(path)

        monkeypatch.setattr(local_store, "read", guarded_read)

        with caplog.at_level(logging.WARNING, logger="readme_sync.catalog"):
            catalog = Catalog.build(local_store)

        assert [d.slug for d in catalog] == ["intro"]
        assert "Skipping guides/locked.md" in caplog.text


class TestSelect:
    def test_preserves_order(self):
        catalog = Catalog(_docs("b/z.md", "a/y.md", "b/x.md"))
        selected = catalog.select(in_categories(["b"]))
        assert [d.slug for d in selected] == ["z", "x"]

    def test_all_predicates_must_match(self):
        catalog = Catalog(_docs("guides/a.md", "guides/b.md", "api/a.md"))
        selected = catalog.select(in_categories(["guides"]), by_slug("a"))
        assert [d.path for d in selected] == ["guides/a.md"]

    def test_empty_selection_is_falsy(self):
        assert not Catalog(_docs("guides/a.md")).select(by_slug("missing"))

    def test_find_returns_none(self):
        assert Catalog().find(by_slug("a")) is None


class TestPredicates:
    def test_by_path_normalizes(self):
        document = _docs("guides/intro/install.md")[0]
        assert by_path("guides/./intro/install.md")(document)
        assert by_path("guides\\intro\\install.md")(document)
        assert not by_path("guides/install.md")(document)

    def test_not_in(self):
        pushed = Catalog(_docs("guides/a.md"))
        remote = Catalog(_docs("guides/a.md", "guides/b.md"))
        assert [d.slug for d in remote.select(not_in(pushed))] == ["b"]
