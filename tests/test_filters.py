"""
Tests for the content filters and the pipeline built from configuration.
"""

import pytest

from readme_sync.document import Document
from readme_sync.errors import ConfigurationError
from readme_sync.filters import (
    ContentMarker,
    FilterPipeline,
    FooterFilter,
    HostedFilesFilter,
    create_pipeline,
)

BASE_URL = "https://cdn.example.com/docs/"


def _doc(body: str, parent: str | None = None) -> Document:
    return Document(category="guides", parent=parent, slug="intro", body=body)


@pytest.fixture
def hosted():
    return HostedFilesFilter.from_options({"baseUrl": "https://cdn.example.com/docs"})


@pytest.fixture
def footer_template(tmp_path):
    template = tmp_path / "footer.md"
    template.write_text("Edit {{ page.path }} on {{ repo }}", encoding="utf-8")
    return template


# ---------------------------------------------------------------------------
# hostedFiles
# ---------------------------------------------------------------------------


class TestHostedFiles:
    def test_base_url_gets_trailing_slash(self, hosted):
        assert hosted.base_url == BASE_URL

    def test_invalid_base_url(self):
        with pytest.raises(ConfigurationError, match="hostedFiles"):
            HostedFilesFilter.from_options({"baseUrl": "cdn.example.com"})

    def test_missing_base_url(self):
        with pytest.raises(ConfigurationError):
            HostedFilesFilter.from_options({})

    async def test_apply_rewrites_local_links(self, hosted):
        document = _doc("![a](a.png) and [b](sub/b.pdf)\n")

        pushed = await hosted.apply(document)

        assert pushed.body == (
            f"![a]({BASE_URL}guides/a.png) and [b]({BASE_URL}guides/sub/b.pdf)\n"
        )

    async def test_apply_uses_document_directory(self, hosted):
        pushed = await hosted.apply(_doc("![a](../shared/a.png)\n", parent="intro"))
        assert pushed.body == f"![a]({BASE_URL}guides/shared/a.png)\n"

    async def test_apply_quotes_paths(self, hosted):
        pushed = await hosted.apply(_doc("[a](<my file.pdf>)\n"))
        assert pushed.body == f"[a](<{BASE_URL}guides/my%20file.pdf>)\n"

    async def test_apply_leaves_other_links(self, hosted):
        body = "[x](doc:other) [m](mailto:a@b.c) [r](https://example.com/a.png)\n"
        document = _doc(body)

        assert (await hosted.apply(document)) is document

    async def test_round_trip(self, hosted):
        document = _doc("![a](a.png) and [b](sub/b.pdf \"B\")\n")

        restored = await hosted.rollback(await hosted.apply(document))

        assert restored.serialized == document.serialized

    async def test_round_trip_with_quoting(self, hosted):
        document = _doc("[a](<my file.pdf>)\n", parent="intro")
        restored = await hosted.rollback(await hosted.apply(document))
        assert restored.body == document.body

    async def test_rollback_ignores_foreign_urls(self, hosted):
        document = _doc("[a](https://elsewhere.example.com/a.png)\n")
        assert (await hosted.rollback(document)) is document


# ---------------------------------------------------------------------------
# footer
# ---------------------------------------------------------------------------


class TestContentMarker:
    def test_wrap_and_remove(self):
        marker = ContentMarker("footer")
        text = "Body\n" + marker.wrap("Hi")

        assert marker.contains(text)
        assert marker.remove_all(text) == "Body\n"

    def test_remove_all_spans_every_block(self):
        marker = ContentMarker("footer")
        text = "Body\n" + marker.wrap("one") + "\n" + marker.wrap("two")
        assert marker.remove_all(text) == "Body\n"


class TestFooter:
    async def test_apply_appends_wrapped_footer(self, footer_template):
        footer = FooterFilter.from_options(
            {"template": str(footer_template), "repo": "GitHub"}
        )

        pushed = await footer.apply(_doc("Body\n"))

        assert pushed.body == (
            "Body\n\n[footer]: #\nEdit guides/intro.md on GitHub\n\n[/footer]: #"
        )

    async def test_round_trip(self, footer_template):
        footer = FooterFilter.from_options(
            {"template": str(footer_template), "repo": "GitHub"}
        )
        document = _doc("Body\n")

        restored = await footer.rollback(await footer.apply(document))

        assert restored.body == "Body\n"
        assert restored.serialized == document.serialized

    async def test_rollback_without_footer_is_noop(self, footer_template):
        footer = FooterFilter.from_options({"template": str(footer_template)})
        document = _doc("Body\n")
        assert (await footer.rollback(document)) is document

    async def test_footer_is_invisible_to_links(self, footer_template):
        footer = FooterFilter.from_options(
            {"template": str(footer_template), "repo": "x"}
        )
        pushed = await footer.apply(_doc("Body\n"))
        assert pushed.links == []

    def test_missing_template(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            FooterFilter.from_options({"template": str(tmp_path / "missing.md")})

    def test_template_is_required(self):
        with pytest.raises(ConfigurationError, match="footer"):
            FooterFilter.from_options({})


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class TestPipeline:
    def test_empty_config(self):
        pipeline = create_pipeline(None)
        assert len(pipeline) == 0
        assert pipeline.names == []

    def test_order_follows_config(self, footer_template):
        pipeline = create_pipeline(
            {
                "footer": {"template": str(footer_template)},
                "hostedFiles": {"baseUrl": BASE_URL},
            }
        )
        assert pipeline.names == ["footer", "hostedFiles"]

    def test_unknown_filter(self):
        with pytest.raises(ConfigurationError) as exc_info:
            create_pipeline({"shout": {}})
        message = str(exc_info.value)
        assert "Unknown filter [shout]" in message
        assert "footer, hostedFiles" in message

    async def test_apply_and_rollback_in_order(self, footer_template):
        footer_template.write_text("![badge](badge.png)", encoding="utf-8")
        pipeline = create_pipeline(
            {
                "footer": {"template": str(footer_template)},
                "hostedFiles": {"baseUrl": BASE_URL},
            }
        )
        document = _doc("![a](a.png)\n")

        pushed = await pipeline.apply(document)

        # The footer is added first, so hostedFiles rewrites its image too.
        assert f"![badge]({BASE_URL}guides/badge.png)" in pushed.body
        assert f"![a]({BASE_URL}guides/a.png)" in pushed.body

        restored = await pipeline.rollback(pushed)
        assert restored.serialized == document.serialized

    async def test_empty_pipeline_is_identity(self):
        document = _doc("Body\n")
        pipeline = FilterPipeline()
        assert (await pipeline.apply(document)) is document
        assert (await pipeline.rollback(document)) is document
