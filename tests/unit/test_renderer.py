"""
Unit Tests for Article Renderer
===============================

Loading, highlighting and publishing of articles, including the
observable guarantees of the published dynamic frameworks page.
"""

import pydantic
import pytest
from bs4 import BeautifulSoup

from article_render.core.markup.parser import ArticleLoadError
from article_render.core.rendering.renderer import (
    ArticleRenderer,
    find_article_source,
    highlight_code_blocks,
    list_article_sources,
    load,
    load_documents,
    publish_article,
    render_article,
)
from article_render.models.schemas import BlockType, RenderedView, RenderOptions

from tests.data.sample_articles import (
    CODE_BLOCK_OPENINGS,
    CONTAINER_PROSE_ARTICLE,
    DYNAMIC_FRAMEWORKS_SLUG,
    UNSAFE_MARKUP_ARTICLE,
)
from tests.utils.assertions import assert_image_sources, assert_valid_html_page, normalized_text

PROSE_TYPES = (BlockType.HEADING, BlockType.PARAGRAPH, BlockType.LIST_ITEM)


class TestLoad:
    """Test loading sources into rendered views."""

    @pytest.mark.asyncio
    async def test_load_returns_view(self, renderer, article_source):
        view = await renderer.load(article_source)

        assert isinstance(view, RenderedView)
        assert view.document.slug == DYNAMIC_FRAMEWORKS_SLUG
        assert view.warnings == []
        assert_valid_html_page(view.html())

    @pytest.mark.asyncio
    async def test_load_does_not_highlight(self, renderer, article_source):
        view = await renderer.load(article_source)

        for code in view.code_regions():
            assert not code.has_attr("data-highlighted")
            assert code.find("span") is None

    @pytest.mark.asyncio
    async def test_images_in_order(self, renderer, article_source):
        view = await renderer.load(article_source)

        assert_image_sources(view.html(), DYNAMIC_FRAMEWORKS_SLUG, 6)

    @pytest.mark.asyncio
    async def test_nav_link_is_index(self, renderer, article_source):
        view = await renderer.load(article_source)

        links = view.tree.select("nav a")
        assert len(links) == 1
        assert links[0]["href"] == "index.html"

    @pytest.mark.asyncio
    async def test_code_regions_match_source(self, renderer, article_source):
        view = await renderer.load(article_source)

        regions = view.code_regions()
        assert [code.get_text().splitlines()[0] for code in regions] == CODE_BLOCK_OPENINGS
        assert "&error" in regions[0].get_text()

    @pytest.mark.asyncio
    async def test_yaml_manifest(self, renderer, yaml_manifest):
        view = await renderer.load(yaml_manifest)

        assert view.document.slug == "hello-manifest"
        assert_image_sources(view.html(), "hello-manifest", 1)
        assert view.tree.select_one("nav a")["href"] == "index.html"

    @pytest.mark.asyncio
    async def test_malformed_source_still_loads(self, renderer, malformed_source):
        view = await renderer.load(malformed_source)

        text = normalized_text(view.text())
        assert "Still readable" in text
        assert "Second paragraph" in text
        assert view.code_regions()[0].get_text() == "let x = 1 < 2"

    @pytest.mark.asyncio
    async def test_empty_source_raises(self, renderer):
        with pytest.raises(ArticleLoadError, match="Empty article source provided"):
            await renderer.load("   ")

    @pytest.mark.asyncio
    async def test_non_mapping_manifest_raises(self, renderer):
        with pytest.raises(ArticleLoadError, match="must be a dictionary"):
            await renderer.load("---\n- one\n- two\n")

    @pytest.mark.asyncio
    async def test_declared_slug_with_spaces_loads(self, renderer):
        view = await renderer.load(
            '<html><head><meta name="slug" content="My Article"></head>'
            "<body><h1>Mine</h1><p>Body</p></body></html>"
        )

        assert view.document.slug == "my-article"

    @pytest.mark.asyncio
    async def test_document_is_read_only(self, renderer, article_source):
        view = await renderer.load(article_source)

        with pytest.raises(pydantic.ValidationError):
            view.document.title = "Changed"
        with pytest.raises(pydantic.ValidationError):
            view.document.blocks[0].text = "Changed"


class TestHighlighting:
    """Test highlighting through the renderer."""

    @pytest.mark.asyncio
    async def test_highlight_preserves_code_text(self, renderer, article_source):
        view = await renderer.load(article_source)
        before = [code.get_text() for code in view.code_regions()]

        result = renderer.highlight_code_blocks(view)

        assert result is view
        assert [code.get_text() for code in view.code_regions()] == before
        assert all(code["data-highlighted"] == "yes" for code in view.code_regions())

    @pytest.mark.asyncio
    async def test_render_highlights_by_default(self, renderer, article_source):
        html = await renderer.render(article_source)

        soup = BeautifulSoup(html, "html.parser")
        assert all(code.has_attr("data-highlighted") for code in soup.select("pre > code"))

    @pytest.mark.asyncio
    async def test_render_without_highlight(self, renderer, article_source):
        html = await renderer.render(article_source, RenderOptions(highlight=False))

        soup = BeautifulSoup(html, "html.parser")
        assert not any(code.has_attr("data-highlighted") for code in soup.select("pre > code"))

    @pytest.mark.asyncio
    async def test_module_highlight_function(self, article_source):
        view = await load(article_source)

        highlight_code_blocks(view)

        assert all(code.has_attr("data-highlighted") for code in view.code_regions())


class TestDeterminism:
    """Rendering the same input twice yields identical output."""

    @pytest.mark.asyncio
    async def test_render_twice(self, renderer, article_source):
        first = await renderer.render(article_source)
        second = await renderer.render(article_source)

        assert first == second

    @pytest.mark.asyncio
    async def test_separate_renderers(self, article_source):
        first = await render_article(article_source)
        second = await ArticleRenderer().render(article_source)

        assert first.encode("utf-8") == second.encode("utf-8")

    @pytest.mark.asyncio
    async def test_yaml_render_twice(self, renderer, yaml_manifest):
        assert await renderer.render(yaml_manifest) == await renderer.render(yaml_manifest)


class TestOfflineRendering:
    """Without external resources all prose is still present."""

    @pytest.mark.asyncio
    async def test_offline_prose_complete(self, renderer, article_source, offline_options):
        view = await renderer.render_view(article_source, offline_options)

        text = normalized_text(view.text())
        prose = [block for block in view.document.blocks if block.type in PROSE_TYPES]
        assert len(prose) > 10
        for block in prose:
            assert normalized_text(block.text) in text

    @pytest.mark.asyncio
    async def test_offline_has_no_remote_references(self, renderer, article_source, offline_options):
        html = await renderer.render(article_source, offline_options)

        assert "cdnjs.cloudflare.com" not in html
        assert BeautifulSoup(html, "html.parser").find("script") is None

    @pytest.mark.asyncio
    async def test_offline_keeps_images_and_nav(self, renderer, article_source, offline_options):
        html = await renderer.render(article_source, offline_options)

        assert_image_sources(html, DYNAMIC_FRAMEWORKS_SLUG, 6)
        assert BeautifulSoup(html, "html.parser").select_one("nav a")["href"] == "index.html"

    @pytest.mark.asyncio
    async def test_offline_keeps_container_prose(self, renderer, offline_options):
        view = await renderer.render_view(CONTAINER_PROSE_ARTICLE, offline_options)

        text = normalized_text(view.text())
        for prose in ("Prose in a div", "Quoted prose", "kept", "Loose text"):
            assert prose in text

    @pytest.mark.asyncio
    async def test_offline_page_carries_no_executable_markup(self, renderer, offline_options):
        html = await renderer.render(UNSAFE_MARKUP_ARTICLE, offline_options)

        article = BeautifulSoup(html, "html.parser").find("article")
        assert article.find("script") is None
        assert "alert(1)" not in html
        assert "javascript:" not in html
        assert "onclick" not in html and "onmouseover" not in html
        assert "hix" in normalized_text(article.get_text())


class TestPublish:
    """Test writing rendered pages to disk."""

    @pytest.mark.asyncio
    async def test_publish_writes_page(self, renderer, content_dir, tmp_path):
        source = content_dir / f"{DYNAMIC_FRAMEWORKS_SLUG}.html"
        output_dir = tmp_path / "site"

        output_path = await renderer.publish(source, output_dir)

        assert output_path == output_dir / f"{DYNAMIC_FRAMEWORKS_SLUG}.html"
        html = output_path.read_text(encoding="utf-8")
        assert html == await renderer.render(source.read_text(encoding="utf-8"))
        assert_image_sources(html, DYNAMIC_FRAMEWORKS_SLUG, 6)

    @pytest.mark.asyncio
    async def test_publish_defaults_to_storage(self, content_dir, test_settings):
        source = content_dir / f"{DYNAMIC_FRAMEWORKS_SLUG}.html"

        output_path = await publish_article(source)

        assert output_path == test_settings.storage_path / "site" / f"{DYNAMIC_FRAMEWORKS_SLUG}.html"
        assert output_path.is_file()

    @pytest.mark.asyncio
    async def test_publish_with_missing_source(self, renderer, tmp_path):
        with pytest.raises(FileNotFoundError):
            await renderer.publish(tmp_path / "absent.html", tmp_path / "site")


class TestContentDirectory:
    """Test locating article sources."""

    def test_list_article_sources(self, content_dir):
        (content_dir / "index.html").write_text("<p>index</p>", encoding="utf-8")
        (content_dir / "notes.txt").write_text("ignored", encoding="utf-8")
        (content_dir / "another.yaml").write_text("title: Another\n", encoding="utf-8")

        names = [path.name for path in list_article_sources(content_dir)]

        assert names == ["another.yaml", "dynamic-frameworks.html"]

    def test_list_missing_directory(self, tmp_path):
        assert list_article_sources(tmp_path / "missing") == []

    def test_find_article_source(self, content_dir):
        found = find_article_source(content_dir, DYNAMIC_FRAMEWORKS_SLUG)

        assert found == content_dir / "dynamic-frameworks.html"
        assert find_article_source(content_dir, "unknown") is None

    @pytest.mark.asyncio
    async def test_load_documents_skips_broken_sources(self, content_dir):
        (content_dir / "broken.yaml").write_text("---\n- not\n- a mapping\n", encoding="utf-8")

        documents = await load_documents(content_dir)

        assert [document.slug for document in documents] == [DYNAMIC_FRAMEWORKS_SLUG]
