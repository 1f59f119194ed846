"""
Unit Tests for HTML Generator
=============================

Unit tests for article page generation and block rendering.
"""

from unittest.mock import patch

import jinja2
import pytest
from bs4 import BeautifulSoup

from article_render.core.markup.parser import parse_markup
from article_render.core.rendering.html_generator import (
    ArticleHTMLGenerator,
    HTMLGenerationError,
    generate_html,
)
from article_render.models.schemas import ArticleDocument, Block, BlockType, RenderOptions

from tests.data.sample_articles import DYNAMIC_FRAMEWORKS_ARTICLE, YAML_MANIFEST
from tests.utils.assertions import assert_image_sources, assert_valid_html_page


async def _document(source: str = DYNAMIC_FRAMEWORKS_ARTICLE) -> ArticleDocument:
    result = await parse_markup(source)
    assert result.document is not None, result.errors
    return result.document


class TestHTMLGenerationError:
    """Test HTML generation error handling."""

    def test_html_generation_error_creation(self):
        error = HTMLGenerationError("Test error message")
        assert str(error) == "Test error message"
        assert isinstance(error, Exception)


class TestArticleHTMLGenerator:
    """Test the Jinja2 article generator."""

    @pytest.fixture
    def generator(self):
        """Create article HTML generator instance."""
        return ArticleHTMLGenerator()

    def test_jinja2_environment_setup(self, generator):
        env = generator.env

        assert callable(env.autoescape)
        assert isinstance(env.loader, jinja2.FileSystemLoader)
        assert "render_block" in env.globals
        assert hasattr(env.from_string("test"), "render_async")

    def test_render_heading(self, generator):
        block = Block(type=BlockType.HEADING, text="Setup", level=3)

        assert str(generator.render_block(block, 4)) == '<h3 id="section-4">Setup</h3>'

    def test_render_paragraph_escapes_plain_text(self, generator):
        block = Block(type=BlockType.PARAGRAPH, text="a <b> & c")

        assert str(generator.render_block(block)) == "<p>a &lt;b&gt; &amp; c</p>"

    def test_render_paragraph_keeps_inline_markup(self, generator):
        block = Block(type=BlockType.PARAGRAPH, text="use main", html="use <code>main</code>")

        assert str(generator.render_block(block)) == "<p>use <code>main</code></p>"

    def test_render_list_item(self, generator):
        block = Block(type=BlockType.LIST_ITEM, text="point")

        assert str(generator.render_block(block)) == "<li>point</li>"

    def test_render_image(self, generator):
        block = Block(type=BlockType.IMAGE, src="assets/a/img1.jpg", alt='say "hi"')

        assert str(generator.render_block(block)) == (
            '<figure><img src="assets/a/img1.jpg" alt="say &#34;hi&#34;"></figure>'
        )

    def test_render_code_escapes_text(self, generator):
        block = Block(type=BlockType.CODE, text="a < b && c", language="c")

        assert str(generator.render_block(block)) == (
            '<pre><code class="language-c" data-lang="c">a &lt; b &amp;&amp; c</code></pre>'
        )

    def test_render_code_without_language(self, generator):
        block = Block(type=BlockType.CODE, text="plain")

        assert str(generator.render_block(block)) == "<pre><code>plain</code></pre>"

    @pytest.mark.asyncio
    async def test_generate_article_page(self, generator):
        document = await _document()

        html = await generator.generate(document, RenderOptions())

        soup = assert_valid_html_page(html)
        assert soup.title.get_text() == document.title
        assert soup.select_one("nav a")["href"] == "index.html"
        assert soup.select_one("article h1").get_text() == document.title
        assert_image_sources(html, "dynamic-frameworks", 6)
        assert len(soup.select("pre > code")) == 2
        assert len(soup.select("article ul > li")) == 3

    @pytest.mark.asyncio
    async def test_external_resources_included(self, generator):
        document = await _document()

        html = await generator.generate(document)
        soup = BeautifulSoup(html, "html.parser")

        stylesheets = [link["href"] for link in soup.find_all("link", rel="stylesheet")]
        scripts = [script["src"] for script in soup.find_all("script", src=True)]
        assert stylesheets == list(document.stylesheets)
        assert scripts == list(document.scripts)
        assert "hljs.highlightAll()" in html

    @pytest.mark.asyncio
    async def test_offline_page_has_no_external_resources(self, generator):
        document = await _document()

        html = await generator.generate(document, RenderOptions(offline=True))

        soup = BeautifulSoup(html, "html.parser")
        assert soup.find("link", rel="stylesheet") is None
        assert soup.find("script") is None
        assert soup.select_one("nav a")["href"] == "index.html"

    @pytest.mark.asyncio
    async def test_highlight_css_follows_options(self, generator):
        document = await _document()

        with_css = await generator.generate(document, RenderOptions(highlight=True))
        without_css = await generator.generate(document, RenderOptions(highlight=False))

        assert ".highlight" in with_css
        assert ".highlight" not in without_css
        assert "text-align: justify" in with_css
        assert "text-align: justify" in without_css

    @pytest.mark.asyncio
    async def test_generate_from_yaml_manifest(self, generator):
        document = await _document(YAML_MANIFEST)

        soup = BeautifulSoup(await generator.generate(document), "html.parser")

        assert soup.select_one("nav a").get_text() == "Home"
        assert "Plain <text> & entities stay escaped" in soup.select_one("article p").get_text()
        assert soup.select_one("article p").find("text") is None
        assert [li.get_text() for li in soup.select("article ul > li")] == [
            "First point",
            "Second point",
        ]

    @pytest.mark.asyncio
    async def test_template_error_is_wrapped(self, generator):
        document = await _document()

        with patch.object(
            generator.env, "get_template", side_effect=jinja2.TemplateNotFound("article.html")
        ):
            with pytest.raises(HTMLGenerationError, match="Template rendering failed"):
                await generator.generate(document)

    @pytest.mark.asyncio
    async def test_generate_index(self, generator):
        documents = [await _document(), await _document(YAML_MANIFEST)]

        soup = BeautifulSoup(await generator.generate_index(documents), "html.parser")

        links = [(a["href"], a.get_text()) for a in soup.select("li a")]
        assert links == [
            ("dynamic-frameworks.html", "Loading Dynamic Frameworks at Runtime on iOS"),
            ("hello-manifest.html", "Hello Manifest"),
        ]

    @pytest.mark.asyncio
    async def test_generate_html_helper(self):
        document = await _document()

        html = await generate_html(document)

        assert_valid_html_page(html)
