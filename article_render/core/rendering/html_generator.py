"""
HTML Generator
==============

Convert article documents into standalone HTML pages.
Pages carry a navigation link, the article title and body, and references to
external stylesheets and scripts unless rendered offline.
"""

from typing import Any, Dict, List, Optional
from pathlib import Path

import jinja2
from markupsafe import Markup, escape

from article_render.config.logging import get_logger
from article_render.config.settings import get_settings
from article_render.core.rendering.highlighter import CodeHighlighter
from article_render.models.schemas import ArticleDocument, Block, BlockType, RenderOptions

logger = get_logger(__name__)


class HTMLGenerationError(Exception):
    """Exception raised when HTML generation fails."""

    pass


class ArticleHTMLGenerator:
    """Jinja2-based article page generator."""

    def __init__(self) -> None:
        self.settings = get_settings()
        self.logger: Any = logger.bind(generator="jinja2")  # structlog.BoundLoggerBase
        self._setup_jinja2_environment()

    def _setup_jinja2_environment(self) -> None:
        """Setup Jinja2 template environment."""
        template_dir = Path(__file__).parent / "templates"
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            autoescape=jinja2.select_autoescape(["html", "xml"]),
            enable_async=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.globals["render_block"] = self.render_block

    async def generate(self, document: ArticleDocument, options: Optional[RenderOptions] = None) -> str:
        """
        Generate an HTML page from an article document.

        Args:
            document: Loaded article document
            options: Rendering options

        Returns:
            Generated HTML string

        Raises:
            HTMLGenerationError: If HTML generation fails
        """
        options = options or RenderOptions()
        try:
            self.logger.info("Generating HTML from article document", slug=document.slug)

            template = self.env.get_template("article.html")
            html = await template.render_async(**self._prepare_context(document, options))

            self.logger.info(
                "HTML generation completed", slug=document.slug, html_length=len(html)
            )
            return html

        except jinja2.TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            self.logger.error("HTML generation failed", error=error_msg)
            raise HTMLGenerationError(error_msg) from e
        except Exception as e:
            error_msg = f"Unexpected HTML generation error: {e}"
            self.logger.error("HTML generation failed", error=error_msg)
            raise HTMLGenerationError(error_msg) from e

    async def generate_index(self, documents: List[ArticleDocument]) -> str:
        """
        Generate the index page linking to every article.

        Args:
            documents: Articles to list, in display order

        Returns:
            Generated HTML string
        """
        try:
            template = self.env.get_template("index.html")
            return await template.render_async(documents=documents, settings=self.settings)
        except jinja2.TemplateError as e:
            error_msg = f"Template rendering failed: {e}"
            self.logger.error("Index generation failed", error=error_msg)
            raise HTMLGenerationError(error_msg) from e

    def _prepare_context(self, document: ArticleDocument, options: RenderOptions) -> Dict[str, Any]:
        """
        Prepare template rendering context.

        Args:
            document: Article document
            options: Render options

        Returns:
            Template context dictionary
        """
        highlight_css = ""
        if options.highlight and options.include_highlight_css:
            highlight_css = CodeHighlighter(style=options.highlight_style).stylesheet()

        return {
            "document": document,
            "options": options,
            "stylesheets": [] if options.offline else list(document.stylesheets),
            "scripts": [] if options.offline else list(document.scripts),
            "highlight_css": Markup(highlight_css),
            "custom_css": Markup(document.css),
        }

    def render_block(self, block: Block, index: int = 0) -> Markup:
        """
        Render an article block to HTML.

        Args:
            block: Block to render
            index: Block position, used for heading anchors

        Returns:
            Markup for the block
        """
        if block.type == BlockType.HEADING:
            level = block.level or 2
            return Markup('<h{0} id="section-{1}">{2}</h{0}>').format(
                level, index, self._inline(block)
            )
        if block.type == BlockType.PARAGRAPH:
            return Markup("<p>{0}</p>").format(self._inline(block))
        if block.type == BlockType.LIST_ITEM:
            return Markup("<li>{0}</li>").format(self._inline(block))
        if block.type == BlockType.IMAGE:
            return Markup('<figure><img src="{0}" alt="{1}"></figure>').format(
                block.src or "", block.alt or ""
            )
        if block.type == BlockType.CODE:
            if block.language:
                return Markup(
                    '<pre><code class="language-{0}" data-lang="{0}">{1}</code></pre>'
                ).format(block.language, block.text)
            return Markup("<pre><code>{0}</code></pre>").format(block.text)
        return Markup("<div>{0}</div>").format(block.text)

    def _inline(self, block: Block) -> Markup:
        """Inline markup carried from an HTML source, or escaped text."""
        if block.html is not None:
            return Markup(block.html)
        return escape(block.text)


async def generate_html(document: ArticleDocument, options: Optional[RenderOptions] = None) -> str:
    """
    Generate an HTML page from an article document.

    Args:
        document: Loaded article document
        options: Rendering options

    Returns:
        Generated HTML string
    """
    generator = ArticleHTMLGenerator()
    return await generator.generate(document, options)
