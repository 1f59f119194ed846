"""
Article Renderer
================

Static document renderer: loads an article source into a rendered view,
applies code highlighting, and serializes or publishes the result.
"""

from typing import Any, List, Optional
from pathlib import Path

from bs4 import BeautifulSoup

from article_render.config.logging import get_logger
from article_render.config.settings import get_settings
from article_render.core.assets import find_missing_assets
from article_render.core.markup.parser import ArticleLoadError, parse_markup
from article_render.core.rendering.highlighter import CodeHighlighter
from article_render.core.rendering.html_generator import ArticleHTMLGenerator
from article_render.models.schemas import ArticleDocument, RenderedView, RenderOptions

logger = get_logger(__name__)

SOURCE_SUFFIXES = (".html", ".htm", ".yaml", ".yml")


class ArticleRenderer:
    """Loads, highlights and serializes articles."""

    def __init__(
        self,
        generator: Optional[ArticleHTMLGenerator] = None,
        highlighter: Optional[CodeHighlighter] = None,
    ) -> None:
        self.settings = get_settings()
        self.generator = generator or ArticleHTMLGenerator()
        self.highlighter = highlighter
        self.logger: Any = logger.bind(component="renderer")  # structlog.BoundLoggerBase

    async def load(self, source: str, options: Optional[RenderOptions] = None) -> RenderedView:
        """
        Load an article source into a rendered view.

        Args:
            source: Full markup text (HTML page or YAML manifest)
            options: Rendering options

        Returns:
            RenderedView over the generated page

        Raises:
            ArticleLoadError: If the source cannot produce a document
        """
        options = options or RenderOptions()
        source_format = options.source_format.value if options.source_format else None

        result = await parse_markup(source, source_format)
        if not result.success or result.document is None:
            error_msg = "; ".join(result.errors) or "Article source produced no document"
            self.logger.error("Article loading failed", errors=result.errors)
            raise ArticleLoadError(error_msg)

        for warning in result.warnings:
            self.logger.warning("Article source warning", slug=result.document.slug, warning=warning)

        html = await self.generator.generate(result.document, options)
        return RenderedView(
            document=result.document,
            tree=BeautifulSoup(html, "html.parser"),
            options=options,
            warnings=list(result.warnings),
        )

    def highlight_code_blocks(self, view: RenderedView) -> RenderedView:
        """Apply syntax highlighting to the code regions of a view in place."""
        highlighter = self.highlighter or CodeHighlighter(style=view.options.highlight_style)
        return highlighter.highlight_view(view)

    async def render_view(self, source: str, options: Optional[RenderOptions] = None) -> RenderedView:
        """Load a source and highlight it when the options ask for it."""
        view = await self.load(source, options)
        if view.options.highlight:
            self.highlight_code_blocks(view)
        return view

    async def render(self, source: str, options: Optional[RenderOptions] = None) -> str:
        """
        Render an article source to a complete HTML page.

        The output depends only on the source and options, so rendering the
        same input twice yields identical bytes.
        """
        view = await self.render_view(source, options)
        return view.html()

    async def publish(
        self,
        source_path: Path,
        output_dir: Optional[Path] = None,
        options: Optional[RenderOptions] = None,
    ) -> Path:
        """
        Render an article file to ``<output_dir>/<slug>.html``.

        Args:
            source_path: Article source file
            output_dir: Destination directory, defaults to ``storage_path/site``
            options: Rendering options

        Returns:
            Path of the written page
        """
        source_path = Path(source_path)
        output_dir = Path(output_dir) if output_dir else self.settings.storage_path / "site"

        view = await self.render_view(source_path.read_text(encoding="utf-8"), options)
        missing = find_missing_assets(view.document, source_path.parent)
        view.warnings.extend(f"Missing image asset: {src}" for src in missing)

        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"{view.document.slug}.html"
        output_path.write_text(view.html(), encoding="utf-8")

        self.logger.info(
            "Article published",
            slug=view.document.slug,
            path=str(output_path),
            warnings=len(view.warnings),
        )
        return output_path


def find_article_source(content_path: Path, slug: str) -> Optional[Path]:
    """Locate the source file of an article by slug."""
    for suffix in SOURCE_SUFFIXES:
        candidate = content_path / f"{slug}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def list_article_sources(content_path: Path) -> List[Path]:
    """Article source files of a content directory, sorted by name."""
    if not content_path.is_dir():
        return []
    return sorted(
        path
        for path in content_path.iterdir()
        if path.is_file() and path.suffix in SOURCE_SUFFIXES and path.stem != "index"
    )


async def load_documents(content_path: Path) -> List[ArticleDocument]:
    """Load every valid article of a content directory, skipping broken sources."""
    documents: List[ArticleDocument] = []
    for path in list_article_sources(content_path):
        result = await parse_markup(path.read_text(encoding="utf-8"))
        if result.success and result.document is not None:
            documents.append(result.document)
        else:
            logger.warning("Skipping unloadable article", path=str(path), errors=result.errors)
    return documents


async def load(source: str, options: Optional[RenderOptions] = None) -> RenderedView:
    """Load an article source into a rendered view."""
    return await ArticleRenderer().load(source, options)


def highlight_code_blocks(view: RenderedView) -> RenderedView:
    """Apply syntax highlighting to the code regions of a view in place."""
    return ArticleRenderer().highlight_code_blocks(view)


async def render_article(source: str, options: Optional[RenderOptions] = None) -> str:
    """Render an article source to a complete HTML page."""
    return await ArticleRenderer().render(source, options)


async def publish_article(
    source_path: Path, output_dir: Optional[Path] = None, options: Optional[RenderOptions] = None
) -> Path:
    """Render an article file into the output directory."""
    return await ArticleRenderer().publish(source_path, output_dir, options)
