"""
Article Routes
==============

Serve rendered articles, the article index and image assets from the
content directory.
"""

import re

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles

from article_render.config.logging import get_logger
from article_render.config.settings import Settings, get_settings
from article_render.core.rendering.html_generator import ArticleHTMLGenerator
from article_render.core.rendering.renderer import (
    ArticleRenderer,
    find_article_source,
    load_documents,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/articles", tags=["Articles"])

SLUG_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def mount_assets(app: FastAPI, settings: Settings) -> None:
    """Serve ``content/assets`` so relative image paths resolve next to articles."""
    app.mount(
        f"/articles/{settings.assets_dirname}",
        StaticFiles(directory=str(settings.assets_path), check_dir=False),
        name="assets",
    )


@router.get("/index.html", response_class=HTMLResponse)
async def article_index() -> HTMLResponse:
    """List every article of the content directory."""
    settings = get_settings()
    documents = await load_documents(settings.content_path)
    html = await ArticleHTMLGenerator().generate_index(documents)
    return HTMLResponse(content=html)


@router.get("/{slug}.html", response_class=HTMLResponse)
async def article_page(slug: str) -> HTMLResponse:
    """Render an article from its source file."""
    settings = get_settings()
    if not SLUG_RE.match(slug):
        raise HTTPException(status_code=404, detail=f"Article not found: {slug}")

    source_path = find_article_source(settings.content_path, slug)
    if source_path is None:
        raise HTTPException(status_code=404, detail=f"Article not found: {slug}")

    logger.info("Serving article", slug=slug, source=str(source_path))
    html = await ArticleRenderer().render(source_path.read_text(encoding="utf-8"))
    return HTMLResponse(content=html)
