"""
Render Routes
=============

FastAPI routes for rendering and validating article sources.
"""

import time

from fastapi import APIRouter

from article_render.config.logging import get_logger
from article_render.core.markup.parser import ArticleLoadError, parse_markup
from article_render.core.rendering.renderer import ArticleRenderer
from article_render.models.schemas import (
    RenderRequest,
    RenderResponse,
    ValidationRequest,
    ValidationResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Rendering"])


@router.post("/render")
async def render_article_source(request: RenderRequest) -> RenderResponse:
    """Render an article source to a complete HTML page."""
    start_time = time.time()
    try:
        view = await ArticleRenderer().render_view(request.source, request.options)
    except ArticleLoadError as e:
        return RenderResponse(
            success=False, error=str(e), processing_time=time.time() - start_time
        )

    return RenderResponse(
        success=True,
        slug=view.document.slug,
        html=view.html(),
        warnings=view.warnings,
        processing_time=time.time() - start_time,
    )


@router.post("/validate")
async def validate_article_source(request: ValidationRequest) -> ValidationResponse:
    """Validate an article source without rendering it."""
    source_format = request.source_format.value if request.source_format else None
    result = await parse_markup(request.source, source_format)

    logger.info("Article source validated", valid=result.success, errors=len(result.errors))
    return ValidationResponse(valid=result.success, errors=result.errors, warnings=result.warnings)
