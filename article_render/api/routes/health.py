"""
Health Routes
=============

FastAPI routes for health check endpoints.
"""

from fastapi import APIRouter

from article_render.config.settings import get_settings
from article_render.core.rendering.renderer import list_article_sources
from article_render.models.schemas import HealthStatus

router = APIRouter(prefix="/api/v1", tags=["Health"])


@router.get("/health")
async def health_check() -> HealthStatus:
    """Health check: the service is degraded without a content directory."""
    settings = get_settings()
    content_available = settings.content_path.is_dir()

    return HealthStatus(
        status="healthy" if content_available else "degraded",
        version=settings.app_version,
        content_path=content_available,
        articles=len(list_article_sources(settings.content_path)),
    )
