"""
FastAPI Application
==================

Main FastAPI application serving rendered articles and rendering endpoints.
"""

from contextlib import asynccontextmanager
import uuid
from typing import AsyncGenerator, Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from article_render.config.settings import get_settings
from article_render.config.logging import bind_request_context, clear_request_context, get_logger
from article_render.api.routes.articles import router as articles_router, mount_assets
from article_render.api.routes.health import router as health_router
from article_render.api.routes.render import router as render_router
from article_render.core.markup.parser import ArticleLoadError
from article_render.core.rendering.html_generator import HTMLGenerationError
from article_render.models.schemas import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    current = get_settings()
    logger.info("Starting FastAPI application", environment=current.environment)

    if not current.content_path.is_dir():
        logger.warning("Content directory not found", content_path=str(current.content_path))

    try:
        yield
    finally:
        logger.info("Shutting down FastAPI application")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    description="Render static technical articles with syntax-highlighted code blocks",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_hosts,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(health_router)
app.include_router(render_router)
app.include_router(articles_router)
mount_assets(app, settings)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> JSONResponse:  # type: ignore
    """Add request ID to all requests."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    clear_request_context()
    bind_request_context(request_id=request_id, path=request.url.path)

    response = await call_next(request)  # type: ignore
    response.headers["X-Request-ID"] = request_id  # type: ignore

    return response  # type: ignore


# Exception handlers
def _error_response(
    request: Request,
    status_code: int,
    error: str,
    error_code: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    """Structured error body carrying the request ID."""
    error_response = ErrorResponse(
        error=error,
        error_code=error_code,
        details=details,
        request_id=getattr(request.state, "request_id", None),
    )
    logger.error(error, status_code=status_code, error_code=error_code, details=details)
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom HTTP exception handler with structured error response."""
    return _error_response(request, exc.status_code, str(exc.detail), str(exc.status_code))


@app.exception_handler(ArticleLoadError)
async def article_load_exception_handler(request: Request, exc: ArticleLoadError) -> JSONResponse:
    """Sources that cannot produce a document are client errors."""
    return _error_response(
        request,
        400,
        "Article source could not be loaded",
        "ARTICLE_LOAD_ERROR",
        {"message": str(exc)},
    )


@app.exception_handler(HTMLGenerationError)
async def html_generation_exception_handler(
    request: Request, exc: HTMLGenerationError
) -> JSONResponse:
    """Template failures are server errors."""
    return _error_response(
        request, 500, "HTML generation failed", "HTML_GENERATION_ERROR", {"message": str(exc)}
    )


# Root endpoint
@app.get("/", tags=["General"])
async def root() -> dict[str, Any]:
    """
    Root endpoint with basic API information.
    """
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Render static technical articles with syntax-highlighted code blocks",
        "docs_url": "/docs" if settings.enable_docs else None,
        "health_check": "/api/v1/health",
        "endpoints": {
            "render": "POST /api/v1/render",
            "validate": "POST /api/v1/validate",
            "article_index": "GET /articles/index.html",
            "article": "GET /articles/{slug}.html",
        },
    }


def run_development_server() -> None:
    """Run development server with auto-reload."""
    uvicorn.run(
        "article_render.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


def create_app() -> FastAPI:
    """
    Application factory function for creating FastAPI app instance.

    Returns:
        FastAPI application instance
    """
    return app


if __name__ == "__main__":
    run_development_server()
