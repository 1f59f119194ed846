"""
Test Configuration
==================

Pytest configuration with fixtures for all test types.
Points the application at the repository content directory and a
throwaway storage directory before any application module is imported.
"""

import os
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]
CONTENT_DIR = REPO_ROOT / "content"
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="article_render_test_"))

os.environ["ARTICLE_RENDER_ENVIRONMENT"] = "testing"
os.environ["ARTICLE_RENDER_LOG_LEVEL"] = "DEBUG"
os.environ["ARTICLE_RENDER_STORAGE_PATH"] = str(_TEST_ROOT / "storage")
os.environ["ARTICLE_RENDER_CONTENT_PATH"] = str(CONTENT_DIR)

# Import application modules
from article_render.config.settings import Settings, get_settings  # noqa: E402
from article_render.core.rendering.renderer import ArticleRenderer  # noqa: E402
from article_render.models.schemas import RenderOptions  # noqa: E402

from tests.data.sample_articles import (  # noqa: E402
    DYNAMIC_FRAMEWORKS_ARTICLE,
    MALFORMED_ARTICLE,
    YAML_MANIFEST,
)


def pytest_sessionfinish(session, exitstatus) -> None:
    shutil.rmtree(_TEST_ROOT, ignore_errors=True)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Application settings resolved from the test environment."""
    return get_settings()


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    """Writable copy of the repository content directory."""
    target = tmp_path / "content"
    shutil.copytree(CONTENT_DIR, target)
    return target


@pytest.fixture
def article_source() -> str:
    """The dynamic frameworks article as HTML."""
    return DYNAMIC_FRAMEWORKS_ARTICLE


@pytest.fixture
def yaml_manifest() -> str:
    """A small article authored as a YAML manifest."""
    return YAML_MANIFEST


@pytest.fixture
def malformed_source() -> str:
    """HTML with unclosed and misnested tags."""
    return MALFORMED_ARTICLE


@pytest.fixture
def renderer() -> ArticleRenderer:
    """Article renderer with default collaborators."""
    return ArticleRenderer()


@pytest.fixture
def offline_options() -> RenderOptions:
    """Render options with no external resources."""
    return RenderOptions(offline=True)


@pytest.fixture(scope="session")
def fastapi_client() -> Generator[TestClient, None, None]:
    """FastAPI test client."""
    from article_render.api.main import app

    with TestClient(app) as client:
        yield client
