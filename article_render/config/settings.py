"""
Application Settings
===================

Renderer settings loaded from ``ARTICLE_RENDER_*`` environment variables
or a ``.env`` file. Environments: development, testing, production.
"""

from typing import List, Union
from pydantic import Field, field_validator
from pygments.styles import get_all_styles
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path


DEFAULT_STYLESHEETS = [
    "https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/styles/xcode.min.css",
]

DEFAULT_SCRIPTS = [
    "https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/highlight.min.js",
    "https://cdnjs.cloudflare.com/ajax/libs/highlight.js/11.9.0/languages/objectivec.min.js",
]


class Settings(BaseSettings):
    """Article renderer settings."""

    # Application
    app_name: str = Field(default="Static Article Renderer", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # Content
    content_path: Path = Field(default=Path("./content"), description="Article sources directory")
    storage_path: Path = Field(default=Path("./storage"), description="Storage directory path")
    assets_dirname: str = Field(default="assets", description="Image assets directory name")

    # Rendering
    nav_href: str = Field(default="index.html", description="Navigation link target")
    nav_label: str = Field(default="Index", description="Navigation link label")
    stylesheets: List[str] = Field(
        default_factory=lambda: list(DEFAULT_STYLESHEETS),
        description="External stylesheets added when a source declares none",
    )
    scripts: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SCRIPTS),
        description="External scripts added when a source declares none",
    )
    highlight_style: str = Field(default="xcode", description="Pygments style name")
    default_language: str = Field(
        default="text", description="Lexer used for code blocks with no declared dialect"
    )

    # HTTP API
    enable_docs: bool = Field(default=True, description="Enable FastAPI docs endpoint")

    # CORS
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed hosts for CORS")

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Only the three known environments are accepted."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize the log level to an upper-case stdlib level name."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("allowed_hosts", "stylesheets", "scripts", mode="before")
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse a list setting from a JSON array or comma-separated string."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("highlight_style")
    @classmethod
    def validate_highlight_style(cls, v: str) -> str:
        """The style must be one Pygments knows about."""
        if v not in set(get_all_styles()):
            raise ValueError(f"Unknown highlight style: {v}")
        return v

    @field_validator("nav_href")
    @classmethod
    def validate_nav_href(cls, v: str) -> str:
        """Navigation target must be a non-empty relative link."""
        v = v.strip()
        if not v:
            raise ValueError("Navigation link cannot be empty")
        return v

    @field_validator("storage_path")
    @classmethod
    def create_directories(cls, v: Path) -> Path:
        """Create the storage directory up front so log files can be opened."""
        v.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def assets_path(self) -> Path:
        """Directory holding per-article image assets."""
        return self.content_path / self.assets_dirname

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="ARTICLE_RENDER_"
    )


# Resolved lazily by get_settings()
settings = None


def get_settings() -> Settings:
    """Return the process-wide settings, creating them on first use."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Re-read settings from the environment, replacing the cached instance."""
    global settings
    settings = Settings()
    return settings
