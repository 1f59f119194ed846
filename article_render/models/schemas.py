"""
Pydantic Models and Schemas
===========================

Core data models for article documents, rendered views, and API requests/responses.
Article documents are frozen: content is read-only once loaded.
"""

from typing import Optional, List, Dict, Any, Tuple, Literal
from datetime import datetime, timezone
from enum import Enum

from bs4 import BeautifulSoup
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enums
class BlockType(str, Enum):
    """Article block types."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST_ITEM = "list_item"
    IMAGE = "image"
    CODE = "code"


class SourceFormat(str, Enum):
    """Supported article source formats."""
    HTML = "html"
    YAML = "yaml"


# Document Models
class Block(BaseModel):
    """A single marked-up block of an article."""
    model_config = ConfigDict(frozen=True)

    type: BlockType = Field(..., description="Block type")
    text: str = Field("", description="Plain text content")
    html: Optional[str] = Field(None, description="Inline markup for prose blocks")
    level: Optional[int] = Field(None, ge=1, le=6, description="Heading level")
    src: Optional[str] = Field(None, description="Image source path")
    alt: Optional[str] = Field(None, description="Image alt text")
    language: Optional[str] = Field(None, description="Declared code dialect")

    @model_validator(mode="after")
    def check_block_fields(self) -> "Block":
        """Headings carry a level and images carry a source."""
        if self.type == BlockType.HEADING and self.level is None:
            raise ValueError("Heading blocks require a level")
        if self.type == BlockType.IMAGE and not self.src:
            raise ValueError("Image blocks require a src")
        return self


class ArticleDocument(BaseModel):
    """Immutable article: ordered blocks plus associated style rules."""
    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., min_length=1, description="Article slug")
    title: str = Field(..., description="Article title")
    nav_href: str = Field("index.html", description="Navigation link target")
    nav_label: str = Field("Index", description="Navigation link label")
    blocks: Tuple[Block, ...] = Field(default_factory=tuple, description="Blocks in document order")
    stylesheets: Tuple[str, ...] = Field(default_factory=tuple, description="External stylesheets")
    scripts: Tuple[str, ...] = Field(default_factory=tuple, description="External scripts")
    css: str = Field("", description="Inline style rules")

    @property
    def images(self) -> List[Block]:
        """Image blocks in document order."""
        return [block for block in self.blocks if block.type == BlockType.IMAGE]

    @property
    def code_blocks(self) -> List[Block]:
        """Code blocks in document order."""
        return [block for block in self.blocks if block.type == BlockType.CODE]


# Loading Results
class LoadResult(BaseModel):
    """Result of a markup loading operation."""
    success: bool = Field(..., description="Whether loading succeeded")
    document: Optional[ArticleDocument] = Field(None, description="Loaded document")
    source_format: Optional[SourceFormat] = Field(None, description="Detected source format")
    errors: List[str] = Field(default_factory=list, description="Loading errors")
    warnings: List[str] = Field(default_factory=list, description="Loading warnings")
    processing_time: Optional[float] = Field(None, description="Loading time in seconds")


# Rendering Models
class RenderOptions(BaseModel):
    """Options for rendering an article."""
    highlight: bool = Field(True, description="Apply syntax highlighting to code blocks")
    offline: bool = Field(False, description="Omit external stylesheet and script references")
    highlight_style: Optional[str] = Field(None, description="Pygments style override")
    include_highlight_css: bool = Field(True, description="Embed highlighting CSS in the page")
    source_format: Optional[SourceFormat] = Field(None, description="Source format override")


class RenderedView(BaseModel):
    """Displayed tree of styled blocks for a loaded document."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    document: ArticleDocument
    tree: BeautifulSoup
    options: RenderOptions = Field(default_factory=RenderOptions)
    warnings: List[str] = Field(default_factory=list)

    def html(self) -> str:
        """Serialize the rendered tree."""
        return str(self.tree)

    def code_regions(self) -> list:
        """Preformatted code regions in document order."""
        return self.tree.select("pre > code")

    def text(self) -> str:
        """Visible text of the article body."""
        body = self.tree.find("article") or self.tree
        return body.get_text()


# API Request/Response Models
class RenderRequest(BaseModel):
    """Request model for article rendering."""
    source: str = Field(..., min_length=1, description="Article markup source")
    options: RenderOptions = Field(default_factory=RenderOptions, description="Render options")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        """Validate source is not blank."""
        if not v.strip():
            raise ValueError("Article source cannot be empty")
        return v


class RenderResponse(BaseModel):
    """Response model for article rendering."""
    success: bool = Field(..., description="Whether rendering succeeded")
    slug: Optional[str] = Field(None, description="Article slug")
    html: Optional[str] = Field(None, description="Rendered page")
    warnings: List[str] = Field(default_factory=list, description="Rendering warnings")
    error: Optional[str] = Field(None, description="Error message if failed")
    processing_time: float = Field(..., description="Total processing time")


class ValidationRequest(BaseModel):
    """Request model for article validation."""
    source: str = Field(..., min_length=1, description="Article markup source")
    source_format: Optional[SourceFormat] = Field(None, description="Source format override")


class ValidationResponse(BaseModel):
    """Response model for article validation."""
    valid: bool = Field(..., description="Whether the source is valid")
    errors: List[str] = Field(default_factory=list, description="Validation errors")
    warnings: List[str] = Field(default_factory=list, description="Validation warnings")


# Health Check Models
class HealthStatus(BaseModel):
    """Health check status."""
    status: Literal["healthy", "unhealthy", "degraded"] = Field(..., description="Overall status")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    version: str = Field(..., description="Application version")
    content_path: bool = Field(..., description="Content directory available")
    articles: int = Field(0, ge=0, description="Number of article sources")


# Error Models
class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
    request_id: Optional[str] = Field(None, description="Request identifier for tracking")
