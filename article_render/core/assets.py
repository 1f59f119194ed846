"""
Image Assets
============

Asset path convention for article images: ``assets/<article-slug>/imgN.jpg``,
numbered sequentially from 1 in document order.
"""

import re
from pathlib import Path
from typing import Iterable, List, Optional

from article_render.config.logging import get_logger
from article_render.models.schemas import ArticleDocument

logger = get_logger(__name__)

IMAGE_PATH_PATTERN = re.compile(
    r"^(?P<root>assets)/(?P<slug>[A-Za-z0-9][A-Za-z0-9_-]*)/img(?P<index>\d+)\.jpg$"
)


def image_path(slug: str, index: int, root: str = "assets") -> str:
    """Build the conventional path of the ``index``-th image of an article."""
    if index < 1:
        raise ValueError(f"Image index must start at 1, got {index}")
    return f"{root}/{slug}/img{index}.jpg"


def slug_from_images(sources: Iterable[str]) -> Optional[str]:
    """Return the slug shared by conventional image paths, if any."""
    for src in sources:
        match = IMAGE_PATH_PATTERN.match(src)
        if match:
            return match.group("slug")
    return None


def check_image_sequence(slug: str, sources: List[str]) -> List[str]:
    """
    Check image sources against the asset path convention.

    Args:
        slug: Article slug
        sources: Image sources in document order

    Returns:
        Warning messages, empty when every image follows the convention
    """
    warnings: List[str] = []

    for position, src in enumerate(sources, start=1):
        expected = image_path(slug, position)
        if src == expected:
            continue

        match = IMAGE_PATH_PATTERN.match(src)
        if match is None:
            warnings.append(f"images[{position - 1}]: '{src}' does not follow assets/<slug>/imgN.jpg")
        elif match.group("slug") != slug:
            warnings.append(
                f"images[{position - 1}]: '{src}' belongs to slug '{match.group('slug')}', expected '{slug}'"
            )
        else:
            warnings.append(f"images[{position - 1}]: '{src}' is out of sequence, expected '{expected}'")

    return warnings


def find_missing_assets(document: ArticleDocument, content_path: Path) -> List[str]:
    """
    List image sources of a document that do not exist under ``content_path``.

    Remote images (with a URL scheme) are never reported.
    """
    missing: List[str] = []
    for block in document.images:
        src = block.src or ""
        if "://" in src or src.startswith("//"):
            continue
        if not (content_path / src).is_file():
            missing.append(src)

    if missing:
        logger.warning(
            "Missing image assets", slug=document.slug, missing=missing, content_path=str(content_path)
        )
    return missing
