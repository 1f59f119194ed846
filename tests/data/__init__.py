"""
Test Data Package
================

Sample article sources used across the test suite.
"""

from .sample_articles import (
    CODE_BLOCK_OPENINGS,
    DYNAMIC_FRAMEWORKS_ARTICLE,
    DYNAMIC_FRAMEWORKS_SLUG,
    MALFORMED_ARTICLE,
    NON_CONVENTIONAL_IMAGES_ARTICLE,
    PLAIN_TEXT_ARTICLE,
    YAML_MANIFEST,
)

__all__ = [
    "CODE_BLOCK_OPENINGS",
    "DYNAMIC_FRAMEWORKS_ARTICLE",
    "DYNAMIC_FRAMEWORKS_SLUG",
    "MALFORMED_ARTICLE",
    "NON_CONVENTIONAL_IMAGES_ARTICLE",
    "PLAIN_TEXT_ARTICLE",
    "YAML_MANIFEST",
]
