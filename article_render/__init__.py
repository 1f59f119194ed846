"""
Static Article Renderer
=======================

Renders static technical articles (headings, prose, images and code
excerpts) into standalone HTML pages with syntax-highlighted code blocks.

This package provides:
- Markup loading from HTML sources and YAML manifests
- Structural validation with asset convention warnings
- Jinja2 page generation and Pygments code highlighting
- FastAPI endpoints for rendering and serving articles
"""

__version__ = "1.0.0"
__author__ = "Static Article Renderer Team"
