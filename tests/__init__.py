"""
Test Suite
==========

Test suite matching the article_render/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: API endpoint and rendering pipeline tests
"""
