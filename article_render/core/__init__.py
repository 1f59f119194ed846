"""
Core Business Logic
==================

Core modules for article loading and rendering.

Modules:
- markup: Markup parsing, validation, and conversion to article documents
- rendering: HTML generation, code highlighting and publishing
- assets: Image asset path convention and presence checks
"""
