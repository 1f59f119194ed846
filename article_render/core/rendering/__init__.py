"""
Rendering Module
===============

HTML page generation and code block highlighting.

Components:
- html_generator: Convert article documents to HTML markup
- highlighter: Pygments-based syntax highlighting of code blocks
- renderer: Load, highlight, render and publish articles
- templates: Jinja2 page templates
"""
