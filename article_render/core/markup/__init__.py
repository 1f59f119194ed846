"""
Markup Module
=============

Parsing of article sources (HTML pages and YAML manifests) into
immutable article documents.
"""
