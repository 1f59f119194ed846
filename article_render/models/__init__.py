"""
Data Models
===========

Pydantic models for article documents, rendered views and API payloads.
"""
