"""
API Module
==========

FastAPI application and routes for rendering and serving articles.
"""
