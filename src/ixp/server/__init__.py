"""
HTTP Server
FastAPI surface over the intent resolver and render pipeline
"""

from .app import API_VERSION, PREFIX, build_router, create_app

__all__ = ["API_VERSION", "PREFIX", "build_router", "create_app"]
