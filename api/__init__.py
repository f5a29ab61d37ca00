# Path: api/__init__.py
# Purpose: Package initializer for HTTP API layer.
# Layer: api.
# Details: Exposes the FastAPI application factory serving image generation for the wall.

from .app import create_app

__all__ = ["create_app"]
