"""Web layer - FastAPI application"""

from .api import create_app

__all__ = ["create_app"]
