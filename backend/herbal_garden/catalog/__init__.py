"""
Catalog Module

Admin-only management of plants, categories and medicine systems.
"""

from .routes import router

__all__ = ["router"]
