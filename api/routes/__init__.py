"""
API routes package for Spritediff.
"""
from api.routes import comparison

__all__ = ["comparison"]
