"""Version 1 API routes."""

from . import scheduling

__all__ = ["scheduling"]
