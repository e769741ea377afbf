"""HTTP surface for a local UI."""

from .api import create_app

__all__ = ["create_app"]
