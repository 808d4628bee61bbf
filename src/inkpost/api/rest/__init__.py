"""
REST API for Inkpost.
"""

from .app import create_app

__all__ = ["create_app"]
