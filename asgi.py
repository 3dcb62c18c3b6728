"""
asgi.py -- ASGI entry point for cvshare.

Run with:  uvicorn asgi:app --reload

api/main.py builds the complete application; this module only re-exports it
so process managers have a stable import path.
"""

from api.main import app

__all__ = ["app"]
