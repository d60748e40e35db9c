"""
HTTP layer - FastAPI application exposing slot listing and booking.
"""

from .app import build_app, build_app_from_env, create_app

__all__ = ["build_app", "build_app_from_env", "create_app"]
