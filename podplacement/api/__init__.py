"""REST API layer for podplacement.

Exposes:
    create_app -- FastAPI application factory.
    build_app  -- Alias for create_app (used by podplacement.app bootstrap).
"""

from podplacement.api.app import create_app

build_app = create_app

__all__ = ["build_app", "create_app"]
