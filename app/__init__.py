"""CertiFree course backend.

``app.app`` resolves to the FastAPI application on first access, so alembic and
scripts that only need settings or models avoid importing the routers."""

from __future__ import annotations

__all__ = ["app"]


def __getattr__(name: str):
    if name == "app":
        from .main import app as fastapi_app
        return fastapi_app
    raise AttributeError(f"module {__name__} has no attribute {name!r}")
