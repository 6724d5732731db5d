"""API routers."""

from app.api import plans

__all__ = [
    "plans",
]
