"""API Routers for Creative Insights."""

from .creatives import router as creatives_router

__all__ = [
    "creatives_router",
]
