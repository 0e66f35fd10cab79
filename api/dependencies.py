"""Shared dependencies for API routers.

Instances are created by the lifespan in main.py and kept on ``app.state``.
"""

from fastapi import HTTPException, Request

from services import CreativeAnalysisSession
from storage import SQLiteStore


def get_store(request: Request) -> SQLiteStore:
    """Dependency for getting the SQLite store."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Store not initialized")
    return store


def get_session(request: Request) -> CreativeAnalysisSession:
    """Dependency for getting the creative analysis session."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session
