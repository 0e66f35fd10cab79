"""Common schema models shared across the API."""

from typing import Optional
from pydantic import BaseModel


class PaginationMeta(BaseModel):
    """Pagination metadata for list responses."""
    total: int
    returned: int
    limit: int
    offset: int
    has_more: bool


class MessageResponse(BaseModel):
    """Simple acknowledgement."""
    status: str = "ok"
    detail: Optional[str] = None
