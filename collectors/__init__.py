"""Creative Insights - Collectors Module.

This module provides data collection from the Meta Graph API: fresh
creative media (images, video, copy) for ads of one ads account.

Example:
    >>> from collectors import MediaClient
    >>>
    >>> client = MediaClient(access_token="EAAB...")
    >>> result = await client.fetch_fresh_media(["120201", "120202"], "act_123")
    >>> result.errors
    {}
"""

from collectors.base import BaseGraphApiClient, GraphApiError
from collectors.media.client import MediaClient
from collectors.media.schemas import AdMediaDict, FreshMediaResult

__all__ = [
    # Clients
    "MediaClient",
    "BaseGraphApiClient",
    "GraphApiError",
    # Schemas
    "AdMediaDict",
    "FreshMediaResult",
]
