"""Creative media collection from the Meta Graph API."""

from collectors.media.client import MediaClient
from collectors.media.parsers import (
    determine_creative_type,
    determine_fetch_status,
    extract_image,
    extract_texts,
    parse_ad_response,
)
from collectors.media.schemas import AdMediaDict, FreshMediaResult

__all__ = [
    "MediaClient",
    "AdMediaDict",
    "FreshMediaResult",
    "determine_creative_type",
    "determine_fetch_status",
    "extract_image",
    "extract_texts",
    "parse_ad_response",
]
