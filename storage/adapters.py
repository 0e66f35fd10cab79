"""Adapters for converting between collector schemas and storage models.

This module provides conversion functions between the TypedDict schemas
returned by the media collector and the dataclass models used for storage.
"""

from typing import TYPE_CHECKING

from storage.models import CreativeMedia

if TYPE_CHECKING:
    from collectors.media.schemas import AdMediaDict


def media_dict_to_storage(data: "AdMediaDict") -> CreativeMedia:
    """Convert an AdMediaDict from the media collector to a CreativeMedia.

    Args:
        data: AdMediaDict from parse_ad_response().

    Returns:
        CreativeMedia ready for merging or SQLite storage.

    Example:
        >>> from collectors.media.parsers import parse_ad_response
        >>> from storage.adapters import media_dict_to_storage
        >>>
        >>> media = media_dict_to_storage(parse_ad_response(ad_data, "act_1"))
        >>> await store.save_creative_media([media])
    """
    return CreativeMedia(
        ad_id=data.get("adId", ""),
        account_id=data.get("accountId") or "",
        creative_id=data.get("creativeId"),
        creative_type=data.get("creativeType", "unknown"),
        image_url=data.get("imageUrl"),
        image_url_hd=data.get("imageUrlHd"),
        thumbnail_url=data.get("thumbnailUrl"),
        thumbnail_quality=data.get("thumbnailQuality", "unknown"),
        video_url=data.get("videoUrl"),
        video_id=data.get("videoId"),
        preview_url=data.get("previewUrl"),
        title=data.get("title"),
        body=data.get("body"),
        description=data.get("description"),
        call_to_action=data.get("callToAction"),
        link_url=data.get("linkUrl"),
        is_complete=bool(data.get("isComplete", False)),
        fetch_status=data.get("fetchStatus", "pending"),
        fetch_attempts=1,
        extra_data=dict(data.get("extraData") or {}),
        fetched_at=data.get("fetchedAt"),
    )

