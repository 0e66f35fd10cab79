"""Pure parsing functions for Meta Graph API ad responses.

This module contains stateless functions for transforming raw ad payloads
(``id``, ``name``, ``creative{...}``, ``adcreatives{...}``) into normalized
AdMediaDict structures. All functions are pure with no side effects or API
calls.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from collectors.media.schemas import (
    AdMediaDict,
    AdTextDict,
    CreativeType,
    FetchStatus,
    ImageResult,
)

logger = logging.getLogger(__name__)

# Meta CDN path segments of tiny square thumbnails
LOW_QUALITY_MARKERS = ("/p64x64", "/p128x128")
UPGRADED_SIZE = "p720x720"

VIDEO_PAGE_URL = "https://www.facebook.com/ads/videos/{video_id}"


def is_low_quality_url(url: str) -> bool:
    """Check whether a URL points to a tiny Meta CDN thumbnail.

    Only the path is inspected; the ``stp`` query parameter describes a CDN
    transformation, not the stored resolution.

    Args:
        url: Image URL.

    Returns:
        True for p64x64 / p128x128 thumbnails.

    Example:
        >>> is_low_quality_url("https://scontent.xx/v/t45/p64x64/abc.jpg?stp=dst")
        True
    """
    path = url.split("?", 1)[0]
    return any(marker in path for marker in LOW_QUALITY_MARKERS)


def upgrade_url_resolution(url: str) -> str:
    """Rewrite a p64x64/p128x128 CDN URL to request p720x720 instead."""
    return url.replace("p64x64", UPGRADED_SIZE).replace("p128x128", UPGRADED_SIZE)


def _story_spec(creative: dict) -> dict:
    return creative.get("object_story_spec") or {}


def _first(items: Optional[list]) -> dict:
    if items and isinstance(items[0], dict):
        return items[0]
    return {}


def determine_creative_type(creative: dict) -> CreativeType:
    """Determine the creative type from the available fields.

    Args:
        creative: The ``creative`` object of an ad response.

    Returns:
        'video', 'carousel', 'dynamic', 'image' or 'unknown'.
    """
    spec = _story_spec(creative)
    link_data = spec.get("link_data") or {}
    video_data = spec.get("video_data") or {}
    asset_feed = creative.get("asset_feed_spec") or {}

    if creative.get("video_id") or video_data.get("video_id"):
        return "video"
    if len(link_data.get("child_attachments") or []) > 1:
        return "carousel"
    if asset_feed.get("images") or asset_feed.get("videos") or asset_feed.get("bodies"):
        if asset_feed.get("videos"):
            return "video"
        return "dynamic"
    if (
        creative.get("image_url")
        or creative.get("image_hash")
        or link_data.get("picture")
        or link_data.get("image_hash")
    ):
        return "image"
    if creative.get("effective_object_story_id") or creative.get("effective_instagram_media_id"):
        return "dynamic"
    if "{{product." in (creative.get("name") or ""):
        return "dynamic"
    if creative.get("thumbnail_url"):
        return "image"
    return "unknown"


def extract_image(creative: dict) -> ImageResult:
    """Pick the best image URL from a creative.

    Higher resolution story spec sources come first; the creative's own
    ``image_url`` and ``thumbnail_url`` are fallbacks, upgraded from p64x64
    where possible. The original thumbnail is kept for fast loading.

    Args:
        creative: The ``creative`` object of an ad response.

    Returns:
        ImageResult. ``url`` is None when no image exists.
    """
    thumbnail = creative.get("thumbnail_url")
    spec = _story_spec(creative)
    link_data = spec.get("link_data") or {}
    video_data = spec.get("video_data") or {}
    photo_data = spec.get("photo_data") or {}
    template_data = spec.get("template_data") or {}
    asset_feed = creative.get("asset_feed_spec") or {}

    def found(url: str, source: str) -> ImageResult:
        return {
            "url": url,
            "url_hd": None,
            "thumbnail": thumbnail,
            "quality": "low" if is_low_quality_url(url) else "unknown",
            "source": source,
        }

    candidates = [
        (link_data.get("picture"), "link_data_picture"),
        (video_data.get("image_url"), "video_data_image_url"),
        (photo_data.get("url"), "photo_data_url"),
        (_first(link_data.get("child_attachments")).get("picture"), "carousel_child_picture"),
        (_first(template_data.get("child_attachments")).get("picture"), "template_child_picture"),
    ]
    for image in asset_feed.get("images") or []:
        if isinstance(image, dict):
            candidates.append((image.get("url"), "asset_feed_image_url"))
    candidates.append((_first(asset_feed.get("videos")).get("thumbnail_url"), "asset_feed_video_thumb"))

    for url, source in candidates:
        if url and not is_low_quality_url(url):
            return found(url, source)

    image_url = creative.get("image_url")
    if image_url:
        if not is_low_quality_url(image_url):
            return found(image_url, "creative_image_url")
        return {
            "url": upgrade_url_resolution(image_url),
            "url_hd": None,
            "thumbnail": image_url,
            "quality": "low",
            "source": "creative_image_url_upgraded",
        }

    if thumbnail:
        return {
            "url": upgrade_url_resolution(thumbnail),
            "url_hd": None,
            "thumbnail": thumbnail,
            "quality": "low",
            "source": "creative_thumbnail_upgraded",
        }

    return {"url": None, "url_hd": None, "thumbnail": None, "quality": "unknown", "source": "none"}


def extract_texts(creative: dict) -> AdTextDict:
    """Extract headline, body, description, CTA and link from a creative.

    Args:
        creative: The ``creative`` object of an ad response.

    Returns:
        AdTextDict with None for missing fields.
    """
    spec = _story_spec(creative)
    link_data = spec.get("link_data") or {}
    video_data = spec.get("video_data") or {}
    photo_data = spec.get("photo_data") or {}
    asset_feed = creative.get("asset_feed_spec") or {}

    video_cta = video_data.get("call_to_action") or {}
    return {
        "title": (
            creative.get("title")
            or link_data.get("name")
            or video_data.get("title")
            or _first(asset_feed.get("titles")).get("text")
            or None
        ),
        "body": (
            creative.get("body")
            or link_data.get("message")
            or video_data.get("message")
            or photo_data.get("caption")
            or _first(asset_feed.get("bodies")).get("text")
            or None
        ),
        "description": (
            link_data.get("description")
            or video_data.get("link_description")
            or _first(asset_feed.get("descriptions")).get("text")
            or None
        ),
        "call_to_action": (
            creative.get("call_to_action_type")
            or (link_data.get("call_to_action") or {}).get("type")
            or video_cta.get("type")
            or next(iter(asset_feed.get("call_to_action_types") or []), None)
        ),
        "link_url": (
            link_data.get("link")
            or (video_cta.get("value") or {}).get("link")
            or _first(asset_feed.get("link_urls")).get("website_url")
            or None
        ),
    }


def determine_fetch_status(has_image: bool, has_text: bool) -> FetchStatus:
    """'success' with image and text, 'partial' with one, 'failed' with neither."""
    if has_image and has_text:
        return "success"
    if has_image or has_text:
        return "partial"
    return "failed"


def parse_ad_response(
    ad_data: dict,
    account_id: str,
    fetched_at: Optional[str] = None,
) -> AdMediaDict:
    """Parse one ad payload into a normalized media record.

    The creative is taken from ``creative``, falling back to the first
    ``adcreatives`` entry. An ad with no creative at all is recorded as
    'pending' with no media.

    Args:
        ad_data: Decoded body of one batch sub-request.
        account_id: Ads account the fetch was issued for.
        fetched_at: ISO timestamp to record; defaults to now (UTC).

    Returns:
        AdMediaDict for the ad.
    """
    fetched_at = fetched_at or datetime.now(timezone.utc).isoformat()
    ad_id = str(ad_data.get("id", ""))
    extra = {"ad_name": ad_data.get("name"), "ad_status": ad_data.get("status")}

    creative = ad_data.get("creative")
    if not creative:
        creative = _first((ad_data.get("adcreatives") or {}).get("data"))

    if not creative:
        logger.debug(f"Ad {ad_id} has no creative object")
        return {
            "adId": ad_id,
            "accountId": account_id,
            "creativeId": None,
            "creativeType": "unknown",
            "previewUrl": ad_data.get("preview_shareable_link"),
            "thumbnailQuality": "unknown",
            "isComplete": False,
            "fetchStatus": "pending",
            "extraData": extra,
            "fetchedAt": fetched_at,
        }

    creative_type = determine_creative_type(creative)
    image = extract_image(creative)
    texts = extract_texts(creative)

    spec = _story_spec(creative)
    video_data = spec.get("video_data") or {}
    asset_feed = creative.get("asset_feed_spec") or {}
    video_id = (
        creative.get("video_id")
        or video_data.get("video_id")
        or _first(asset_feed.get("videos")).get("video_id")
        or None
    )

    has_image = bool(image["url"])
    has_text = bool(texts["title"] or texts["body"] or texts["description"])

    children = (spec.get("link_data") or {}).get("child_attachments") or []
    extra.update(
        {
            "has_carousel": len(children) > 1,
            "carousel_count": len(children),
            "image_source": image["source"],
        }
    )

    return {
        "adId": ad_id,
        "accountId": account_id,
        "creativeId": creative.get("id"),
        "creativeType": creative_type,
        "imageUrl": image["url"],
        "imageUrlHd": image["url_hd"] or image["url"],
        "thumbnailUrl": image["thumbnail"] or image["url"],
        "thumbnailQuality": image["quality"],
        "videoId": video_id,
        "videoUrl": VIDEO_PAGE_URL.format(video_id=video_id) if video_id else None,
        "previewUrl": ad_data.get("preview_shareable_link"),
        "title": texts["title"],
        "body": texts["body"],
        "description": texts["description"],
        "callToAction": texts["call_to_action"],
        "linkUrl": texts["link_url"],
        "isComplete": has_image or has_text,
        "fetchStatus": determine_fetch_status(has_image, has_text),
        "extraData": extra,
        "fetchedAt": fetched_at,
    }
