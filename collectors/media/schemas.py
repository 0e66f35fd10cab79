"""Type definitions for Meta Graph API creative media payloads.

This module contains the TypedDict shapes produced by the media parsers and
the result container returned by MediaClient.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, TypedDict

from storage.models import CreativeMedia

CreativeType = Literal["image", "video", "carousel", "dynamic", "unknown"]
ThumbnailQuality = Literal["hd", "sd", "low", "unknown"]
FetchStatus = Literal["success", "partial", "failed", "pending"]


class GraphBatchResponse(TypedDict, total=False):
    """One entry of a Graph API batch response.

    Attributes:
        code: HTTP status of the sub-request.
        body: JSON-encoded response body of the sub-request.
    """

    code: int
    body: str


class ImageResult(TypedDict):
    """Best image found in a creative.

    Attributes:
        url: Best available image URL.
        url_hd: Same URL when it is known to be high resolution.
        thumbnail: Small original thumbnail for fast loading.
        quality: 'hd', 'sd', 'low' or 'unknown'.
        source: Which creative field the image came from.
    """

    url: Optional[str]
    url_hd: Optional[str]
    thumbnail: Optional[str]
    quality: ThumbnailQuality
    source: str


class AdTextDict(TypedDict):
    """Copy text extracted from a creative."""

    title: Optional[str]
    body: Optional[str]
    description: Optional[str]
    call_to_action: Optional[str]
    link_url: Optional[str]


class AdMediaDict(TypedDict, total=False):
    """Normalized media record for one ad.

    Attributes:
        adId: Ad id.
        accountId: Ads account id the fetch was issued for.
        creativeId: Platform creative id.
        creativeType: Detected creative type.
        imageUrl: Best image URL.
        imageUrlHd: High resolution image URL.
        thumbnailUrl: Small thumbnail URL.
        thumbnailQuality: Quality of the best image.
        videoId: Platform video id.
        videoUrl: Video page URL.
        previewUrl: Shareable preview link.
        title: Headline.
        body: Primary text.
        description: Link description.
        callToAction: CTA type.
        linkUrl: Destination URL.
        isComplete: True when an image or any text was found.
        fetchStatus: 'success', 'partial', 'failed' or 'pending'.
        extraData: Ad name, status and carousel details.
        fetchedAt: ISO timestamp of the fetch.
    """

    adId: str
    accountId: str
    creativeId: Optional[str]
    creativeType: CreativeType
    imageUrl: Optional[str]
    imageUrlHd: Optional[str]
    thumbnailUrl: Optional[str]
    thumbnailQuality: ThumbnailQuality
    videoId: Optional[str]
    videoUrl: Optional[str]
    previewUrl: Optional[str]
    title: Optional[str]
    body: Optional[str]
    description: Optional[str]
    callToAction: Optional[str]
    linkUrl: Optional[str]
    isComplete: bool
    fetchStatus: FetchStatus
    extraData: dict
    fetchedAt: str


@dataclass
class FreshMediaResult:
    """Outcome of one fresh media fetch for a group of ads.

    Attributes:
        creatives: Fetched media keyed by ad id.
        errors: Per-ad error messages keyed by ad id.
    """

    creatives: dict[str, CreativeMedia] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
