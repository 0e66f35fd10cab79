"""Creative media client for the Meta Graph API.

This module provides the MediaClient class, which fetches fresh creative
media for a group of ads of one ads account using Graph batch requests.
"""

import asyncio
import json
import logging
from typing import Optional

import aiohttp

from collectors.base import (
    DEFAULT_API_VERSION,
    DEFAULT_GRAPH_URL,
    BaseGraphApiClient,
    GraphApiError,
)
from collectors.media.parsers import parse_ad_response
from collectors.media.schemas import FreshMediaResult, GraphBatchResponse
from storage.adapters import media_dict_to_storage

logger = logging.getLogger(__name__)

AD_FIELDS = "".join(
    [
        "id,name,status,preview_shareable_link,",
        "creative{id,name,title,body,image_url,thumbnail_url,video_id,image_hash,",
        "call_to_action_type,object_story_spec,effective_object_story_id,",
        "effective_instagram_media_id,object_id,asset_feed_spec},",
        "adcreatives{id,name,title,body,image_url,thumbnail_url,video_id,image_hash,",
        "object_story_spec,asset_feed_spec,effective_object_story_id}",
    ]
)

BATCH_REQUEST_FAILED = "Batch request failed"
PARSE_FAILED = "Failed to parse response"


class MediaClient(BaseGraphApiClient):
    """Client for fetching fresh creative media from the Meta Graph API.

    Ad ids are split into Graph batch requests of ``batch_size`` with a short
    pause between batches. Per-ad failures are reported in
    ``FreshMediaResult.errors``; a failing batch marks each of its ads with
    'Batch request failed'.

    Example:
        >>> client = MediaClient(access_token="EAAB...")
        >>> result = await client.fetch_fresh_media(["1", "2"], "act_123")
        >>> result.creatives["1"].best_image_url
        'https://scontent.xx.fbcdn.net/...'
    """

    BATCH_SIZE = 50
    BATCH_PAUSE = 0.2

    def __init__(
        self,
        access_token: str,
        api_version: str = DEFAULT_API_VERSION,
        graph_url: str = DEFAULT_GRAPH_URL,
        batch_size: int = BATCH_SIZE,
        batch_pause: float = BATCH_PAUSE,
        request_timeout: float = BaseGraphApiClient.REQUEST_TIMEOUT,
        max_retries: int = BaseGraphApiClient.MAX_RETRIES,
        base_delay: float = BaseGraphApiClient.BASE_DELAY,
    ) -> None:
        super().__init__(
            access_token,
            api_version=api_version,
            graph_url=graph_url,
            request_timeout=request_timeout,
            max_retries=max_retries,
            base_delay=base_delay,
        )
        self.batch_size = min(max(1, batch_size), 50)
        self.batch_pause = batch_pause

    @classmethod
    def from_config(cls, meta) -> "MediaClient":
        """Build a client from a ``config.MetaConfig``."""
        return cls(
            access_token=meta.access_token.get_secret_value() if meta.access_token else "",
            api_version=meta.api_version,
            graph_url=meta.graph_url,
            batch_size=meta.batch_size,
            batch_pause=meta.batch_pause_seconds,
            request_timeout=meta.request_timeout_seconds,
            max_retries=meta.max_retries,
            base_delay=meta.base_delay,
        )

    async def _post_batch(self, ad_ids: list[str]) -> list[Optional[GraphBatchResponse]]:
        """Send one Graph batch request covering ``ad_ids``."""
        requests = [
            {"method": "GET", "relative_url": f"{ad_id}?fields={AD_FIELDS}"}
            for ad_id in ad_ids
        ]
        response = await self._request("POST", data={"batch": json.dumps(requests)})
        if not isinstance(response, list):
            raise GraphApiError("Unexpected batch response shape")
        return response

    async def fetch_fresh_media(self, ad_ids: list[str], account_id: str) -> FreshMediaResult:
        """Fetch current creative media for ads of one account.

        Args:
            ad_ids: Ads to fetch. Duplicates are fetched once.
            account_id: Ads account the ads belong to.

        Returns:
            FreshMediaResult with media and per-ad errors.

        Raises:
            GraphApiError: If no access token is configured.
        """
        if not self._access_token:
            raise GraphApiError("Meta access token is not configured")

        result = FreshMediaResult()
        unique_ids = list(dict.fromkeys(ad_ids))

        for start in range(0, len(unique_ids), self.batch_size):
            batch = unique_ids[start:start + self.batch_size]

            try:
                responses = await self._execute_with_retry(lambda: self._post_batch(batch))
            except (GraphApiError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"Batch request error for account {account_id}: {e}")
                for ad_id in batch:
                    if ad_id not in result.creatives:
                        result.errors[ad_id] = BATCH_REQUEST_FAILED
            else:
                self._collect_batch(batch, responses, account_id, result)

            # Pause between batches to stay under the rate limit
            if start + self.batch_size < len(unique_ids):
                await asyncio.sleep(self.batch_pause)

        logger.info(
            f"Fetched media for {len(result.creatives)}/{len(unique_ids)} ads "
            f"of account {account_id} ({len(result.errors)} errors)"
        )
        return result

    def _collect_batch(
        self,
        batch: list[str],
        responses: list[Optional[GraphBatchResponse]],
        account_id: str,
        result: FreshMediaResult,
    ) -> None:
        for index, ad_id in enumerate(batch):
            entry = responses[index] if index < len(responses) else None
            if not entry:
                result.errors[ad_id] = BATCH_REQUEST_FAILED
                continue

            code = entry.get("code")
            if code != 200:
                logger.error(f"Error fetching ad {ad_id}: HTTP {code}")
                result.errors[ad_id] = f"HTTP {code}"
                continue

            try:
                ad_data = json.loads(entry.get("body") or "")
            except (json.JSONDecodeError, TypeError) as e:
                logger.error(f"Parse error for ad {ad_id}: {e}")
                result.errors[ad_id] = PARSE_FAILED
                continue
            if not isinstance(ad_data, dict):
                result.errors[ad_id] = PARSE_FAILED
                continue

            error = ad_data.get("error")
            if error:
                message = (error.get("message") if isinstance(error, dict) else str(error)) or f"HTTP {code}"
                logger.error(f"Meta error for ad {ad_id}: {message}")
                result.errors[ad_id] = message
                continue

            ad_data.setdefault("id", ad_id)
            result.creatives[ad_id] = media_dict_to_storage(parse_ad_response(ad_data, account_id))
