"""Background enrichment of creatives with fresh platform media.

The orchestrator groups a batch of creatives by ads account, fetches fresh
media for every group concurrently and merges it back into the shared
CreativeState. Each batch belongs to a search generation; results that come
back after a newer search started are dropped without touching state.
"""

import asyncio
import logging
from typing import Iterable, Protocol

from analytics.creative_models import EnrichedCreative, LoadingState
from collectors.media.schemas import FreshMediaResult
from services.creative_state import CreativeState, StateUpdate
from storage.models import CreativeMedia

logger = logging.getLogger(__name__)

DEFAULT_FETCH_ERROR = "Failed to fetch creative media"


class MediaFetcher(Protocol):
    """Source of fresh creative media for one ads account."""

    async def fetch_fresh_media(self, ad_ids: list[str], account_id: str) -> FreshMediaResult: ...


def group_by_account(creatives: Iterable[EnrichedCreative]) -> dict[str, list[str]]:
    """Group ad ids by account id, skipping creatives without an account.

    Ad ids keep their first-seen order and appear once per group.
    """
    groups: dict[str, list[str]] = {}
    for creative in creatives:
        if not creative.account_id:
            continue
        ad_ids = groups.setdefault(creative.account_id, [])
        if creative.ad_id not in ad_ids:
            ad_ids.append(creative.ad_id)
    return groups


class EnrichmentOrchestrator:
    """Fetches fresh media for displayed creatives, one generation at a time.

    Attributes:
        generation: Id of the current search generation.
    """

    def __init__(self, fetcher: MediaFetcher, state: CreativeState) -> None:
        self._fetcher = fetcher
        self._state = state
        self._generation = 0
        self._pending_groups = 0

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def begin_generation(self) -> int:
        """Start a new search generation and reset the displayed state.

        Returns:
            The new generation id.
        """
        self._generation += 1
        self._pending_groups = 0
        self._state.apply(StateUpdate(reset=True))
        return self._generation

    async def enrich(self, creatives: list[EnrichedCreative], generation: int) -> None:
        """Fetch fresh media for ``creatives`` on behalf of ``generation``.

        Args:
            creatives: Records to enrich (a full page or a load-more slice).
            generation: Generation the records were produced for.
        """
        if not self.is_current(generation):
            logger.debug(f"Skipping enrichment for stale generation {generation}")
            return

        groups = group_by_account(creatives)
        if not groups:
            self._state.apply(StateUpdate(in_progress=True))
            self._state.apply(StateUpdate(in_progress=self._pending_groups > 0))
            return

        self._pending_groups += len(groups)
        self._state.apply(
            StateUpdate(
                loading={
                    ad_id: LoadingState.loading()
                    for ad_ids in groups.values()
                    for ad_id in ad_ids
                },
                in_progress=True,
            )
        )
        logger.debug(
            f"Generation {generation}: enriching {len(groups)} account groups"
        )

        await asyncio.gather(
            *(
                self._enrich_group(account_id, ad_ids, generation)
                for account_id, ad_ids in groups.items()
            )
        )

    async def _enrich_group(self, account_id: str, ad_ids: list[str], generation: int) -> None:
        try:
            result = await self._fetcher.fetch_fresh_media(ad_ids, account_id)
        except Exception as e:
            if not self.is_current(generation):
                logger.debug(f"Discarding failed fetch for stale generation {generation}")
                return
            message = str(e) or DEFAULT_FETCH_ERROR
            logger.warning(
                f"Media fetch failed for account {account_id} ({len(ad_ids)} ads): {message}"
            )
            media: dict[str, CreativeMedia] = {}
            loading = {ad_id: LoadingState.failed(message) for ad_id in ad_ids}
        else:
            if not self.is_current(generation):
                logger.debug(f"Discarding media for stale generation {generation}")
                return
            media, loading = self._settle(ad_ids, result)

        self._pending_groups -= 1
        self._state.apply(
            StateUpdate(
                media=media,
                loading=loading,
                in_progress=self._pending_groups > 0,
            )
        )

    @staticmethod
    def _settle(
        ad_ids: list[str],
        result: FreshMediaResult,
    ) -> tuple[dict[str, CreativeMedia], dict[str, LoadingState]]:
        media: dict[str, CreativeMedia] = {}
        loading: dict[str, LoadingState] = {}

        for ad_id in ad_ids:
            fresh = result.creatives.get(ad_id)
            error = result.errors.get(ad_id)
            if fresh is not None and fresh.has_usable_media:
                media[ad_id] = fresh
                loading[ad_id] = LoadingState.done()
            elif error:
                loading[ad_id] = LoadingState.failed(error)
            else:
                loading[ad_id] = LoadingState.done()

        return media, loading
