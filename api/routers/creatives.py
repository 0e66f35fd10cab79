"""Creatives Router - Creative search, enrichment status, tags and comparisons.

Search results come from the session held on ``app.state``; fresh media is
merged into the session's collection in the background, so clients poll
``/creatives/enrichment-status`` and the per-ad loading state.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.dependencies import get_session, get_store
from api.schemas import (
    AdsetOptionResponse,
    CampaignOptionResponse,
    ComparisonCreatedResponse,
    ComparisonRequest,
    ComparisonResponse,
    EnrichedCreativeResponse,
    EnrichmentStatusResponse,
    LoadingStateResponse,
    MessageResponse,
    PaginationMeta,
    SearchFiltersRequest,
    SearchResponse,
    TagListResponse,
    TagRequest,
)
from services import CreativeAnalysisSession
from storage import SQLiteStore, StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/creatives", tags=["Creatives"])


def _store_unavailable(e: StoreError) -> HTTPException:
    logger.error(f"Store error: {e}")
    return HTTPException(status_code=503, detail=f"Store unavailable: {e}")


def _collection_response(session: CreativeAnalysisSession) -> SearchResponse:
    """Build a response from the session's current collection."""
    creatives = session.creatives
    window = session.filters
    return SearchResponse(
        data=[
            EnrichedCreativeResponse.from_creative(c, session.get_loading_state(c.ad_id))
            for c in creatives
        ],
        meta=PaginationMeta(
            total=session.total,
            returned=len(creatives),
            limit=window.limit,
            offset=window.offset,
            has_more=session.has_more,
        ),
        generation=session.generation,
        enrichment_in_progress=session.is_enrichment_in_progress(),
    )


# =============================================================================
# Search
# =============================================================================

@router.post("/search", response_model=SearchResponse)
async def search_creatives(
    request: SearchFiltersRequest,
    session: CreativeAnalysisSession = Depends(get_session),
):
    """Run a new search. Fresh media is fetched in the background."""
    try:
        await session.search(request.to_filters())
    except StoreError as e:
        raise _store_unavailable(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _collection_response(session)


@router.post("/load-more", response_model=SearchResponse)
async def load_more_creatives(session: CreativeAnalysisSession = Depends(get_session)):
    """Append the next window to the current collection."""
    try:
        await session.load_more()
    except StoreError as e:
        raise _store_unavailable(e)
    return _collection_response(session)


@router.get("/enrichment-status", response_model=EnrichmentStatusResponse)
async def get_enrichment_status(session: CreativeAnalysisSession = Depends(get_session)):
    """Whether fresh media is still being fetched for the current search."""
    return EnrichmentStatusResponse(
        in_progress=session.is_enrichment_in_progress(),
        generation=session.generation,
    )


# =============================================================================
# Filter options
# =============================================================================

@router.get("/options/campaigns", response_model=list[CampaignOptionResponse])
async def list_campaign_options(
    platform: str = Query("meta"),
    session: CreativeAnalysisSession = Depends(get_session),
):
    try:
        options = await session.search_service.list_campaign_options(platform)
    except StoreError as e:
        raise _store_unavailable(e)
    return [CampaignOptionResponse(**o.__dict__) for o in options]


@router.get("/options/adsets", response_model=list[AdsetOptionResponse])
async def list_adset_options(
    campaign_id: str = Query(..., min_length=1),
    session: CreativeAnalysisSession = Depends(get_session),
):
    try:
        options = await session.search_service.list_adset_options(campaign_id)
    except StoreError as e:
        raise _store_unavailable(e)
    return [AdsetOptionResponse(**o.__dict__) for o in options]


# =============================================================================
# Tags
# =============================================================================

@router.get("/tags", response_model=TagListResponse)
async def list_tags(store: SQLiteStore = Depends(get_store)):
    """All tags in use, sorted."""
    try:
        return TagListResponse(tags=await store.get_all_tags())
    except StoreError as e:
        raise _store_unavailable(e)


@router.post("/{ad_id}/tags", response_model=MessageResponse)
async def add_tag(ad_id: str, request: TagRequest, store: SQLiteStore = Depends(get_store)):
    tag = request.tag.strip()
    if not tag:
        raise HTTPException(status_code=400, detail="Tag must not be blank")
    try:
        added = await store.add_tag(ad_id, tag)
    except StoreError as e:
        raise _store_unavailable(e)
    return MessageResponse(status="added" if added else "exists")


@router.delete("/{ad_id}/tags/{tag}", response_model=MessageResponse)
async def remove_tag(ad_id: str, tag: str, store: SQLiteStore = Depends(get_store)):
    try:
        removed = await store.remove_tag(ad_id, tag)
    except StoreError as e:
        raise _store_unavailable(e)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Tag '{tag}' not found on ad {ad_id}")
    return MessageResponse(status="removed")


# =============================================================================
# Comparisons
# =============================================================================

@router.post("/comparisons", response_model=ComparisonCreatedResponse)
async def save_comparison(request: ComparisonRequest, store: SQLiteStore = Depends(get_store)):
    try:
        comparison_id = await store.save_comparison(
            name=request.name,
            ad_ids=request.ad_ids,
            platform=request.platform,
            date_from=request.date_from,
            date_to=request.date_to,
            filters_snapshot=request.filters_snapshot,
        )
    except StoreError as e:
        raise _store_unavailable(e)
    return ComparisonCreatedResponse(id=comparison_id)


@router.get("/comparisons", response_model=list[ComparisonResponse])
async def list_comparisons(
    platform: Optional[str] = Query(None),
    store: SQLiteStore = Depends(get_store),
):
    """Saved comparisons, newest first (at most 20)."""
    try:
        comparisons = await store.list_comparisons(platform)
    except StoreError as e:
        raise _store_unavailable(e)
    return [ComparisonResponse.from_comparison(c) for c in comparisons]


@router.delete("/comparisons/{comparison_id}", response_model=MessageResponse)
async def delete_comparison(comparison_id: str, store: SQLiteStore = Depends(get_store)):
    try:
        deleted = await store.delete_comparison(comparison_id)
    except StoreError as e:
        raise _store_unavailable(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Comparison not found")
    return MessageResponse(status="deleted")


# =============================================================================
# Per-ad loading state
# =============================================================================

@router.get("/{ad_id}/loading-state", response_model=LoadingStateResponse)
async def get_loading_state(ad_id: str, session: CreativeAnalysisSession = Depends(get_session)):
    """Enrichment status of one ad in the current search."""
    state = session.get_loading_state(ad_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"No loading state for ad {ad_id}")
    return LoadingStateResponse.from_state(ad_id, state)
