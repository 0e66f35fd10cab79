"""In-memory state of the current creative search.

Holds the creative collection, the per-ad LoadingState map and the global
enrichment flag. State changes only through ``CreativeState.apply``, which
applies one ``StateUpdate`` atomically and notifies subscribers once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from analytics.creative_models import EnrichedCreative, LoadingState
from storage.models import CreativeMedia

logger = logging.getLogger(__name__)


@dataclass
class StateUpdate:
    """One batch of state changes.

    Steps are applied in field order: reset, replace, append, media merge,
    loading states, then the scalar fields.

    Attributes:
        reset: Clear the collection, loading states and enrichment flag.
        creatives: Replace the collection with these records.
        appended: Append these records to the collection.
        media: Fresh media to merge, keyed by ad id.
        loading: LoadingState changes keyed by ad id.
        in_progress: New value of the global enrichment flag.
        total: New total match count.
        has_more: Whether another window exists.
    """

    reset: bool = False
    creatives: Optional[list[EnrichedCreative]] = None
    appended: list[EnrichedCreative] = field(default_factory=list)
    media: dict[str, CreativeMedia] = field(default_factory=dict)
    loading: dict[str, LoadingState] = field(default_factory=dict)
    in_progress: Optional[bool] = None
    total: Optional[int] = None
    has_more: Optional[bool] = None


Listener = Callable[["CreativeState", StateUpdate], None]


class CreativeState:
    """Observable state of the displayed creatives."""

    def __init__(self) -> None:
        self._creatives: list[EnrichedCreative] = []
        self._loading: dict[str, LoadingState] = {}
        self._in_progress = False
        self._total = 0
        self._has_more = False
        self._listeners: list[Listener] = []

    @property
    def creatives(self) -> list[EnrichedCreative]:
        return list(self._creatives)

    @property
    def loading_states(self) -> dict[str, LoadingState]:
        return dict(self._loading)

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def total(self) -> int:
        return self._total

    @property
    def has_more(self) -> bool:
        return self._has_more

    def get_loading_state(self, ad_id: str) -> Optional[LoadingState]:
        return self._loading.get(ad_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every applied update.

        Returns:
            A callable that unsubscribes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def apply(self, update: StateUpdate) -> None:
        """Apply one update atomically, then notify each listener once."""
        if update.reset:
            self._creatives = []
            self._loading = {}
            self._in_progress = False
            self._total = 0
            self._has_more = False

        if update.creatives is not None:
            self._creatives = list(update.creatives)

        if update.appended:
            self._creatives.extend(update.appended)

        if update.media:
            self._creatives = [
                c.with_creative(update.media[c.ad_id]) if c.ad_id in update.media else c
                for c in self._creatives
            ]

        self._loading.update(update.loading)

        if update.in_progress is not None:
            self._in_progress = update.in_progress
        if update.total is not None:
            self._total = update.total
        if update.has_more is not None:
            self._has_more = update.has_more

        for listener in list(self._listeners):
            listener(self, update)
