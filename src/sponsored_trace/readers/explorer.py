"""
Item Explorer

Assembles everything a reader sees for one item: the event-sourced
timeline, the contract's current state, the geolocation trace and, on a
best-effort basis, the item's metadata document and image.

Timeline and state failures propagate. Metadata is optional: if no store
is configured or the store cannot deliver a usable document, the metadata
fields of the report stay ``None``.
"""

import asyncio
import logging
from typing import Iterable, List, Optional

from ..adapters.bases import ChainClient, MetadataStore
from ..codec.payload import encode_item_id
from ..schemas.bases import MetadataUrl
from ..schemas.views import ItemReport, ItemTimeline
from .timeline import EventReconstructor, fold_timeline
from .trace import trace_for

logger = logging.getLogger(__name__)

IMAGE_URL_FIELD = "imageUrl"


class ItemExplorer:
    """
    Read-side facade over the chain and the metadata store.

    Args:
        chain: Node client.
        metadata_store: Optional store resolving metadata URLs.

    Usage:
        explorer = ItemExplorer(chain, HttpMetadataStore())
        report = await explorer.explore(item_id)
        report.current_status, report.current_location
    """

    def __init__(self, chain: ChainClient, metadata_store: Optional[MetadataStore] = None):
        self._chain = chain
        self._metadata_store = metadata_store
        self._reconstructor = EventReconstructor(chain)

    async def explore(self, item_id: int) -> ItemReport:
        """
        Build the full report of one item.

        Raises:
            ItemIdRangeError: ``item_id`` is not a valid u64.
            ItemNotFoundError: The item was never created.
            EventLogIntegrityError: The item's event log is malformed.
        """
        timeline = await self._reconstructor.timeline_for(item_id)
        return await self._report_for(timeline)

    async def explore_many(self, item_ids: Iterable[int]) -> List[ItemReport]:
        """
        Build reports for several items.

        Fetches the event log once and runs per-item state and metadata
        queries concurrently. Results keep the input order.

        The batch is all or nothing: every id is folded before any state
        query is sent, so one unknown id fails the whole call and no node
        queries are made. Callers wanting partial results call ``explore``
        per id.

        Raises:
            ItemIdRangeError: An id is outside the u64 range.
            ItemNotFoundError: An id has no creation event; the message names it.
            EventLogIntegrityError: An item's event log is inconsistent.
        """
        ids = list(item_ids)
        for item_id in ids:
            encode_item_id(item_id)
        events = await self._reconstructor.fetch_events()
        timelines = [fold_timeline(item_id, events) for item_id in ids]
        return list(await asyncio.gather(*(self._report_for(timeline) for timeline in timelines)))

    async def _report_for(self, timeline: ItemTimeline) -> ItemReport:
        state = await self._chain.get_item_state(encode_item_id(timeline.item_id))
        metadata_url = state.metadata_url if state.metadata_url is not None else timeline.created.metadata_url
        metadata, image_url = await self._load_metadata(metadata_url)
        return ItemReport(
            item_id=timeline.item_id,
            timeline=timeline,
            state=state,
            trace=trace_for(timeline.events),
            metadata=metadata,
            image_url=image_url,
        )

    async def _load_metadata(self, metadata_url: Optional[MetadataUrl]):
        if metadata_url is None or self._metadata_store is None:
            return None, None
        try:
            document = await self._metadata_store.fetch(metadata_url.url)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Metadata store failed for %s: %s", metadata_url.url, exc)
            return None, None
        if document is None:
            return None, None
        if not isinstance(document.data, dict):
            logger.warning("Metadata at %s is not a JSON object", document.url)
            return None, None

        image = document.data.get(IMAGE_URL_FIELD)
        image_url = self._metadata_store.resolve_url(image) if isinstance(image, str) and image else None
        return document.data, image_url
