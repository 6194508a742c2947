"""
Event-Sourced Item Timeline

Rebuilds the history of an item from the contract's append-only event log.
Nothing is cached: every read fetches the log, decodes it, keeps the events
for the requested item and folds them into an ItemTimeline.

Structural rules enforced by the fold:
    - Events are ordered by (block height, intra-block index).
    - Exactly one ItemCreated event exists and it comes first.

Core API:
    - fold_timeline: Pure projection of decoded events onto one item
    - EventReconstructor.timeline_for: Fetch + decode + fold
"""

import logging
from typing import Iterable, List

from ..adapters.bases import ChainClient
from ..codec.events import decode_event
from ..codec.payload import encode_item_id
from ..engine.exceptions import EventDecodeError, EventLogIntegrityError, ItemNotFoundError
from ..schemas.events import ContractEventTypes, CreatedEvent, RawContractEvent, StatusChangedEvent
from ..schemas.views import ItemTimeline

logger = logging.getLogger(__name__)


def decode_events(raw_events: Iterable[RawContractEvent]) -> List[ContractEventTypes]:
    """Decode raw events, skipping (and logging) the ones that fail."""
    decoded = []
    for raw in raw_events:
        try:
            decoded.append(decode_event(raw))
        except EventDecodeError as exc:
            logger.warning(
                "Skipping undecodable event at (%d, %d) in %s: %s",
                raw.block_height, raw.event_index, raw.transaction_hash, exc,
            )
    return decoded


def fold_timeline(item_id: int, events: Iterable[ContractEventTypes]) -> ItemTimeline:
    """
    Project decoded contract events onto the timeline of one item.

    Pure: the result depends only on ``item_id`` and the multiset of
    ``events``; input order is irrelevant and repeated application yields
    the same timeline.

    Args:
        item_id: Item to project.
        events: Decoded events of the whole contract (other items and
                non-item events are ignored).

    Returns:
        ItemTimeline: Creation event plus ordered status changes.

    Raises:
        ItemNotFoundError: No creation event for the item.
        EventLogIntegrityError: Duplicate creation, or a change ordered
            before the creation.
    """
    relevant = [
        event for event in events
        if isinstance(event, (CreatedEvent, StatusChangedEvent)) and event.item_id == item_id
    ]
    relevant.sort(key=lambda event: event.position)

    created = [event for event in relevant if isinstance(event, CreatedEvent)]
    if not created:
        raise ItemNotFoundError(f"item {item_id} has no creation event")
    if len(created) > 1:
        positions = ", ".join(str(event.position) for event in created)
        raise EventLogIntegrityError(f"item {item_id} was created more than once at {positions}")
    if relevant[0] is not created[0]:
        raise EventLogIntegrityError(
            f"item {item_id} has a status change at {relevant[0].position} "
            f"before its creation at {created[0].position}"
        )

    return ItemTimeline(item_id=item_id, created=created[0], changes=relevant[1:])


class EventReconstructor:
    """
    Builds item timelines from a ChainClient's event log.

    Usage:
        reconstructor = EventReconstructor(chain)
        timeline = await reconstructor.timeline_for(item_id)
        timeline.current_status
    """

    def __init__(self, chain: ChainClient):
        self._chain = chain

    async def fetch_events(self) -> List[ContractEventTypes]:
        return decode_events(await self._chain.get_contract_events())

    async def timeline_for(self, item_id: int) -> ItemTimeline:
        encode_item_id(item_id)
        events = await self.fetch_events()
        timeline = fold_timeline(item_id, events)
        logger.debug("Item %d timeline: %d events, status %s",
                     item_id, len(timeline), timeline.current_status.value)
        return timeline
