"""
Derived read-side views.

All of these are ephemeral projections rebuilt from the event log on every
read; none of them is persisted.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from .bases import CanonicalModel, ItemState, ItemStatus
from .events import CreatedEvent, StatusChangedEvent, ItemEventTypes


class GeoPoint(CanonicalModel):
    """A single (latitude, longitude) waypoint."""

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    @field_validator("latitude", "longitude")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinate must be finite")
        return value

    def as_tuple(self):
        return (self.latitude, self.longitude)


class ItemTimeline(CanonicalModel):
    """
    Ordered history of one item: the creation event followed by every status
    change, sorted by (block height, intra-block index).
    """

    item_id: int = Field(..., ge=0)
    created: CreatedEvent
    changes: List[StatusChangedEvent] = Field(default_factory=list)

    @property
    def events(self) -> List[ItemEventTypes]:
        return [self.created, *self.changes]

    @property
    def current_status(self) -> ItemStatus:
        if self.changes:
            return self.changes[-1].new_status
        return self.created.initial_status

    def __len__(self) -> int:
        return 1 + len(self.changes)


class ItemReport(CanonicalModel):
    """
    Everything the explorer shows for one item.

    ``metadata`` and ``image_url`` are best-effort and stay ``None`` when the
    metadata store is unavailable or returns something unusable.
    """

    item_id: int = Field(..., ge=0)
    timeline: ItemTimeline
    state: Optional[ItemState] = None
    trace: List[GeoPoint] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    image_url: Optional[str] = None

    @property
    def current_status(self) -> ItemStatus:
        return self.timeline.current_status

    @property
    def origin(self) -> Optional[GeoPoint]:
        return self.trace[0] if self.trace else None

    @property
    def current_location(self) -> Optional[GeoPoint]:
        return self.trace[-1] if self.trace else None
