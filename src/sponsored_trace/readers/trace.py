"""
Geolocation trace assembly.

Each timeline element may carry a ``location`` string ``"<lat>,<lon>"`` in
its auxiliary data. The trace keeps the timeline order, so the first point
is the origin and the last is the current location. Elements whose
auxiliary data is missing or unusable are skipped; nothing here raises.
"""

import logging
import math
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError

from ..codec.auxiliary import AuxiliaryStatus, decode_auxiliary
from ..schemas.views import GeoPoint

logger = logging.getLogger(__name__)


def parse_coordinates(location: str) -> Optional[Tuple[float, float]]:
    """
    Parse ``"<lat>,<lon>"`` into finite floats.

    Returns:
        (latitude, longitude), or None when the string is malformed.
    """
    parts = location.split(",")
    if len(parts) != 2:
        return None
    try:
        latitude, longitude = float(parts[0].strip()), float(parts[1].strip())
    except ValueError:
        return None
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        return None
    return latitude, longitude


def point_from_additional_data(additional_data: bytes) -> Optional[GeoPoint]:
    result = decode_auxiliary(additional_data)
    if result.status == AuxiliaryStatus.ABSENT:
        return None
    if result.status == AuxiliaryStatus.INVALID:
        logger.warning("Skipping trace point: %s", result.error)
        return None

    location = result.location
    if location is None:
        logger.debug("Auxiliary data has no location string")
        return None
    coordinates = parse_coordinates(location)
    if coordinates is None:
        logger.warning("Skipping trace point: malformed location %r", location)
        return None
    try:
        return GeoPoint(latitude=coordinates[0], longitude=coordinates[1])
    except ValidationError:
        logger.warning("Skipping trace point: location %r out of range", location)
        return None


def trace_for(events: Iterable) -> List[GeoPoint]:
    """
    Extract the ordered geolocation trace from timeline events.

    Args:
        events: Timeline elements exposing ``additional_data`` (typically
                ``ItemTimeline.events``).

    Returns:
        List[GeoPoint]: Points in event order.
    """
    points = []
    for event in events:
        point = point_from_additional_data(event.additional_data)
        if point is not None:
            points.append(point)
    return points
