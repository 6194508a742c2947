"""
Read side: event-sourced timelines, geolocation traces and item reports.
"""

from .timeline import EventReconstructor, fold_timeline, decode_events
from .trace import trace_for, parse_coordinates
from .explorer import ItemExplorer

__all__ = [
    "EventReconstructor",
    "fold_timeline",
    "decode_events",
    "trace_for",
    "parse_coordinates",
    "ItemExplorer",
]
