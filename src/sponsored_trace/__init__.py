"""
Sponsored track-and-trace client.

Relay-sponsored, permit-authorized writes to a track-and-trace contract and
event-sourced reconstruction of item histories.
"""

from .config import ClientConfig, load_client_config
from .engine.flows import SponsoredFlow, AdminOperations, extract_created_item_id
from .engine.nonces import NonceTracker
from .clients.relay_client import RelayClient
from .clients.finalization import FinalizationWaiter
from .readers.timeline import EventReconstructor
from .readers.explorer import ItemExplorer

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "load_client_config",
    "SponsoredFlow",
    "AdminOperations",
    "extract_created_item_id",
    "NonceTracker",
    "RelayClient",
    "FinalizationWaiter",
    "EventReconstructor",
    "ItemExplorer",
]
