"""
Client module for sponsored submissions.

Provides the relay client that forwards signed permits and the waiter that
observes their finalization.
"""

from .relay_client import RelayClient, classify_relay_error
from .finalization import FinalizationWaiter

__all__ = ["RelayClient", "classify_relay_error", "FinalizationWaiter"]
