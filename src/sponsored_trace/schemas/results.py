"""
Result Models for submissions and finalization

Captures what the chain reports about a transaction and what the write path
hands back to its caller.

Core Classes:
    - TransactionSummary: Terminal summary reported by the node for one hash
    - FinalizationResult: Outcome of FinalizationWaiter.await_finalization
    - WriteOutcome: Outcome of one sponsored write operation
"""

from datetime import datetime
from typing import Optional, List

from pydantic import Field

from .bases import CanonicalModel, FinalizationStatus
from .events import RawContractEvent, ContractEventTypes, CreatedEvent


class TransactionSummary(CanonicalModel):
    """
    Terminal summary of a finalized transaction, as reported by the node.

    Attributes:
        transaction_hash: Hash of the finalized transaction.
        success: ``True`` if the contract executed it, ``False`` if it was rejected.
        block_height: Height of the block the transaction was finalized in.
        block_time: Timestamp of that block.
        events: Raw events emitted (empty for rejected transactions).
        reject_reason: Node-supplied rejection reason, if any.
    """

    transaction_hash: str = Field(..., description="Finalized transaction hash")
    success: bool = Field(..., description="Whether the contract executed the transaction")
    block_height: int = Field(..., ge=0, description="Finalizing block height")
    block_time: datetime = Field(..., description="Finalizing block timestamp")
    events: List[RawContractEvent] = Field(default_factory=list, description="Raw emitted events")
    reject_reason: Optional[str] = Field(None, description="Rejection reason when success is False")


class FinalizationResult(CanonicalModel):
    """
    Outcome of waiting for a submitted transaction.

    ``UNKNOWN`` is not a failure: the transaction may still finalize after the
    caller stopped waiting.

    Attributes:
        transaction_hash: Hash that was awaited.
        status: ACCEPTED, REJECTED or UNKNOWN.
        events: Decoded events (only populated when ACCEPTED).
        reject_reason: Rejection reason when REJECTED, wait error text when UNKNOWN.
        block_height: Finalizing block height when known.
    """

    transaction_hash: str
    status: FinalizationStatus
    events: List[ContractEventTypes] = Field(default_factory=list)
    reject_reason: Optional[str] = None
    block_height: Optional[int] = None

    @property
    def accepted(self) -> bool:
        return self.status == FinalizationStatus.ACCEPTED

    @property
    def nonce_consumed(self) -> Optional[bool]:
        """
        Whether the permit nonce is spent.

        The contract advances the nonce for every finalized permit, including
        executions that were rejected. ``None`` means the outcome is unknown.
        """
        if self.status == FinalizationStatus.UNKNOWN:
            return None
        return True

    def created_events(self) -> List[CreatedEvent]:
        return [e for e in self.events if isinstance(e, CreatedEvent)]


class WriteOutcome(CanonicalModel):
    """
    Result of one sponsored write (permit -> relay -> finalization).

    Attributes:
        transaction_hash: Hash returned by the relay.
        nonce: Nonce the permit was bound to.
        entrypoint: Contract entrypoint invoked.
        finalization: Finalization outcome (ACCEPTED or UNKNOWN; rejections raise).
    """

    transaction_hash: str
    nonce: int = Field(..., ge=0)
    entrypoint: str
    finalization: FinalizationResult

    @property
    def status(self) -> FinalizationStatus:
        return self.finalization.status
