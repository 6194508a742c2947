"""
Finalization waiting.

Waits for a submitted transaction to reach a terminal state and reports one
of three outcomes: accepted, rejected, or unknown. A timeout or a node error
while waiting is reported as unknown, never as rejected, because the
transaction may still finalize later. Cancellation of the caller propagates.

Every wait is bounded: the waiter has a finite default timeout and refuses
unbounded or non-positive values.
"""

import asyncio
import logging
import math
from typing import Optional

from ..adapters.bases import ChainClient
from ..codec.events import decode_event
from ..config import DEFAULT_FINALIZATION_TIMEOUT, ClientConfig
from ..engine.exceptions import EventDecodeError, InputValidationError
from ..schemas.bases import FinalizationStatus
from ..schemas.results import FinalizationResult, TransactionSummary

logger = logging.getLogger(__name__)


def _bounded_timeout(value, name: str) -> float:
    if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputValidationError(f"{name} must be a number of seconds, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InputValidationError(f"{name} must be finite and positive, got {value!r}")
    return float(value)


class FinalizationWaiter:
    """
    Awaits transaction finalization through a ChainClient.

    Args:
        chain: Node client.
        default_timeout: Seconds applied when the caller passes no timeout.

    Raises:
        InputValidationError: ``default_timeout`` is None, infinite or not
            positive.
    """

    def __init__(self, chain: ChainClient, default_timeout: float = DEFAULT_FINALIZATION_TIMEOUT):
        self._chain = chain
        self._default_timeout = _bounded_timeout(default_timeout, "default_timeout")

    @classmethod
    def from_config(cls, chain: ChainClient, config: ClientConfig) -> "FinalizationWaiter":
        return cls(chain, default_timeout=config.finalization_timeout)

    @property
    def default_timeout(self) -> float:
        return self._default_timeout

    async def await_finalization(self, transaction_hash: str, timeout: Optional[float] = None) -> FinalizationResult:
        """
        Wait for ``transaction_hash`` to finalize.

        Args:
            transaction_hash: Hash returned by the relay or the node.
            timeout: Seconds to wait before reporting UNKNOWN; the waiter's
                default when omitted.

        Returns:
            FinalizationResult: ACCEPTED with decoded events, REJECTED with the
            reject reason, or UNKNOWN.

        Raises:
            InputValidationError: ``timeout`` is infinite or not positive.
        """
        limit = self._default_timeout if timeout is None else _bounded_timeout(timeout, "timeout")
        try:
            summary = await asyncio.wait_for(self._chain.wait_for_finalization(transaction_hash), timeout=limit)
        except asyncio.TimeoutError:
            logger.info("Finalization of %s not observed within %ss", transaction_hash, limit)
            return FinalizationResult(
                transaction_hash=transaction_hash,
                status=FinalizationStatus.UNKNOWN,
                reject_reason=f"no finalization observed within {limit}s",
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Waiting for %s failed: %s", transaction_hash, exc)
            return FinalizationResult(
                transaction_hash=transaction_hash,
                status=FinalizationStatus.UNKNOWN,
                reject_reason=str(exc),
            )
        return self._to_result(summary)

    @staticmethod
    def _to_result(summary: TransactionSummary) -> FinalizationResult:
        if not summary.success:
            logger.info("Transaction %s rejected: %s", summary.transaction_hash, summary.reject_reason)
            return FinalizationResult(
                transaction_hash=summary.transaction_hash,
                status=FinalizationStatus.REJECTED,
                reject_reason=summary.reject_reason or "rejected by the contract",
                block_height=summary.block_height,
            )

        events = []
        for raw in summary.events:
            try:
                events.append(decode_event(raw))
            except EventDecodeError as exc:
                logger.warning("Skipping undecodable event in %s: %s", summary.transaction_hash, exc)
        logger.info("Transaction %s finalized at height %d", summary.transaction_hash, summary.block_height)
        return FinalizationResult(
            transaction_hash=summary.transaction_hash,
            status=FinalizationStatus.ACCEPTED,
            events=events,
            block_height=summary.block_height,
        )
