"""
Write Flows

Wires the write path into single sequential operations:

    nonce -> encode payload -> build permit -> sign -> relay -> finalize -> refresh

Sponsored flows (SponsoredFlow) are paid by the relay and authorized by a
signed permit. Admin operations (AdminOperations) are paid by the caller's
own wallet and submitted directly to the node.

Outcome handling:
    - ACCEPTED: the nonce is refreshed and a WriteOutcome is returned
    - REJECTED: the nonce is refreshed (it was consumed) and
      OnChainRejectionError is raised
    - If that refresh fails, the cached nonce is invalidated instead so the
      next permit re-queries the node; the finalization outcome still wins
    - UNKNOWN: a WriteOutcome with UNKNOWN status is returned and the nonce
      cache is left untouched until the caller refreshes it
    - Relay errors propagate unchanged; their ``requires_nonce_refresh``
      flag tells the caller whether to refresh before retrying
"""

import logging
from typing import List, Optional

from ..adapters.bases import ChainClient, PermitSigner
from ..adapters.signers import permit_digest
from ..clients.finalization import FinalizationWaiter
from ..clients.relay_client import RelayClient
from ..codec.payload import (
    encode_change_status_payload,
    encode_create_payload,
    encode_update_state_machine_payload,
    encode_role_payload,
)
from ..codec.permit import (
    build_permit_message,
    expiry_in,
    CHANGE_ITEM_STATUS_ENTRYPOINT,
    CREATE_ITEM_ENTRYPOINT,
)
from ..config import DEFAULT_PERMIT_EXPIRY_DAYS, ClientConfig
from ..readers.timeline import EventReconstructor
from ..schemas.bases import ContractAddress, FinalizationStatus
from ..schemas.events import Role
from ..schemas.params import ChangeItemStatusParams, CreateItemParams, UpdateStateMachineParams, RoleParams
from ..schemas.results import FinalizationResult, WriteOutcome
from ..schemas.views import ItemTimeline
from .exceptions import OnChainRejectionError, WalletNotConnectedError
from .nonces import NonceTracker

logger = logging.getLogger(__name__)


UPDATE_STATE_MACHINE_ENTRYPOINT = "updateStateMachine"
GRANT_ROLE_ENTRYPOINT = "grantRole"
REVOKE_ROLE_ENTRYPOINT = "revokeRole"


def extract_created_item_id(result: FinalizationResult) -> Optional[int]:
    """
    Item id assigned by a finalized ``createItem`` call.

    Returns:
        The id from the first ItemCreated event, or None when the result
        carries no such event (for example an UNKNOWN outcome).
    """
    created = result.created_events()
    return created[0].item_id if created else None


def _raise_if_rejected(result: FinalizationResult, entrypoint: str) -> None:
    if result.status == FinalizationStatus.REJECTED:
        raise OnChainRejectionError(
            f"{entrypoint} rejected on chain: {result.reject_reason}",
            transaction_hash=result.transaction_hash,
            reject_reason=result.reject_reason,
        )


class SponsoredFlow:
    """
    Relay-sponsored write operations for one connected signer.

    Args:
        chain: Node client.
        relay: Relay client bound to the same contract.
        contract_address: Contract instance the permits target.
        signer: Wallet signer; None until a wallet is connected.
        nonces: Shared nonce tracker (one is created when omitted).
        waiter: Finalization waiter (one is created when omitted).
        permit_expiry_days: Lifetime of each permit.

    Usage:
        flow = SponsoredFlow(chain, relay, address, signer=signer)
        outcome = await flow.change_item_status(signer.account, params, timeout=60)
    """

    def __init__(
        self,
        chain: ChainClient,
        relay: RelayClient,
        contract_address: ContractAddress,
        signer: Optional[PermitSigner] = None,
        nonces: Optional[NonceTracker] = None,
        waiter: Optional[FinalizationWaiter] = None,
        permit_expiry_days: float = DEFAULT_PERMIT_EXPIRY_DAYS,
    ):
        self._chain = chain
        self._relay = relay
        self._contract_address = contract_address
        self._signer = signer
        self._nonces = nonces or NonceTracker(chain)
        self._waiter = waiter or FinalizationWaiter(chain)
        self._reconstructor = EventReconstructor(chain)
        self._permit_expiry_days = permit_expiry_days

    @classmethod
    def from_config(
        cls,
        chain: ChainClient,
        config: ClientConfig,
        signer: Optional[PermitSigner] = None,
        relay: Optional[RelayClient] = None,
        **relay_kwargs
    ) -> "SponsoredFlow":
        """
        Wire a flow from resolved settings.

        Builds the relay client (unless one is given), the nonce tracker and
        the finalization waiter from ``config``. ``relay_kwargs`` are passed
        to ``RelayClient.from_config``.
        """
        relay = relay or RelayClient.from_config(config, **relay_kwargs)
        return cls(
            chain,
            relay,
            config.contract_address,
            signer=signer,
            nonces=NonceTracker.from_config(chain, config),
            waiter=FinalizationWaiter.from_config(chain, config),
            permit_expiry_days=config.permit_expiry_days,
        )

    @property
    def nonces(self) -> NonceTracker:
        return self._nonces

    @property
    def relay(self) -> RelayClient:
        return self._relay

    @property
    def waiter(self) -> FinalizationWaiter:
        return self._waiter

    @property
    def permit_expiry_days(self) -> float:
        return self._permit_expiry_days

    def connect(self, signer: PermitSigner) -> None:
        self._signer = signer

    def disconnect(self) -> None:
        self._signer = None

    def _signer_for(self, account: str) -> PermitSigner:
        if self._signer is None:
            raise WalletNotConnectedError("no wallet connected")
        if not account or account != self._signer.account:
            raise WalletNotConnectedError(f"account {account!r} is not the connected wallet")
        return self._signer

    async def submit_permit(
        self,
        account: str,
        entrypoint: str,
        payload: bytes,
        timeout: Optional[float] = None,
    ) -> WriteOutcome:
        """
        Run one sponsored write end to end.

        Args:
            account: Connected account that authorizes the call.
            entrypoint: Contract entrypoint.
            payload: Encoded parameters.
            timeout: Seconds to wait for finalization; the waiter default when omitted.

        Returns:
            WriteOutcome: ACCEPTED or UNKNOWN.

        Raises:
            InputValidationError: Bad input or no connected wallet.
            RelayRejectedError / StaleNonceError / RelayTransportError: Relay failures.
            OnChainRejectionError: The contract rejected the call.
        """
        signer = self._signer_for(account)
        nonce = await self._nonces.current_nonce(account)
        expiry = expiry_in(self._permit_expiry_days)
        message = build_permit_message(self._contract_address, nonce, expiry, entrypoint, payload)
        signature = await signer.sign(message)
        digest = permit_digest(message)

        logger.info("Submitting %s permit %s for %s with nonce %d", entrypoint, digest[:16], account, nonce)
        transaction_hash = await self._relay.submit(payload, signature, expiry, nonce, account, entrypoint)

        result = await self._waiter.await_finalization(transaction_hash, timeout=timeout)
        if result.status == FinalizationStatus.UNKNOWN:
            logger.warning("Outcome of %s (%s) unknown: %s", entrypoint, transaction_hash, result.reject_reason)
            return self._outcome(transaction_hash, nonce, entrypoint, result, digest)

        await self._refresh_after_finalization(account)
        _raise_if_rejected(result, entrypoint)
        return self._outcome(transaction_hash, nonce, entrypoint, result, digest)

    async def _refresh_after_finalization(self, account: str) -> None:
        try:
            await self._nonces.refresh(account)
        except Exception as exc:
            logger.warning("Nonce refresh for %s failed after finalization: %s", account, exc)
            self._nonces.invalidate(account)

    @staticmethod
    def _outcome(transaction_hash: str, nonce: int, entrypoint: str, result: FinalizationResult,
                 digest: str) -> WriteOutcome:
        outcome = WriteOutcome(transaction_hash=transaction_hash, nonce=nonce, entrypoint=entrypoint, finalization=result)
        logger.debug("Permit %s outcome: %s", digest[:16], outcome.to_canonical_json())
        return outcome

    async def change_item_status(
        self,
        account: str,
        params: ChangeItemStatusParams,
        timeout: Optional[float] = None,
    ) -> WriteOutcome:
        payload = encode_change_status_payload(params)
        return await self.submit_permit(account, CHANGE_ITEM_STATUS_ENTRYPOINT, payload, timeout)

    async def create_item(
        self,
        account: str,
        params: CreateItemParams,
        timeout: Optional[float] = None,
    ) -> WriteOutcome:
        payload = encode_create_payload(params)
        return await self.submit_permit(account, CREATE_ITEM_ENTRYPOINT, payload, timeout)

    async def change_item_status_and_reload(
        self,
        account: str,
        params: ChangeItemStatusParams,
        timeout: Optional[float] = None,
    ) -> tuple:
        """
        Change the status, then rebuild the item timeline if the change was
        accepted. The timeline is None for an UNKNOWN outcome.
        """
        outcome = await self.change_item_status(account, params, timeout)
        timeline: Optional[ItemTimeline] = None
        if outcome.status == FinalizationStatus.ACCEPTED:
            timeline = await self._reconstructor.timeline_for(params.item_id)
        return outcome, timeline


class AdminOperations:
    """
    Wallet-paid administrative calls.

    These are not sponsored: the admin's wallet signs and pays through
    ``ChainClient.submit_transaction``. Finalization is awaited the same way
    as for sponsored writes; an UNKNOWN outcome is returned, a rejection
    raises OnChainRejectionError.
    """

    def __init__(self, chain: ChainClient, waiter: Optional[FinalizationWaiter] = None):
        self._chain = chain
        self._waiter = waiter or FinalizationWaiter(chain)

    async def _submit(self, sender: str, entrypoint: str, payload: bytes, timeout: Optional[float]) -> FinalizationResult:
        if not sender:
            raise WalletNotConnectedError("no admin account connected")
        logger.info("Submitting %s from %s", entrypoint, sender)
        transaction_hash = await self._chain.submit_transaction(sender, entrypoint, payload)
        result = await self._waiter.await_finalization(transaction_hash, timeout=timeout)
        _raise_if_rejected(result, entrypoint)
        return result

    async def create_item(self, sender: str, params: CreateItemParams, timeout: Optional[float] = None) -> FinalizationResult:
        return await self._submit(sender, CREATE_ITEM_ENTRYPOINT, encode_create_payload(params), timeout)

    async def update_state_machine(self, sender: str, params: UpdateStateMachineParams,
                                   timeout: Optional[float] = None) -> FinalizationResult:
        return await self._submit(sender, UPDATE_STATE_MACHINE_ENTRYPOINT,
                                  encode_update_state_machine_payload(params), timeout)

    async def grant_role(self, sender: str, params: RoleParams, timeout: Optional[float] = None) -> FinalizationResult:
        return await self._submit(sender, GRANT_ROLE_ENTRYPOINT, encode_role_payload(params), timeout)

    async def revoke_role(self, sender: str, params: RoleParams, timeout: Optional[float] = None) -> FinalizationResult:
        return await self._submit(sender, REVOKE_ROLE_ENTRYPOINT, encode_role_payload(params), timeout)

    async def addresses_with_role(self, role: Role) -> List[str]:
        """Accounts the contract currently grants ``role`` to."""
        return await self._chain.get_addresses_by_role(role)
