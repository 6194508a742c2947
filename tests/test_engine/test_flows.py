"""
Tests for the sponsored write flow and admin operations, end to end against
the in-memory chain and relay.
"""

import logging
from unittest.mock import AsyncMock

import httpx
import pytest

from chain_mocks import (
    FakeChain,
    make_relay_transport,
    MOCK_ACCOUNT,
    MOCK_CONTRACT,
    MOCK_NONCE_FIVE,
    MOCK_OTHER_ACCOUNT,
    MOCK_PRIVATE_KEY,
    MOCK_RELAY_URL,
)
from sponsored_trace.adapters.signers import LocalKeySigner
from sponsored_trace.clients.relay_client import RelayClient
from sponsored_trace.codec.auxiliary import location_to_bytes
from sponsored_trace.config import ClientConfig
from sponsored_trace.engine.exceptions import (
    OnChainRejectionError,
    RelayTransportError,
    StaleNonceError,
    SubmissionOutcome,
    WalletNotConnectedError,
    ErrorKind,
)
from sponsored_trace.engine.flows import AdminOperations, SponsoredFlow, extract_created_item_id
from sponsored_trace.schemas.bases import FinalizationStatus, ItemStatus, MetadataUrl
from sponsored_trace.schemas.events import Role
from sponsored_trace.schemas.params import (
    ChangeItemStatusParams,
    CreateItemParams,
    RoleParams,
    UpdateStateMachineParams,
)


@pytest.fixture
def chain():
    fake = FakeChain()
    fake.nonces[MOCK_ACCOUNT] = MOCK_NONCE_FIVE
    fake.seed_item(location=(10.0, 20.0))
    return fake


@pytest.fixture
def signer():
    return LocalKeySigner(MOCK_PRIVATE_KEY)


def make_flow(chain, signer=None, **transport_kwargs):
    relay = RelayClient(MOCK_RELAY_URL, MOCK_CONTRACT, transport=make_relay_transport(chain, **transport_kwargs))
    return SponsoredFlow(chain, relay, MOCK_CONTRACT, signer=signer)


def in_transit(item_id=0, location=(11.0, 21.0)):
    return ChangeItemStatusParams(
        item_id=item_id,
        new_status=ItemStatus.IN_TRANSIT,
        additional_data=location_to_bytes(*location),
    )


class TestAcceptedWrites:

    @pytest.mark.asyncio
    async def test_change_status_accepted(self, chain, signer):
        flow = make_flow(chain, signer)
        outcome = await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)

        assert outcome.status == FinalizationStatus.ACCEPTED
        assert outcome.nonce == 5
        assert outcome.entrypoint == "changeItemStatus"
        assert chain.items[0].status == ItemStatus.IN_TRANSIT
        assert flow.nonces.cached_nonce(MOCK_ACCOUNT) == 6
        assert [e.event_type for e in outcome.finalization.events] == ["Nonce", "ItemStatusChanged"]

    @pytest.mark.asyncio
    async def test_consecutive_writes_use_fresh_nonces(self, chain, signer):
        flow = make_flow(chain, signer)
        first = await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)
        second = await flow.change_item_status(
            MOCK_ACCOUNT, ChangeItemStatusParams(item_id=0, new_status=ItemStatus.IN_STORE), timeout=5
        )
        assert (first.nonce, second.nonce) == (5, 6)
        assert chain.items[0].status == ItemStatus.IN_STORE

    @pytest.mark.asyncio
    async def test_create_item_returns_new_id(self, chain, signer):
        flow = make_flow(chain, signer)
        params = CreateItemParams(
            additional_data=location_to_bytes(1.0, 2.0),
            metadata_url=MetadataUrl(url="ipfs://bafy"),
        )
        outcome = await flow.create_item(MOCK_ACCOUNT, params, timeout=5)
        new_id = extract_created_item_id(outcome.finalization)
        assert new_id == 1
        assert chain.items[1].metadata_url.url == "ipfs://bafy"

    @pytest.mark.asyncio
    async def test_change_and_reload_returns_timeline(self, chain, signer):
        flow = make_flow(chain, signer)
        outcome, timeline = await flow.change_item_status_and_reload(MOCK_ACCOUNT, in_transit(), timeout=5)
        assert outcome.status == FinalizationStatus.ACCEPTED
        assert len(timeline) == 2
        assert timeline.current_status == ItemStatus.IN_TRANSIT

    @pytest.mark.asyncio
    async def test_accepted_when_refresh_fails(self, chain, signer):
        flow = make_flow(chain, signer)
        await flow.nonces.current_nonce(MOCK_ACCOUNT)
        chain.get_account_nonce = AsyncMock(side_effect=ConnectionError("node down"))

        outcome = await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)

        assert outcome.status == FinalizationStatus.ACCEPTED
        assert chain.items[0].status == ItemStatus.IN_TRANSIT
        assert flow.nonces.cached_nonce(MOCK_ACCOUNT) is None

    @pytest.mark.asyncio
    async def test_outcome_logged_as_canonical_json(self, chain, signer, caplog):
        flow = make_flow(chain, signer)
        with caplog.at_level(logging.DEBUG, logger="sponsored_trace.engine.flows"):
            outcome = await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)
        assert any(outcome.to_canonical_json() in record.getMessage() for record in caplog.records)


class TestFailures:

    @pytest.mark.asyncio
    async def test_stale_cached_nonce_is_staleness_error(self, chain, signer):
        flow = make_flow(chain, signer)
        assert await flow.nonces.current_nonce(MOCK_ACCOUNT) == 5
        # another session consumed nonce 5
        chain.nonces[MOCK_ACCOUNT] = 6

        with pytest.raises(StaleNonceError) as exc_info:
            await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)

        error = exc_info.value
        assert error.kind == ErrorKind.STALE_NONCE
        assert error.outcome == SubmissionOutcome.NOT_APPLIED
        assert error.requires_nonce_refresh
        assert flow.nonces.cached_nonce(MOCK_ACCOUNT) == 5
        assert chain.items[0].status == ItemStatus.PRODUCED

        await flow.nonces.refresh(MOCK_ACCOUNT)
        outcome = await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)
        assert outcome.nonce == 6

    @pytest.mark.asyncio
    async def test_rejected_execution_consumes_nonce(self, chain, signer):
        flow = make_flow(chain, signer)
        chain.reject_reason = "Unauthorized"

        with pytest.raises(OnChainRejectionError) as exc_info:
            await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)

        assert exc_info.value.reject_reason == "Unauthorized"
        assert exc_info.value.outcome == SubmissionOutcome.APPLIED
        assert chain.items[0].status == ItemStatus.PRODUCED
        assert flow.nonces.cached_nonce(MOCK_ACCOUNT) == 6

    @pytest.mark.asyncio
    async def test_rejection_still_raised_when_refresh_fails(self, chain, signer):
        flow = make_flow(chain, signer)
        await flow.nonces.current_nonce(MOCK_ACCOUNT)
        chain.get_account_nonce = AsyncMock(side_effect=ConnectionError("node down"))
        chain.reject_reason = "Unauthorized"

        with pytest.raises(OnChainRejectionError) as exc_info:
            await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)

        assert exc_info.value.reject_reason == "Unauthorized"
        assert flow.nonces.cached_nonce(MOCK_ACCOUNT) is None

    @pytest.mark.asyncio
    async def test_timeout_is_unknown_and_keeps_cache(self, chain, signer):
        flow = make_flow(chain, signer)
        chain.hold_finalization = True

        outcome = await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=0.05)

        assert outcome.status == FinalizationStatus.UNKNOWN
        assert outcome.finalization.nonce_consumed is None
        assert flow.nonces.cached_nonce(MOCK_ACCOUNT) == 5
        assert chain.nonces[MOCK_ACCOUNT] == 6

    @pytest.mark.asyncio
    async def test_relay_transport_failure(self, chain, signer):
        flow = make_flow(chain, signer, fail_with=httpx.ConnectError("relay down"))
        with pytest.raises(RelayTransportError) as exc_info:
            await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)
        assert exc_info.value.outcome == SubmissionOutcome.UNKNOWN
        assert exc_info.value.requires_nonce_refresh
        assert flow.nonces.cached_nonce(MOCK_ACCOUNT) == 5

    @pytest.mark.asyncio
    async def test_no_wallet_connected(self, chain):
        flow = make_flow(chain)
        with pytest.raises(WalletNotConnectedError):
            await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)
        assert chain.nonce_queries == 0

    @pytest.mark.asyncio
    async def test_account_must_match_signer(self, chain, signer):
        flow = make_flow(chain, signer)
        with pytest.raises(WalletNotConnectedError):
            await flow.change_item_status(MOCK_OTHER_ACCOUNT, in_transit(), timeout=5)

    @pytest.mark.asyncio
    async def test_connect_and_disconnect(self, chain, signer):
        flow = make_flow(chain)
        flow.connect(signer)
        outcome = await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)
        assert outcome.status == FinalizationStatus.ACCEPTED
        flow.disconnect()
        with pytest.raises(WalletNotConnectedError):
            await flow.change_item_status(MOCK_ACCOUNT, in_transit(), timeout=5)


class TestAdminOperations:

    @pytest.mark.asyncio
    async def test_update_state_machine_submitted_directly(self, chain):
        admin = AdminOperations(chain)
        params = UpdateStateMachineParams(
            account=MOCK_OTHER_ACCOUNT,
            from_status=ItemStatus.PRODUCED,
            to_status=ItemStatus.IN_TRANSIT,
        )
        result = await admin.update_state_machine(MOCK_ACCOUNT, params, timeout=5)
        assert result.status == FinalizationStatus.ACCEPTED
        sender, entrypoint, payload = chain.submitted[-1]
        assert (sender, entrypoint) == (MOCK_ACCOUNT, "updateStateMachine")
        assert payload.endswith(bytes([0, 1, 0]))

    @pytest.mark.asyncio
    async def test_grant_and_revoke_role(self, chain):
        admin = AdminOperations(chain)
        params = RoleParams(account=MOCK_OTHER_ACCOUNT, role=Role.TRANSPORTER)
        await admin.grant_role(MOCK_ACCOUNT, params, timeout=5)
        await admin.revoke_role(MOCK_ACCOUNT, params, timeout=5)
        assert [entry[1] for entry in chain.submitted] == ["grantRole", "revokeRole"]

    @pytest.mark.asyncio
    async def test_admin_create_item(self, chain):
        admin = AdminOperations(chain)
        result = await admin.create_item(MOCK_ACCOUNT, CreateItemParams(), timeout=5)
        assert extract_created_item_id(result) == 1

    @pytest.mark.asyncio
    async def test_admin_rejection_raises(self, chain):
        admin = AdminOperations(chain)
        chain.reject_reason = "Unauthorized"
        with pytest.raises(OnChainRejectionError):
            await admin.grant_role(MOCK_ACCOUNT, RoleParams(account="x", role=Role.ADMIN), timeout=5)

    @pytest.mark.asyncio
    async def test_admin_requires_sender(self, chain):
        admin = AdminOperations(chain)
        with pytest.raises(WalletNotConnectedError):
            await admin.grant_role("", RoleParams(account="x", role=Role.ADMIN))

    @pytest.mark.asyncio
    async def test_addresses_with_role(self, chain):
        admin = AdminOperations(chain)
        await admin.grant_role(MOCK_ACCOUNT, RoleParams(account=MOCK_OTHER_ACCOUNT, role=Role.TRANSPORTER), timeout=5)
        await admin.grant_role(MOCK_ACCOUNT, RoleParams(account=MOCK_ACCOUNT, role=Role.TRANSPORTER), timeout=5)
        assert await admin.addresses_with_role(Role.TRANSPORTER) == [MOCK_OTHER_ACCOUNT, MOCK_ACCOUNT]

        await admin.revoke_role(MOCK_ACCOUNT, RoleParams(account=MOCK_OTHER_ACCOUNT, role=Role.TRANSPORTER), timeout=5)
        assert await admin.addresses_with_role(Role.TRANSPORTER) == [MOCK_ACCOUNT]
        assert await admin.addresses_with_role(Role.ADMIN) == []


class TestFromConfig:

    @pytest.mark.asyncio
    async def test_settings_reach_every_component(self, chain, signer):
        config = ClientConfig(
            relay_url="https://relay.test",
            contract_address=MOCK_CONTRACT,
            nonce_refresh_interval=0.5,
            permit_expiry_days=2,
            relay_request_timeout=3,
            finalization_timeout=7,
        )
        flow = SponsoredFlow.from_config(chain, config, signer=signer, transport=make_relay_transport(chain))

        assert flow.nonces.refresh_interval == 0.5
        assert flow.waiter.default_timeout == 7
        assert flow.permit_expiry_days == 2
        assert flow.relay.timeout.read == 3
        assert flow.relay.submit_url == "https://relay.test/api/submitTransaction"
        assert flow.relay.contract_address == MOCK_CONTRACT

        outcome = await flow.change_item_status(MOCK_ACCOUNT, in_transit())
        assert outcome.status == FinalizationStatus.ACCEPTED
