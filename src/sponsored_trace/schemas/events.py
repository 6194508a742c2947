"""
Contract Event Schema Models

Typed representations of the events emitted by the track-and-trace contract.
Raw event bytes are decoded by ``sponsored_trace.codec.events`` into one of the
models below; the ``event_type`` field discriminates the closed variant set so
that the reconstruction boundary can match on it exhaustively.

Event classes:
    - CreatedEvent: An item was created with an initial status
    - StatusChangedEvent: An item moved to a new status
    - RoleGrantedEvent / RoleRevokedEvent: Access-control changes
    - NonceEvent: A permit from ``account`` consumed ``nonce``

Envelope:
    - RawContractEvent: Undecoded event bytes plus the chain-supplied position
      (block height, intra-block index), block time and transaction hash.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Union, Tuple

from pydantic import ConfigDict, Field
from typing_extensions import Annotated

from .bases import CanonicalModel, ItemStatus, MetadataUrl


class Role(str, Enum):
    """Access-control roles known to the contract (u8 tag = declaration order)."""
    ADMIN = "Admin"
    PRODUCER = "Producer"
    TRANSPORTER = "Transporter"
    SELLER = "Seller"

    @property
    def tag(self) -> int:
        return list(Role).index(self)

    @classmethod
    def from_tag(cls, tag: int) -> "Role":
        members = list(cls)
        if not 0 <= tag < len(members):
            raise ValueError(f"Unknown role tag: {tag}")
        return members[tag]


class RawContractEvent(CanonicalModel):
    """
    Undecoded contract event as reported by the chain.

    Attributes:
        data: Raw event bytes (first byte is the event tag).
        block_height: Height of the block that included the transaction.
        event_index: Position of the event within the block.
        block_time: Timestamp of the including block (UTC).
        transaction_hash: Hash of the transaction that emitted the event.
    """

    model_config = ConfigDict(ser_json_bytes="hex", frozen=True)

    data: bytes = Field(..., description="Raw event bytes")
    block_height: int = Field(..., ge=0, description="Including block height")
    event_index: int = Field(..., ge=0, description="Intra-block event position")
    block_time: datetime = Field(..., description="Including block timestamp")
    transaction_hash: str = Field(..., description="Emitting transaction hash")


class _ChainPositioned(CanonicalModel):
    """Chain position shared by all decoded events."""

    model_config = ConfigDict(ser_json_bytes="hex", frozen=True)

    block_height: int = Field(..., ge=0)
    event_index: int = Field(..., ge=0)
    block_time: datetime
    transaction_hash: str

    @property
    def position(self) -> Tuple[int, int]:
        """Total-order key: (block height, intra-block index)."""
        return (self.block_height, self.event_index)


class CreatedEvent(_ChainPositioned):
    """
    An item was created.

    Attributes:
        item_id: Identifier of the new item.
        initial_status: Status assigned at creation.
        metadata_url: Metadata reference given at creation, if any.
        additional_data: Opaque auxiliary bytes (JSON, usually a location).
    """

    event_type: Literal["ItemCreated"] = "ItemCreated"
    item_id: int = Field(..., ge=0)
    initial_status: ItemStatus
    metadata_url: Optional[MetadataUrl] = None
    additional_data: bytes = b""

    @property
    def status(self) -> ItemStatus:
        return self.initial_status


class StatusChangedEvent(_ChainPositioned):
    """
    An item changed status.

    Attributes:
        item_id: Identifier of the item.
        new_status: Status after the change.
        additional_data: Opaque auxiliary bytes (JSON, usually a location).
    """

    event_type: Literal["ItemStatusChanged"] = "ItemStatusChanged"
    item_id: int = Field(..., ge=0)
    new_status: ItemStatus
    additional_data: bytes = b""

    @property
    def status(self) -> ItemStatus:
        return self.new_status


class RoleGrantedEvent(_ChainPositioned):
    event_type: Literal["GrantRole"] = "GrantRole"
    account: str
    role: Role


class RoleRevokedEvent(_ChainPositioned):
    event_type: Literal["RevokeRole"] = "RevokeRole"
    account: str
    role: Role


class NonceEvent(_ChainPositioned):
    """A permit from ``account`` was executed with ``nonce``."""

    event_type: Literal["Nonce"] = "Nonce"
    account: str
    nonce: int = Field(..., ge=0)


# Discriminated union over every event the contract can emit.
ContractEventTypes = Annotated[
    Union[
        CreatedEvent,        # event_type: "ItemCreated"
        StatusChangedEvent,  # event_type: "ItemStatusChanged"
        RoleGrantedEvent,    # event_type: "GrantRole"
        RoleRevokedEvent,    # event_type: "RevokeRole"
        NonceEvent,          # event_type: "Nonce"
    ],
    Field(discriminator="event_type")
]

# Events that belong to an item timeline.
ItemEventTypes = Union[CreatedEvent, StatusChangedEvent]
