"""
Base Schema Models for the sponsored track-and-trace client

This module defines the fundamental base classes and enums that all other
schema models inherit from. It provides the foundation for type safety,
validation, and consistent serialization across the permit write path and
the event-sourced read path.

Core Classes:
    - CanonicalModel: RFC8785-style Pydantic base model with canonical JSON output
    - ContractAddress: On-chain address of the track-and-trace contract instance
    - ItemStatus: Closed set of item lifecycle states
    - MetadataUrl: Optional reference to off-chain item metadata
    - ItemState: Current-state snapshot returned by the contract
    - FinalizationStatus: Terminal (or unknown) outcome of a submitted transaction

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from typing import Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


U64_MAX = 2 ** 64 - 1


class CanonicalModel(BaseModel):
    """
    RFC8785-compliant Pydantic base model with canonical JSON serialization.

    Ensures a deterministic JSON representation, suitable for logging request
    bodies and comparing snapshots.

    Features:
        - Automatic conversion of Pydantic objects and enums to standard types
        - Deterministic key sorting in JSON output
        - No extra whitespace

    Example:
        class MyModel(CanonicalModel):
            name: str
            value: int

        model = MyModel(name="test", value=123)
        canonical_json = model.to_canonical_json()  # '{"name":"test","value":123}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to canonical JSON string (sorted keys, compact separators).

        Returns:
            str: Canonical JSON string.
        """
        data = self.model_dump(mode="json")
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )


class ContractAddress(CanonicalModel):
    """
    Address of a smart contract instance.

    A contract instance is identified by an ``index`` and a ``subindex``,
    both unsigned 64-bit integers. The pair is part of every signed permit,
    so the same contract address must be used by the client and by the relay.

    Attributes:
        index: Contract instance index.
        subindex: Contract instance subindex (almost always 0).

    Example:
        address = ContractAddress(index=10383, subindex=0)
        address.to_bytes().hex()  # '8f28000000000000' + '0000000000000000'
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, le=U64_MAX, description="Contract instance index")
    subindex: int = Field(default=0, ge=0, le=U64_MAX, description="Contract instance subindex")

    def to_bytes(self) -> bytes:
        """
        Serialize as two little-endian u64 words (index, then subindex).

        Returns:
            bytes: 16-byte representation.
        """
        return self.index.to_bytes(8, "little") + self.subindex.to_bytes(8, "little")

    def __str__(self) -> str:
        return f"<{self.index},{self.subindex}>"


class ItemStatus(str, Enum):
    """
    Lifecycle status of a tracked item.

    The declaration order defines the u8 tag used on the wire:
    Produced=0, InTransit=1, InStore=2, Sold=3.
    """
    PRODUCED = "Produced"
    IN_TRANSIT = "InTransit"
    IN_STORE = "InStore"
    SOLD = "Sold"

    @property
    def tag(self) -> int:
        """Wire tag of this status."""
        return list(ItemStatus).index(self)

    @classmethod
    def from_tag(cls, tag: int) -> "ItemStatus":
        """
        Look up a status by its wire tag.

        Raises:
            ValueError: If the tag is not a known status.
        """
        members = list(cls)
        if not 0 <= tag < len(members):
            raise ValueError(f"Unknown item status tag: {tag}")
        return members[tag]


class MetadataUrl(CanonicalModel):
    """
    Reference to off-chain item metadata.

    Attributes:
        url: ``ipfs://<cid>`` reference, bare CID, or http(s) URL.
        hash: Optional 32-byte content hash as 64-char hex string.
    """

    url: str = Field(..., min_length=1, description="Metadata location (ipfs:// URL, CID, or http(s) URL)")
    hash: Optional[str] = Field(None, description="Optional sha256 content hash (64 hex chars)")

    @field_validator("hash")
    @classmethod
    def _check_hash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        hex_str = value[2:] if value.startswith("0x") else value
        if len(hex_str) != 64:
            raise ValueError(f"hash must be 32 bytes (64 hex chars), got {len(hex_str)}")
        bytes.fromhex(hex_str)
        return hex_str.lower()


class ItemState(CanonicalModel):
    """
    Current-state snapshot of an item as stored by the contract.

    Returned by the read-only ``getItemState`` entrypoint.

    Attributes:
        status: Current lifecycle status.
        metadata_url: Optional metadata reference.
    """

    status: ItemStatus = Field(..., description="Current item status")
    metadata_url: Optional[MetadataUrl] = Field(None, description="Current metadata reference")


class FinalizationStatus(str, Enum):
    """
    Outcome of waiting for a submitted transaction.

    Attributes:
        ACCEPTED: Transaction finalized and executed successfully
        REJECTED: Transaction finalized but the contract rejected it (reverted)
        UNKNOWN: No terminal outcome observed (timeout, node unreachable);
                 the transaction may still finalize later
    """
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    UNKNOWN = "unknown"
