"""
Entrypoint Parameter Models

Typed inputs for every contract entrypoint the client can call. Each model
is validated on construction; the binary encoding lives in
``sponsored_trace.codec.payload``.

Sponsored (permit) entrypoints:
    - ChangeItemStatusParams: ``changeItemStatus``
    - CreateItemParams: ``createItem``

Wallet-paid admin entrypoints:
    - UpdateStateMachineParams: ``updateStateMachine``
    - RoleParams: ``grantRole`` / ``revokeRole``
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from .bases import CanonicalModel, ItemStatus, MetadataUrl, U64_MAX
from .events import Role


class ChangeItemStatusParams(CanonicalModel):
    """
    Parameters of ``changeItemStatus``.

    Attributes:
        item_id: Item to update.
        new_status: Status to move the item to.
        additional_data: Opaque auxiliary bytes (see ``codec.auxiliary``).
        new_metadata_url: Replacement metadata reference, if any.
    """

    item_id: int = Field(..., ge=0, le=U64_MAX)
    new_status: ItemStatus
    additional_data: bytes = Field(default=b"", max_length=65535)
    new_metadata_url: Optional[MetadataUrl] = None


class CreateItemParams(CanonicalModel):
    """
    Parameters of ``createItem``. The contract assigns the item id and the
    initial ``Produced`` status.
    """

    additional_data: bytes = Field(default=b"", max_length=65535)
    metadata_url: Optional[MetadataUrl] = None


class StateMachineUpdate(str, Enum):
    ADD = "Add"
    REMOVE = "Remove"

    @property
    def tag(self) -> int:
        return 0 if self is StateMachineUpdate.ADD else 1


class UpdateStateMachineParams(CanonicalModel):
    """
    Parameters of ``updateStateMachine``: allow or forbid ``account`` to move
    items from ``from_status`` to ``to_status``.
    """

    account: str = Field(..., min_length=1)
    from_status: ItemStatus
    to_status: ItemStatus
    update: StateMachineUpdate = StateMachineUpdate.ADD


class RoleParams(CanonicalModel):
    """Parameters of ``grantRole`` and ``revokeRole``."""

    account: str = Field(..., min_length=1)
    role: Role
