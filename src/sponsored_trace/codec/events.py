"""
Contract Event Decoding

Turns the raw bytes of a contract event into one of the typed models in
``sponsored_trace.schemas.events``. The first byte is the event tag:

    0    ItemStatusChanged  item_id | new_status u8 | additional_data
    1    ItemCreated        item_id | Option<MetadataUrl> | initial_status u8 | additional_data
    2    GrantRole          account | role u8
    3    RevokeRole         account | role u8
    250  Nonce              account | nonce u64

Strings and ``additional_data`` are u16-length-prefixed. Trailing bytes
after a complete event are rejected.

The matching encoders are used to publish events from test chains and
fixtures.
"""

from typing import Callable, Dict, Optional

from ..engine.exceptions import EventDecodeError
from ..schemas.bases import ItemStatus, MetadataUrl
from ..schemas.events import (
    RawContractEvent,
    ContractEventTypes,
    CreatedEvent,
    StatusChangedEvent,
    RoleGrantedEvent,
    RoleRevokedEvent,
    NonceEvent,
    Role,
)
from .payload import (
    encode_item_id,
    encode_length_prefixed,
    encode_optional_metadata_url,
    encode_string,
    encode_u8,
    encode_u64,
)


STATUS_CHANGED_TAG = 0
ITEM_CREATED_TAG = 1
GRANT_ROLE_TAG = 2
REVOKE_ROLE_TAG = 3
NONCE_TAG = 250


class _Reader:
    """Cursor over event bytes; every short read raises EventDecodeError."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise EventDecodeError(
                f"event truncated: needed {size} bytes at offset {self._pos}, "
                f"{len(self._data) - self._pos} left"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u16(self) -> int:
        return int.from_bytes(self.take(2), "little")

    def u64(self) -> int:
        return int.from_bytes(self.take(8), "little")

    def length_prefixed(self) -> bytes:
        return self.take(self.u16())

    def string(self) -> str:
        raw = self.length_prefixed()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EventDecodeError(f"invalid UTF-8 string in event: {exc}") from exc

    def option_tag(self) -> bool:
        tag = self.u8()
        if tag not in (0, 1):
            raise EventDecodeError(f"invalid Option tag {tag}")
        return tag == 1

    def status(self) -> ItemStatus:
        tag = self.u8()
        try:
            return ItemStatus.from_tag(tag)
        except ValueError as exc:
            raise EventDecodeError(str(exc)) from exc

    def role(self) -> Role:
        tag = self.u8()
        try:
            return Role.from_tag(tag)
        except ValueError as exc:
            raise EventDecodeError(str(exc)) from exc

    def metadata_url(self) -> Optional[MetadataUrl]:
        if not self.option_tag():
            return None
        url = self.string()
        digest = self.take(32).hex() if self.option_tag() else None
        try:
            return MetadataUrl(url=url, hash=digest)
        except ValueError as exc:
            raise EventDecodeError(f"invalid metadata url in event: {exc}") from exc

    def finish(self) -> None:
        if self._pos != len(self._data):
            raise EventDecodeError(f"{len(self._data) - self._pos} trailing bytes after event")


def _envelope(raw: RawContractEvent) -> dict:
    return {
        "block_height": raw.block_height,
        "event_index": raw.event_index,
        "block_time": raw.block_time,
        "transaction_hash": raw.transaction_hash,
    }


def _status_changed(reader: _Reader, raw: RawContractEvent) -> StatusChangedEvent:
    item_id = reader.u64()
    new_status = reader.status()
    additional_data = reader.length_prefixed()
    return StatusChangedEvent(item_id=item_id, new_status=new_status,
                              additional_data=additional_data, **_envelope(raw))


def _created(reader: _Reader, raw: RawContractEvent) -> CreatedEvent:
    item_id = reader.u64()
    metadata_url = reader.metadata_url()
    initial_status = reader.status()
    additional_data = reader.length_prefixed()
    return CreatedEvent(item_id=item_id, metadata_url=metadata_url, initial_status=initial_status,
                        additional_data=additional_data, **_envelope(raw))


def _grant_role(reader: _Reader, raw: RawContractEvent) -> RoleGrantedEvent:
    return RoleGrantedEvent(account=reader.string(), role=reader.role(), **_envelope(raw))


def _revoke_role(reader: _Reader, raw: RawContractEvent) -> RoleRevokedEvent:
    return RoleRevokedEvent(account=reader.string(), role=reader.role(), **_envelope(raw))


def _nonce(reader: _Reader, raw: RawContractEvent) -> NonceEvent:
    return NonceEvent(account=reader.string(), nonce=reader.u64(), **_envelope(raw))


_DECODERS: Dict[int, Callable[[_Reader, RawContractEvent], ContractEventTypes]] = {
    STATUS_CHANGED_TAG: _status_changed,
    ITEM_CREATED_TAG: _created,
    GRANT_ROLE_TAG: _grant_role,
    REVOKE_ROLE_TAG: _revoke_role,
    NONCE_TAG: _nonce,
}


def decode_event(raw: RawContractEvent) -> ContractEventTypes:
    """
    Decode one raw contract event.

    Args:
        raw: Raw event with its chain position.

    Returns:
        The typed event model matching the tag.

    Raises:
        EventDecodeError: Unknown tag, truncated data, invalid enum tags or
            trailing bytes.
    """
    reader = _Reader(raw.data)
    tag = reader.u8()
    decoder = _DECODERS.get(tag)
    if decoder is None:
        raise EventDecodeError(f"unknown event tag {tag}")
    event = decoder(reader, raw)
    reader.finish()
    return event


# ============================================================================
# Encoders
# ============================================================================

def encode_status_changed_event(item_id: int, new_status: ItemStatus, additional_data: bytes = b"") -> bytes:
    return (
        encode_u8(STATUS_CHANGED_TAG)
        + encode_item_id(item_id)
        + encode_u8(new_status.tag)
        + encode_length_prefixed(additional_data)
    )


def encode_created_event(
    item_id: int,
    initial_status: ItemStatus = ItemStatus.PRODUCED,
    metadata_url: Optional[MetadataUrl] = None,
    additional_data: bytes = b"",
) -> bytes:
    return (
        encode_u8(ITEM_CREATED_TAG)
        + encode_item_id(item_id)
        + encode_optional_metadata_url(metadata_url)
        + encode_u8(initial_status.tag)
        + encode_length_prefixed(additional_data)
    )


def encode_role_event(account: str, role: Role, granted: bool = True) -> bytes:
    tag = GRANT_ROLE_TAG if granted else REVOKE_ROLE_TAG
    return encode_u8(tag) + encode_string(account) + encode_u8(role.tag)


def encode_nonce_event(account: str, nonce: int) -> bytes:
    return encode_u8(NONCE_TAG) + encode_string(account) + encode_u64(nonce)
