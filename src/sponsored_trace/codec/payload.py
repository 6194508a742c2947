"""
Binary Parameter Encoding

Encodes entrypoint parameters into the byte layout the track-and-trace
contract deserializes. All integers are little-endian; variable-length
fields carry a u16 length prefix; ``Option`` values are a ``0x00``/``0x01``
tag followed by the value when present.

Item ids travel as 8-byte little-endian words (``TokenIdU64``). Every
encoder here is pure and fails fast with an InputValidationError subclass;
values are never truncated.
"""

from typing import Optional

from ..engine.exceptions import ItemIdRangeError, InputValidationError
from ..schemas.bases import MetadataUrl, U64_MAX
from ..schemas.params import (
    ChangeItemStatusParams,
    CreateItemParams,
    UpdateStateMachineParams,
    RoleParams,
)


ITEM_ID_SIZE = 8
U16_MAX = 2 ** 16 - 1


# ============================================================================
# Item ids
# ============================================================================

def encode_item_id(item_id: int) -> bytes:
    """
    Encode an item id as 8 bytes little-endian.

    Args:
        item_id: Integer in ``[0, 2**64-1]``.

    Returns:
        bytes: 8-byte representation.

    Raises:
        ItemIdRangeError: If the value is not an integer in range.
    """
    if isinstance(item_id, bool) or not isinstance(item_id, int):
        raise ItemIdRangeError(f"item id must be an integer, got {type(item_id).__name__}")
    if not 0 <= item_id <= U64_MAX:
        raise ItemIdRangeError(f"item id {item_id} is outside [0, 2**64-1]")
    return item_id.to_bytes(ITEM_ID_SIZE, "little")


def decode_item_id(data: bytes) -> int:
    """
    Decode an 8-byte little-endian item id.

    Raises:
        ItemIdRangeError: If ``data`` is not exactly 8 bytes.
    """
    if len(data) != ITEM_ID_SIZE:
        raise ItemIdRangeError(f"item id must be {ITEM_ID_SIZE} bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def item_id_to_hex(item_id: int) -> str:
    """Render an item id the way the chain displays token ids: ``1`` -> ``"0100000000000000"``."""
    return encode_item_id(item_id).hex()


def item_id_from_hex(value: str) -> int:
    """Inverse of :func:`item_id_to_hex`."""
    try:
        raw = bytes.fromhex(value)
    except ValueError as exc:
        raise ItemIdRangeError(f"invalid item id hex: {value!r}") from exc
    return decode_item_id(raw)


# ============================================================================
# Primitives
# ============================================================================

def encode_u8(value: int) -> bytes:
    if not 0 <= value <= 0xFF:
        raise InputValidationError(f"u8 value {value} out of range")
    return bytes([value])


def encode_u64(value: int) -> bytes:
    if not 0 <= value <= U64_MAX:
        raise InputValidationError(f"u64 value {value} out of range")
    return value.to_bytes(8, "little")


def encode_length_prefixed(data: bytes) -> bytes:
    """u16 little-endian length followed by ``data``."""
    if len(data) > U16_MAX:
        raise InputValidationError(f"field of {len(data)} bytes exceeds {U16_MAX}")
    return len(data).to_bytes(2, "little") + data


def encode_string(value: str) -> bytes:
    return encode_length_prefixed(value.encode("utf-8"))


def encode_metadata_url(metadata_url: MetadataUrl) -> bytes:
    out = encode_string(metadata_url.url)
    if metadata_url.hash is None:
        return out + b"\x00"
    return out + b"\x01" + bytes.fromhex(metadata_url.hash)


def encode_optional_metadata_url(metadata_url: Optional[MetadataUrl]) -> bytes:
    if metadata_url is None:
        return b"\x00"
    return b"\x01" + encode_metadata_url(metadata_url)


# ============================================================================
# Entrypoint parameters
# ============================================================================

def encode_change_status_payload(params: ChangeItemStatusParams) -> bytes:
    """
    Encode ``changeItemStatus`` parameters.

    Layout:
        item_id (8 LE) | additional_data (u16 len + bytes) | new_status (u8) |
        new_metadata_url (Option<MetadataUrl>)
    """
    return (
        encode_item_id(params.item_id)
        + encode_length_prefixed(params.additional_data)
        + encode_u8(params.new_status.tag)
        + encode_optional_metadata_url(params.new_metadata_url)
    )


def encode_create_payload(params: CreateItemParams) -> bytes:
    """
    Encode ``createItem`` parameters.

    Layout:
        additional_data (u16 len + bytes) | metadata_url (Option<MetadataUrl>)
    """
    return (
        encode_length_prefixed(params.additional_data)
        + encode_optional_metadata_url(params.metadata_url)
    )


def encode_update_state_machine_payload(params: UpdateStateMachineParams) -> bytes:
    return (
        encode_string(params.account)
        + encode_u8(params.from_status.tag)
        + encode_u8(params.to_status.tag)
        + encode_u8(params.update.tag)
    )


def encode_role_payload(params: RoleParams) -> bytes:
    return encode_string(params.account) + encode_u8(params.role.tag)
