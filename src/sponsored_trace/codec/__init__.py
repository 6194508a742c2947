"""
Binary codecs for the track-and-trace contract.

Covers entrypoint parameters, auxiliary JSON bytes, canonical permit
messages and contract event decoding.
"""

from .payload import (
    encode_item_id,
    decode_item_id,
    item_id_to_hex,
    item_id_from_hex,
    encode_change_status_payload,
    encode_create_payload,
    encode_update_state_machine_payload,
    encode_role_payload,
)
from .auxiliary import AuxiliaryStatus, AuxiliaryDecodeResult, object_to_bytes, location_to_bytes, decode_auxiliary
from .permit import (
    build_permit_message,
    expiry_to_millis,
    expiry_in,
    CHANGE_ITEM_STATUS_ENTRYPOINT,
    CREATE_ITEM_ENTRYPOINT,
)
from .events import decode_event

__all__ = [
    "encode_item_id",
    "decode_item_id",
    "item_id_to_hex",
    "item_id_from_hex",
    "encode_change_status_payload",
    "encode_create_payload",
    "encode_update_state_machine_payload",
    "encode_role_payload",
    "AuxiliaryStatus",
    "AuxiliaryDecodeResult",
    "object_to_bytes",
    "location_to_bytes",
    "decode_auxiliary",
    "build_permit_message",
    "expiry_to_millis",
    "expiry_in",
    "CHANGE_ITEM_STATUS_ENTRYPOINT",
    "CREATE_ITEM_ENTRYPOINT",
    "decode_event",
]
