"""
Tests for binary parameter encoding: item ids and entrypoint payloads.
"""

import pytest

from sponsored_trace.codec.payload import (
    encode_item_id,
    decode_item_id,
    item_id_to_hex,
    item_id_from_hex,
    encode_change_status_payload,
    encode_create_payload,
    encode_update_state_machine_payload,
    encode_role_payload,
)
from sponsored_trace.engine.exceptions import ItemIdRangeError, InputValidationError
from sponsored_trace.schemas.bases import ItemStatus, MetadataUrl, U64_MAX
from sponsored_trace.schemas.events import Role
from sponsored_trace.schemas.params import (
    ChangeItemStatusParams,
    CreateItemParams,
    StateMachineUpdate,
    UpdateStateMachineParams,
    RoleParams,
)


class TestItemIds:
    """Item id encoding as 8-byte little-endian words."""

    @pytest.mark.parametrize("value", [0, 1, 255, 256, 2 ** 32, U64_MAX])
    def test_round_trip(self, value):
        encoded = encode_item_id(value)
        assert len(encoded) == 8
        assert decode_item_id(encoded) == value

    def test_little_endian_layout(self):
        assert encode_item_id(1) == b"\x01" + b"\x00" * 7
        assert encode_item_id(0x0102) == b"\x02\x01" + b"\x00" * 6

    @pytest.mark.parametrize("value", [-1, U64_MAX + 1, 2 ** 70])
    def test_out_of_range_rejected(self, value):
        with pytest.raises(ItemIdRangeError):
            encode_item_id(value)

    def test_range_error_is_value_error(self):
        with pytest.raises(ValueError):
            encode_item_id(-5)

    def test_non_integer_rejected(self):
        with pytest.raises(ItemIdRangeError):
            encode_item_id(1.5)
        with pytest.raises(ItemIdRangeError):
            encode_item_id(True)

    @pytest.mark.parametrize("raw", [b"", b"\x00" * 7, b"\x00" * 9])
    def test_wrong_length_rejected(self, raw):
        with pytest.raises(ItemIdRangeError):
            decode_item_id(raw)

    def test_hex_rendering(self):
        assert item_id_to_hex(1) == "0100000000000000"
        assert item_id_from_hex("0100000000000000") == 1
        assert item_id_from_hex(item_id_to_hex(123456789)) == 123456789

    def test_bad_hex_rejected(self):
        with pytest.raises(ItemIdRangeError):
            item_id_from_hex("zz")
        with pytest.raises(ItemIdRangeError):
            item_id_from_hex("01")


class TestChangeStatusPayload:

    def test_layout_without_metadata(self):
        params = ChangeItemStatusParams(item_id=1, new_status=ItemStatus.IN_TRANSIT, additional_data=b"ab")
        payload = encode_change_status_payload(params)
        assert payload == (
            b"\x01" + b"\x00" * 7   # item id
            + b"\x02\x00" + b"ab"   # additional data
            + b"\x01"               # InTransit
            + b"\x00"               # no metadata
        )

    def test_layout_with_metadata_and_hash(self):
        url = MetadataUrl(url="ipfs://cid", hash="11" * 32)
        params = ChangeItemStatusParams(item_id=2, new_status=ItemStatus.SOLD, new_metadata_url=url)
        payload = encode_change_status_payload(params)
        tail = payload[8 + 2 + 1:]
        assert payload[10] == 3
        assert tail == b"\x01" + b"\x0a\x00" + b"ipfs://cid" + b"\x01" + b"\x11" * 32

    def test_is_deterministic(self):
        params = ChangeItemStatusParams(item_id=7, new_status=ItemStatus.IN_STORE, additional_data=b"{}")
        assert encode_change_status_payload(params) == encode_change_status_payload(params)


class TestOtherPayloads:

    def test_create_payload(self):
        payload = encode_create_payload(CreateItemParams(additional_data=b"x"))
        assert payload == b"\x01\x00x\x00"

    def test_create_payload_with_metadata_no_hash(self):
        payload = encode_create_payload(CreateItemParams(metadata_url=MetadataUrl(url="ab")))
        assert payload == b"\x00\x00" + b"\x01" + b"\x02\x00ab" + b"\x00"

    def test_update_state_machine_payload(self):
        params = UpdateStateMachineParams(
            account="acc",
            from_status=ItemStatus.PRODUCED,
            to_status=ItemStatus.IN_TRANSIT,
            update=StateMachineUpdate.REMOVE,
        )
        assert encode_update_state_machine_payload(params) == b"\x03\x00acc" + bytes([0, 1, 1])

    def test_role_payload(self):
        payload = encode_role_payload(RoleParams(account="acc", role=Role.TRANSPORTER))
        assert payload == b"\x03\x00acc\x02"

    def test_oversized_account_rejected(self):
        params = RoleParams(account="a" * 70000, role=Role.ADMIN)
        with pytest.raises(InputValidationError):
            encode_role_payload(params)
