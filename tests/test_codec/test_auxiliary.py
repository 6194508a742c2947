"""
Tests for lenient auxiliary data decoding.
"""

import pytest

from sponsored_trace.codec.auxiliary import (
    AuxiliaryStatus,
    decode_auxiliary,
    object_to_bytes,
    location_to_bytes,
)
from sponsored_trace.engine.exceptions import InputValidationError


def test_object_round_trip():
    obj = {"location": "10.0,20.0", "note": "ü"}
    result = decode_auxiliary(object_to_bytes(obj))
    assert result.status == AuxiliaryStatus.OK
    assert result.data == obj
    assert result.location == "10.0,20.0"


def test_location_bytes():
    assert location_to_bytes(10.0, 20.0) == b'{"location":"10.0,20.0"}'


def test_empty_is_absent():
    result = decode_auxiliary(b"")
    assert result.status == AuxiliaryStatus.ABSENT
    assert result.location is None


@pytest.mark.parametrize("raw", [b"\xff\xfe", b"not json", b"[1, 2]", b'"text"'])
def test_garbage_is_invalid_not_raised(raw):
    result = decode_auxiliary(raw)
    assert result.status == AuxiliaryStatus.INVALID
    assert result.error
    assert result.location is None


def test_non_string_location_ignored():
    result = decode_auxiliary(b'{"location": 5}')
    assert result.ok
    assert result.location is None


def test_object_to_bytes_rejects_non_objects():
    with pytest.raises(InputValidationError):
        object_to_bytes([1, 2])
    with pytest.raises(InputValidationError):
        object_to_bytes({"bad": object()})
