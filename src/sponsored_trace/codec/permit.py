"""
Permit Message Construction

Builds the canonical byte string a wallet signs to authorize a sponsored
contract call. The relay submits the call on the signer's behalf and the
contract re-derives the same bytes to verify the signature, so the layout
must match byte for byte.

Schema ``V1`` layout (all integers little-endian):

    contract index   u64
    contract subidx  u64
    nonce            u64
    expiry           u64   milliseconds since the Unix epoch, UTC
    entrypoint       u16 length + ASCII name (1..99 printable chars)
    payload          u16 length + bytes (at most 65535)

Any field that does not fit raises PermitEncodingError; nothing is
truncated or coerced.
"""

from datetime import datetime, timedelta, timezone
from typing import Union

from ..engine.exceptions import PermitEncodingError
from ..schemas.bases import ContractAddress, U64_MAX
from ..schemas.versions import PermitSchemaVersion
from .payload import U16_MAX


MAX_ENTRYPOINT_LENGTH = 99

CHANGE_ITEM_STATUS_ENTRYPOINT = "changeItemStatus"
CREATE_ITEM_ENTRYPOINT = "createItem"


def expiry_to_millis(expiry: datetime) -> int:
    """
    Convert an aware datetime to milliseconds since the Unix epoch.

    Raises:
        PermitEncodingError: For naive datetimes or values outside u64.
    """
    if not isinstance(expiry, datetime):
        raise PermitEncodingError(f"expiry must be a datetime, got {type(expiry).__name__}")
    if expiry.tzinfo is None or expiry.utcoffset() is None:
        raise PermitEncodingError("expiry must be timezone-aware")
    delta = expiry.astimezone(timezone.utc) - datetime(1970, 1, 1, tzinfo=timezone.utc)
    millis = delta // timedelta(milliseconds=1)
    if not 0 <= millis <= U64_MAX:
        raise PermitEncodingError(f"expiry {expiry.isoformat()} is outside the u64 millisecond range")
    return millis


def expiry_in(days: float = 1.0, now: datetime = None) -> datetime:
    """Expiry ``days`` from ``now`` (defaults to the current UTC time)."""
    base = now or datetime.now(timezone.utc)
    return base + timedelta(days=days)


def _validate_entrypoint(entrypoint: str) -> bytes:
    if not isinstance(entrypoint, str) or not entrypoint:
        raise PermitEncodingError("entrypoint name must be a non-empty string")
    if len(entrypoint) > MAX_ENTRYPOINT_LENGTH:
        raise PermitEncodingError(
            f"entrypoint name is {len(entrypoint)} chars, at most {MAX_ENTRYPOINT_LENGTH} allowed"
        )
    if not all(0x21 <= ord(ch) <= 0x7E for ch in entrypoint):
        raise PermitEncodingError(f"entrypoint name {entrypoint!r} must be printable ASCII")
    return entrypoint.encode("ascii")


def build_permit_message(
    contract_address: ContractAddress,
    nonce: int,
    expiry: datetime,
    entrypoint: str,
    payload: bytes,
    version: Union[PermitSchemaVersion, str] = PermitSchemaVersion.V1,
) -> bytes:
    """
    Build the canonical signable permit bytes.

    Pure and deterministic: identical inputs always yield identical bytes.

    Args:
        contract_address: Target contract instance.
        nonce: Account nonce the permit is bound to.
        expiry: Timezone-aware expiry.
        entrypoint: Entrypoint the permit authorizes.
        payload: Encoded entrypoint parameters.
        version: Message schema version.

    Returns:
        bytes: Message to sign.

    Raises:
        PermitEncodingError: On any out-of-range or unsupported input.
    """
    if isinstance(version, str):
        try:
            version = PermitSchemaVersion.from_string(version)
        except ValueError as exc:
            raise PermitEncodingError(str(exc)) from exc
    if version is not PermitSchemaVersion.V1:
        raise PermitEncodingError(f"Unsupported permit schema version: {version!r}")

    if not isinstance(contract_address, ContractAddress):
        raise PermitEncodingError("contract_address must be a ContractAddress")
    if isinstance(nonce, bool) or not isinstance(nonce, int) or not 0 <= nonce <= U64_MAX:
        raise PermitEncodingError(f"nonce {nonce!r} is outside [0, 2**64-1]")
    if not isinstance(payload, (bytes, bytearray)):
        raise PermitEncodingError("payload must be bytes")
    if len(payload) > U16_MAX:
        raise PermitEncodingError(f"payload of {len(payload)} bytes exceeds {U16_MAX}")

    name = _validate_entrypoint(entrypoint)
    millis = expiry_to_millis(expiry)

    return b"".join([
        contract_address.to_bytes(),
        nonce.to_bytes(8, "little"),
        millis.to_bytes(8, "little"),
        len(name).to_bytes(2, "little"),
        name,
        len(payload).to_bytes(2, "little"),
        bytes(payload),
    ])
