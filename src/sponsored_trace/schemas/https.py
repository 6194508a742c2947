"""
HTTP Request/Response Schema Models for the sponsoring relay

This module defines the Pydantic models exchanged with the relay that pays
the fee for permit-wrapped contract calls. The relay exposes a single
endpoint:

    POST {relay}/api/submitTransaction

The request body carries the signed permit fields; a successful response is
a bare JSON string holding the transaction hash, and an unsuccessful one is
a JSON object (or plain text) describing why the relay refused the permit.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .bases import ContractAddress


class ContractAddressBody(BaseModel):
    """Contract address as the relay expects it."""
    index: int
    subindex: int

    @classmethod
    def from_address(cls, address: ContractAddress) -> "ContractAddressBody":
        return cls(index=address.index, subindex=address.subindex)


class SubmitTransactionRequest(BaseModel):
    """Body of ``POST /api/submitTransaction``.

    Attributes:
        signer: Account address of the permit signer.
        nonce: Nonce the permit was bound to.
        signature: Hex-encoded permit signature.
        expiry_time: Permit expiry, serialized as ISO-8601 UTC with milliseconds.
        contract_address: Target contract instance.
        contract_name: Contract name (without the ``init_`` prefix).
        entrypoint_name: Entrypoint the permit authorizes.
        parameter: Hex-encoded entrypoint payload.
    """
    model_config = ConfigDict(populate_by_name=True)

    signer: str
    nonce: int = Field(..., ge=0)
    signature: str
    expiry_time: datetime = Field(..., alias="expiryTime")
    contract_address: ContractAddressBody = Field(..., alias="contractAddress")
    contract_name: str = Field(..., alias="contractName")
    entrypoint_name: str = Field(..., alias="entrypointName")
    parameter: str

    @field_serializer("expiry_time")
    def _iso_millis(self, value: datetime) -> str:
        utc = value.astimezone(timezone.utc)
        return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def redacted(self) -> Dict[str, Any]:
        """Body with the signature elided, for logging."""
        body = self.to_body()
        body["signature"] = "<elided>"
        return body


class RelayErrorBody(BaseModel):
    """Structured error returned by the relay.

    The relay is not under our control, so every field is optional and the
    parsed JSON is kept verbatim in ``raw``.
    """
    model_config = ConfigDict(extra="allow")

    message: Optional[str] = None
    error: Optional[str] = None
    code: Optional[Any] = None
    raw: Any = None

    @classmethod
    def from_response_text(cls, text: str, parsed: Any) -> "RelayErrorBody":
        if isinstance(parsed, dict):
            fields = {k: parsed.get(k) for k in ("message", "error", "code")}
            if not isinstance(fields["message"], str):
                fields["message"] = None if fields["message"] is None else str(fields["message"])
            if not isinstance(fields["error"], str):
                fields["error"] = None if fields["error"] is None else str(fields["error"])
            return cls(**fields, raw=parsed)
        if isinstance(parsed, str):
            return cls(message=parsed, raw=parsed)
        return cls(message=text or None, raw=parsed if parsed is not None else text)

    def describe(self) -> str:
        parts = [p for p in (self.error, self.message) if p]
        if parts:
            return ": ".join(parts)
        return str(self.raw) if self.raw is not None else "no error details"
