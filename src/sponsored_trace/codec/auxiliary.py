"""
Auxiliary data encoding.

Status changes and creations carry an opaque ``additional_data`` blob. By
convention it is a JSON object serialized as UTF-8, for example
``{"location": "10.0,20.0"}``. Nothing enforces that convention on chain,
so decoding never raises: it returns an explicit ok / absent / invalid
result instead.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..engine.exceptions import InputValidationError

logger = logging.getLogger(__name__)


class AuxiliaryStatus(str, Enum):
    OK = "ok"
    ABSENT = "absent"
    INVALID = "invalid"


class AuxiliaryDecodeResult(BaseModel):
    """
    Result of decoding auxiliary bytes.

    Attributes:
        status: OK when a JSON object was decoded, ABSENT for empty bytes,
                INVALID otherwise.
        data: Decoded object when OK.
        error: Reason when INVALID.
    """
    status: AuxiliaryStatus
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == AuxiliaryStatus.OK

    @property
    def location(self) -> Optional[str]:
        if not self.ok:
            return None
        value = self.data.get("location")
        return value if isinstance(value, str) else None


def object_to_bytes(obj: Dict[str, Any]) -> bytes:
    """
    Serialize a JSON object to UTF-8 bytes.

    Raises:
        InputValidationError: If ``obj`` is not a dict or not JSON-serializable.
    """
    if not isinstance(obj, dict):
        raise InputValidationError("auxiliary data must be a JSON object")
    try:
        return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"auxiliary data is not JSON-serializable: {exc}") from exc


def location_to_bytes(latitude: float, longitude: float) -> bytes:
    """Encode a location the way the tracking UI records it: ``{"location": "<lat>,<lon>"}``."""
    return object_to_bytes({"location": f"{latitude},{longitude}"})


def decode_auxiliary(data: bytes) -> AuxiliaryDecodeResult:
    """Decode auxiliary bytes without raising."""
    if not data:
        return AuxiliaryDecodeResult(status=AuxiliaryStatus.ABSENT)
    try:
        parsed = json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        logger.debug("Undecodable auxiliary data (%d bytes): %s", len(data), exc)
        return AuxiliaryDecodeResult(status=AuxiliaryStatus.INVALID, error=str(exc))
    if not isinstance(parsed, dict):
        return AuxiliaryDecodeResult(
            status=AuxiliaryStatus.INVALID,
            error=f"expected a JSON object, got {type(parsed).__name__}",
        )
    return AuxiliaryDecodeResult(status=AuxiliaryStatus.OK, data=parsed)
