"""
Exception and Error Definitions Module

Defines the exception hierarchy for permit construction, relay submission,
finalization and event-log reconstruction. All exceptions inherit from
SponsoredTraceError for unified exception handling.

Every error carries three facts a caller needs to react correctly:
    - kind: what category of failure happened
    - outcome: whether the state change was definitely not applied,
      might have been applied, or was applied
    - requires_nonce_refresh: whether the cached nonce must be re-queried
      before the next permit is built

Exception Hierarchy:
    SponsoredTraceError (root)
    ├── InputValidationError
    │   ├── ItemIdRangeError
    │   ├── PermitEncodingError
    │   └── WalletNotConnectedError
    ├── StaleNonceError
    ├── RelayRejectedError
    │   ├── PermitExpiredError
    │   └── SignatureVerificationError
    ├── RelayTransportError
    ├── OnChainRejectionError
    ├── ItemNotFoundError
    ├── EventLogIntegrityError
    ├── EventDecodeError
    └── ConfigurationError
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Category of a failure, used to decide on the follow-up action."""
    INPUT_VALIDATION = "input_validation"
    STALE_NONCE = "stale_nonce"
    TRANSPORT = "transport"
    ON_CHAIN_REJECTION = "on_chain_rejection"
    DEGRADED = "degraded"


class SubmissionOutcome(str, Enum):
    """
    What is known about the state change when the error was raised.

    Attributes:
        NOT_APPLIED: The state change definitely did not happen
        UNKNOWN: The state change may or may not have happened
        APPLIED: The transaction finalized (possibly rejected by the contract)
    """
    NOT_APPLIED = "not_applied"
    UNKNOWN = "unknown"
    APPLIED = "applied"


_ACTIONS = {
    ErrorKind.INPUT_VALIDATION: "Correct the input and try again.",
    ErrorKind.STALE_NONCE: "Refresh the account nonce, then sign and submit a new permit.",
    ErrorKind.TRANSPORT: "The outcome is unknown; refresh the nonce and check the item history before retrying.",
    ErrorKind.ON_CHAIN_REJECTION: "The contract rejected the operation; check roles and allowed status transitions.",
    ErrorKind.DEGRADED: "Some information could not be loaded; the rest of the result is still valid.",
}


class SponsoredTraceError(Exception):
    """
    Root exception class for all project-specific exceptions.

    Subclasses set the class-level defaults ``kind``, ``outcome`` and
    ``requires_nonce_refresh``; callers may override them per instance.
    """

    kind: ErrorKind = ErrorKind.INPUT_VALIDATION
    outcome: SubmissionOutcome = SubmissionOutcome.NOT_APPLIED
    requires_nonce_refresh: bool = False

    def __init__(
        self,
        message: str = "",
        *,
        outcome: Optional[SubmissionOutcome] = None,
        requires_nonce_refresh: Optional[bool] = None,
    ):
        super().__init__(message)
        self.message = message
        if outcome is not None:
            self.outcome = outcome
        if requires_nonce_refresh is not None:
            self.requires_nonce_refresh = requires_nonce_refresh

    def user_message(self) -> str:
        """
        Human-readable description naming the failure kind and the action
        the user should take.
        """
        label = self.kind.value.replace("_", " ").capitalize()
        detail = f" ({self.message})" if self.message else ""
        return f"{label}{detail}. {_ACTIONS[self.kind]}"


class InputValidationError(SponsoredTraceError, ValueError):
    """
    Raised when caller-supplied data cannot be encoded or is otherwise invalid.

    Nothing was sent anywhere; the operation can be retried with corrected
    input.
    """
    kind = ErrorKind.INPUT_VALIDATION


class ItemIdRangeError(InputValidationError):
    """
    Raised when an item id is negative, exceeds 2**64-1, or its byte
    representation is not exactly 8 bytes.
    """
    pass


class PermitEncodingError(InputValidationError):
    """
    Raised when a permit message cannot be built.

    This includes scenarios such as:
    - Unsupported permit schema version
    - Nonce or contract address outside the u64 range
    - Naive (timezone-less) or pre-epoch expiry
    - Empty, non-ASCII or overlong entrypoint name
    - Payload longer than 65535 bytes
    """
    pass


class WalletNotConnectedError(InputValidationError):
    """Raised when a write is attempted without a signer account."""
    pass


class StaleNonceError(SponsoredTraceError):
    """
    Raised when the relay or contract refuses a permit because its nonce no
    longer matches the account's on-chain nonce.

    Attributes:
        status_code: HTTP status returned by the relay, if it came from the relay
        body: Parsed relay error body
    """
    kind = ErrorKind.STALE_NONCE
    requires_nonce_refresh = True

    def __init__(self, message: str = "", *, status_code: Optional[int] = None, body: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.body = body


class RelayRejectedError(SponsoredTraceError):
    """
    Raised when the relay answered with a non-success status.

    The transaction was definitely not submitted. The structured error body
    returned by the relay is kept verbatim.

    Attributes:
        status_code: HTTP status returned by the relay
        body: Parsed error body (dict, str or raw text)
    """
    kind = ErrorKind.INPUT_VALIDATION

    def __init__(self, message: str = "", *, status_code: Optional[int] = None, body: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.body = body


class PermitExpiredError(RelayRejectedError):
    """Raised when the relay reports the permit expiry has already passed."""
    pass


class SignatureVerificationError(RelayRejectedError):
    """Raised when the relay could not verify the permit signature."""
    pass


class RelayTransportError(SponsoredTraceError):
    """
    Raised when no usable answer was received from the relay.

    This includes scenarios such as:
    - Connection failures and timeouts
    - Any 5xx status, or an error body that is not a JSON object or string
    - A success status with a body that is not a transaction hash

    The relay may or may not have forwarded the transaction, so the nonce
    must be re-queried before retrying.
    """
    kind = ErrorKind.TRANSPORT
    outcome = SubmissionOutcome.UNKNOWN
    requires_nonce_refresh = True


class OnChainRejectionError(SponsoredTraceError):
    """
    Raised when a transaction finalized but the contract rejected it.

    The permit nonce counts as consumed.

    Attributes:
        transaction_hash: Hash of the rejected transaction
        reject_reason: Reason reported by the node
    """
    kind = ErrorKind.ON_CHAIN_REJECTION
    outcome = SubmissionOutcome.APPLIED
    requires_nonce_refresh = True

    def __init__(self, message: str = "", *, transaction_hash: Optional[str] = None,
                 reject_reason: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.transaction_hash = transaction_hash
        self.reject_reason = reject_reason


class ItemNotFoundError(SponsoredTraceError):
    """Raised when the event log holds no creation event for an item."""
    kind = ErrorKind.INPUT_VALIDATION


class EventLogIntegrityError(SponsoredTraceError):
    """
    Raised when an item's event log violates its structure.

    This includes scenarios such as:
    - More than one creation event for the same item
    - A status change ordered before the creation event
    """
    kind = ErrorKind.DEGRADED


class EventDecodeError(SponsoredTraceError):
    """Raised when raw contract event bytes cannot be decoded."""
    kind = ErrorKind.DEGRADED


class ConfigurationError(SponsoredTraceError):
    """
    Raised when system configuration is invalid or incomplete.

    This includes scenarios such as:
    - Missing required environment variables
    - Values that cannot be parsed into the expected type
    """
    kind = ErrorKind.INPUT_VALIDATION
