from .exceptions import (
    ErrorKind,
    SubmissionOutcome,
    SponsoredTraceError,
    InputValidationError,
    ItemIdRangeError,
    PermitEncodingError,
    WalletNotConnectedError,
    StaleNonceError,
    RelayRejectedError,
    PermitExpiredError,
    SignatureVerificationError,
    RelayTransportError,
    OnChainRejectionError,
    ItemNotFoundError,
    EventLogIntegrityError,
    EventDecodeError,
    ConfigurationError,
)

__all__ = [
    "ErrorKind",
    "SubmissionOutcome",
    "SponsoredTraceError",
    "InputValidationError",
    "ItemIdRangeError",
    "PermitEncodingError",
    "WalletNotConnectedError",
    "StaleNonceError",
    "RelayRejectedError",
    "PermitExpiredError",
    "SignatureVerificationError",
    "RelayTransportError",
    "OnChainRejectionError",
    "ItemNotFoundError",
    "EventLogIntegrityError",
    "EventDecodeError",
    "ConfigurationError",
]
