"""
Tests for error classification metadata.
"""

import pytest

from sponsored_trace.engine.exceptions import (
    ErrorKind,
    SubmissionOutcome,
    SponsoredTraceError,
    InputValidationError,
    ItemIdRangeError,
    PermitEncodingError,
    StaleNonceError,
    RelayRejectedError,
    PermitExpiredError,
    SignatureVerificationError,
    RelayTransportError,
    OnChainRejectionError,
    ItemNotFoundError,
    EventLogIntegrityError,
    ConfigurationError,
)


@pytest.mark.parametrize("error_cls, kind, outcome, refresh", [
    (ItemIdRangeError, ErrorKind.INPUT_VALIDATION, SubmissionOutcome.NOT_APPLIED, False),
    (PermitEncodingError, ErrorKind.INPUT_VALIDATION, SubmissionOutcome.NOT_APPLIED, False),
    (StaleNonceError, ErrorKind.STALE_NONCE, SubmissionOutcome.NOT_APPLIED, True),
    (RelayRejectedError, ErrorKind.INPUT_VALIDATION, SubmissionOutcome.NOT_APPLIED, False),
    (PermitExpiredError, ErrorKind.INPUT_VALIDATION, SubmissionOutcome.NOT_APPLIED, False),
    (SignatureVerificationError, ErrorKind.INPUT_VALIDATION, SubmissionOutcome.NOT_APPLIED, False),
    (RelayTransportError, ErrorKind.TRANSPORT, SubmissionOutcome.UNKNOWN, True),
    (OnChainRejectionError, ErrorKind.ON_CHAIN_REJECTION, SubmissionOutcome.APPLIED, True),
    (EventLogIntegrityError, ErrorKind.DEGRADED, SubmissionOutcome.NOT_APPLIED, False),
])
def test_class_defaults(error_cls, kind, outcome, refresh):
    error = error_cls("detail")
    assert isinstance(error, SponsoredTraceError)
    assert error.kind == kind
    assert error.outcome == outcome
    assert error.requires_nonce_refresh is refresh


def test_instance_overrides():
    error = RelayRejectedError("x", outcome=SubmissionOutcome.UNKNOWN, requires_nonce_refresh=True, status_code=502)
    assert error.outcome == SubmissionOutcome.UNKNOWN
    assert error.requires_nonce_refresh
    assert error.status_code == 502
    assert RelayRejectedError("y").outcome == SubmissionOutcome.NOT_APPLIED


def test_input_errors_are_value_errors():
    assert issubclass(InputValidationError, ValueError)
    assert issubclass(ItemIdRangeError, ValueError)


def test_user_message_names_kind_and_action():
    message = StaleNonceError("expected 6").user_message()
    assert message.startswith("Stale nonce (expected 6).")
    assert "Refresh the account nonce" in message
    assert "outcome is unknown" in RelayTransportError().user_message()


def test_hierarchy():
    assert issubclass(PermitExpiredError, RelayRejectedError)
    assert issubclass(SignatureVerificationError, RelayRejectedError)
    assert not issubclass(ItemNotFoundError, InputValidationError)
    assert issubclass(ConfigurationError, SponsoredTraceError)


def test_stale_nonce_keeps_relay_details():
    body = {"error": "NonceMismatch"}
    error = StaleNonceError("x", status_code=400, body=body)
    assert error.status_code == 400
    assert error.body == body
    assert error.requires_nonce_refresh
    assert StaleNonceError("y").status_code is None
