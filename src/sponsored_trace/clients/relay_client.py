"""
Sponsoring Relay Client

Provides an httpx-based client that hands signed permits to the sponsoring
relay. The relay wraps the permit in a transaction it pays for and answers
with the transaction hash.

Failure handling separates two situations the caller must treat
differently:

    - The relay answered with a 4xx status and a structured (JSON) error.
      The transaction was not submitted; the error is classified from the
      relay's body into StaleNonceError, PermitExpiredError,
      SignatureVerificationError or RelayRejectedError.
    - No usable answer (connection failure, timeout, any 5xx status, an
      error body that is not JSON, malformed success body). The
      transaction may or may not have been submitted, so a
      RelayTransportError asks for a nonce refresh.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from ..engine.exceptions import (
    RelayRejectedError,
    RelayTransportError,
    StaleNonceError,
    PermitExpiredError,
    SignatureVerificationError,
    SponsoredTraceError,
)
from ..config import ClientConfig
from ..schemas.bases import ContractAddress
from ..schemas.https import ContractAddressBody, RelayErrorBody, SubmitTransactionRequest

logger = logging.getLogger(__name__)

SUBMIT_TRANSACTION_PATH = "api/submitTransaction"


def classify_relay_error(status_code: int, body: RelayErrorBody) -> SponsoredTraceError:
    """
    Map a relay error response onto the exception hierarchy.

    Classification looks for keywords in the relay's error text; anything
    unrecognized becomes a generic RelayRejectedError. All results mean the
    transaction was not submitted.
    """
    text = body.describe()
    lowered = text.lower()
    message = f"Relay rejected the permit (HTTP {status_code}): {text}"

    if "nonce" in lowered:
        return StaleNonceError(message, status_code=status_code, body=body.raw)
    if "expir" in lowered:
        return PermitExpiredError(message, status_code=status_code, body=body.raw)
    if "signature" in lowered:
        return SignatureVerificationError(message, status_code=status_code, body=body.raw)
    return RelayRejectedError(message, status_code=status_code, body=body.raw)


class RelayClient(httpx.AsyncClient):
    """
    Extended httpx.AsyncClient for the sponsoring relay.

    Fully compatible with httpx.AsyncClient: it can be used as an async
    context manager and accepts every standard constructor argument
    (``timeout``, ``transport``, ``headers``...).

    Usage:
        ```python
        async with RelayClient(relay_url, contract_address) as relay:
            tx_hash = await relay.submit(payload, signature, expiry, nonce,
                                         signer, "changeItemStatus")
        ```
    """

    def __init__(
        self,
        relay_url: str,
        contract_address: ContractAddress,
        contract_name: str = "track_and_trace",
        **kwargs
    ):
        """
        Args:
            relay_url: Relay base URL; ``api/submitTransaction`` is appended.
            contract_address: Contract instance the permits target.
            contract_name: Contract name forwarded to the relay.
            **kwargs: All standard httpx.AsyncClient arguments.
        """
        super().__init__(**kwargs)
        self._relay_url = relay_url if relay_url.endswith("/") else relay_url + "/"
        self._contract_address = contract_address
        self._contract_name = contract_name

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> "RelayClient":
        """
        Build a client from resolved settings.

        ``relay_request_timeout`` becomes the httpx timeout unless ``timeout``
        is passed explicitly; other kwargs go to httpx.AsyncClient.
        """
        kwargs.setdefault("timeout", config.relay_request_timeout)
        return cls(config.relay_url, config.contract_address, config.contract_name, **kwargs)

    @property
    def contract_address(self) -> ContractAddress:
        return self._contract_address

    @property
    def contract_name(self) -> str:
        return self._contract_name

    @property
    def submit_url(self) -> str:
        return f"{self._relay_url}{SUBMIT_TRANSACTION_PATH}"

    def build_request_body(
        self,
        payload: bytes,
        signature: str,
        expiry: datetime,
        nonce: int,
        signer: str,
        entrypoint: str,
    ) -> SubmitTransactionRequest:
        return SubmitTransactionRequest(
            signer=signer,
            nonce=nonce,
            signature=signature,
            expiry_time=expiry,
            contract_address=ContractAddressBody.from_address(self._contract_address),
            contract_name=self._contract_name,
            entrypoint_name=entrypoint,
            parameter=bytes(payload).hex(),
        )

    async def submit(
        self,
        payload: bytes,
        signature: str,
        expiry: datetime,
        nonce: int,
        signer: str,
        entrypoint: str,
    ) -> str:
        """
        Submit a signed permit to the relay.

        Args:
            payload: Encoded entrypoint parameters (sent hex-encoded).
            signature: Hex signature over the permit message.
            expiry: Permit expiry (timezone-aware).
            nonce: Nonce the permit was bound to.
            signer: Account that signed the permit.
            entrypoint: Entrypoint the permit authorizes.

        Returns:
            str: Transaction hash reported by the relay.

        Raises:
            RelayRejectedError: Relay answered with an error (or a subclass).
            StaleNonceError: Relay reported a nonce mismatch.
            RelayTransportError: No usable answer was received.
        """
        request = self.build_request_body(payload, signature, expiry, nonce, signer, entrypoint)
        logger.debug("Relay request to %s: %s", self.submit_url, request.redacted())

        try:
            response = await super().post(self.submit_url, json=request.to_body())
        except httpx.HTTPError as exc:
            raise RelayTransportError(f"Relay request failed: {exc}") from exc

        parsed = self._parse_json(response)

        if not response.is_success:
            # 5xx and unstructured bodies come from proxies or a crashed relay
            if response.status_code >= 500 or not isinstance(parsed, (dict, str)):
                raise RelayTransportError(
                    f"Relay returned HTTP {response.status_code}: {response.text[:200]!r}"
                )
            body = RelayErrorBody.from_response_text(response.text, parsed)
            error = classify_relay_error(response.status_code, body)
            logger.info("Relay refused %s permit (nonce %d): %s", entrypoint, nonce, body.describe())
            raise error

        if not isinstance(parsed, str) or not parsed:
            raise RelayTransportError(
                f"Relay returned HTTP {response.status_code} without a transaction hash: {response.text[:200]!r}"
            )
        logger.info("Relay accepted %s permit (nonce %d): tx %s", entrypoint, nonce, parsed)
        return parsed

    @staticmethod
    def _parse_json(response: httpx.Response) -> Optional[Any]:
        try:
            return response.json()
        except ValueError:
            return None
