"""
Local Permit Signing

In-process signing of permit messages with ``eth_account``. The permit bytes
are signed as an EIP-191 personal message, so any wallet exposing
``personal_sign`` produces compatible signatures. No network access is
needed.

Exported helpers
----------------
LocalKeySigner
    PermitSigner backed by a secp256k1 private key held in memory.
recover_permit_signer
    Recover the address that signed a permit message; used by relays and
    tests to check a signature before submitting it.
"""

from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import keccak

from .bases import PermitSigner


class LocalKeySigner(PermitSigner):
    """
    PermitSigner holding a private key in process memory.

    Args:
        private_key: Hex-encoded secp256k1 key (with or without ``0x``).
        account: Optional explicit account address. Defaults to the address
                 derived from the key; chains with their own address format
                 can pass the on-chain account here.

    Example::

        signer = LocalKeySigner(private_key)
        signature = await signer.sign(message)
    """

    def __init__(self, private_key: str, account: Optional[str] = None):
        self._local = Account.from_key(private_key)
        self._account = account or self._local.address

    @property
    def account(self) -> str:
        return self._account

    @property
    def key_address(self) -> str:
        """Address derived from the private key."""
        return self._local.address

    async def sign(self, message: bytes) -> str:
        signed = self._local.sign_message(encode_defunct(primitive=bytes(message)))
        return "0x" + bytes(signed.signature).hex()


def recover_permit_signer(message: bytes, signature: str) -> str:
    """
    Recover the address that produced ``signature`` over ``message``.

    Args:
        message: Canonical permit bytes.
        signature: Hex signature (65 bytes, with or without ``0x``).

    Returns:
        str: Checksummed signer address.

    Raises:
        ValueError: If the signature is malformed.
    """
    raw = signature[2:] if signature.startswith("0x") else signature
    return Account.recover_message(encode_defunct(primitive=bytes(message)), signature=bytes.fromhex(raw))


def permit_digest(message: bytes) -> str:
    """keccak256 of the permit bytes, handy as a log correlation id."""
    return keccak(primitive=bytes(message)).hex()
