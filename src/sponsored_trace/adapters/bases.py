"""
Abstract Base Classes for external collaborators

Defines the interfaces the client needs from the outside world. Concrete
node clients, wallets and metadata stores implement them; the library
itself ships a local-key signer and an HTTP metadata store.

Core Classes:
    - ChainClient: Node queries (item state, account nonce, event log,
      finalization, role holders) and direct wallet-paid submission
    - PermitSigner: Produces a signature over canonical permit bytes
    - MetadataStore: Resolves a metadata URL to a document

Every method that may perform I/O is a coroutine.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from pydantic import BaseModel

from ..schemas.bases import ItemState
from ..schemas.events import RawContractEvent, Role
from ..schemas.results import TransactionSummary


class ChainClient(ABC):
    """
    Abstract node client for one track-and-trace contract instance.

    Key Responsibilities:
    1. get_item_state: Current status and metadata of an item
    2. get_account_nonce: Next permit nonce the contract expects from an account
    3. wait_for_finalization: Block until a transaction is finalized
    4. get_contract_events: Full event log of the contract, with positions
    5. submit_transaction: Send a wallet-paid call (admin operations)
    6. get_addresses_by_role: Accounts currently holding a role

    Implementations must raise on transport failures instead of returning
    placeholder values; callers decide how to degrade.
    """

    @abstractmethod
    async def get_item_state(self, item_id: bytes) -> ItemState:
        """
        Query the contract's current state of an item.

        Args:
            item_id: 8-byte little-endian item id.

        Returns:
            ItemState: Current status and metadata reference.
        """
        pass

    @abstractmethod
    async def get_account_nonce(self, account: str) -> int:
        """
        Query the next nonce the contract will accept from ``account``.

        Args:
            account: Account address.

        Returns:
            int: Unsigned 64-bit nonce.
        """
        pass

    @abstractmethod
    async def wait_for_finalization(self, transaction_hash: str) -> TransactionSummary:
        """
        Wait until ``transaction_hash`` is finalized.

        Has no timeout of its own; callers bound it.

        Returns:
            TransactionSummary: Terminal summary (success or rejection).
        """
        pass

    @abstractmethod
    async def get_contract_events(self) -> List[RawContractEvent]:
        """
        Fetch every event emitted by the contract instance.

        Returns:
            List[RawContractEvent]: Raw events with block height, intra-block
            index, block time and transaction hash. Order is not guaranteed.
        """
        pass

    @abstractmethod
    async def submit_transaction(self, sender: str, entrypoint: str, payload: bytes) -> str:
        """
        Submit a call paid by the sender's own wallet.

        Args:
            sender: Account address of the caller.
            entrypoint: Contract entrypoint name.
            payload: Encoded parameters.

        Returns:
            str: Transaction hash.
        """
        pass

    @abstractmethod
    async def get_addresses_by_role(self, role: Role) -> List[str]:
        """
        Query the accounts the contract currently grants ``role`` to.

        Returns:
            List[str]: Account addresses, in the order the contract reports them.
        """
        pass


class PermitSigner(ABC):
    """
    Signs canonical permit messages on behalf of one account.

    Wallet integrations implement this; key custody stays with the wallet.
    """

    @property
    @abstractmethod
    def account(self) -> str:
        """Address of the signing account."""
        pass

    @abstractmethod
    async def sign(self, message: bytes) -> str:
        """
        Sign permit bytes.

        Args:
            message: Output of ``build_permit_message``.

        Returns:
            str: Hex-encoded signature as expected by the relay.
        """
        pass


class MetadataDocument(BaseModel):
    """
    Resolved metadata.

    Attributes:
        url: URL the document was fetched from.
        content_type: Reported media type, if any.
        data: Parsed JSON body when the document is JSON, else None.
        raw: Raw body bytes.
    """
    url: str
    content_type: Optional[str] = None
    data: Optional[Any] = None
    raw: bytes = b""


class MetadataStore(ABC):
    """Resolves metadata URLs; failures degrade to ``None`` instead of raising."""

    @abstractmethod
    async def fetch(self, url: str) -> Optional[MetadataDocument]:
        pass

    @abstractmethod
    def resolve_url(self, url: str) -> str:
        """Map a metadata reference (``ipfs://``, bare CID, http URL) to a fetchable URL."""
        pass
