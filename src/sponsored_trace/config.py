"""
Client Configuration Management

Provides environment-aware access to the settings the client needs: where
the sponsoring relay lives, which contract instance to talk to, which IPFS
gateway resolves metadata, and the timing knobs of the write path.

Values are read from environment variables; a ``.env`` file in the working
directory is loaded at import time.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, ValidationError
import dotenv

from .engine.exceptions import ConfigurationError
from .schemas.bases import ContractAddress

dotenv.load_dotenv()


DEFAULT_CONTRACT_NAME = "track_and_trace"
DEFAULT_IPFS_GATEWAY = "https://ipfs.io/ipfs/"
DEFAULT_NONCE_REFRESH_INTERVAL = 2.0
DEFAULT_PERMIT_EXPIRY_DAYS = 1.0
DEFAULT_RELAY_REQUEST_TIMEOUT = 30.0
DEFAULT_FINALIZATION_TIMEOUT = 300.0


class ClientConfig(BaseModel):
    """Resolved client settings."""
    relay_url: str = Field(..., min_length=1, description="Base URL of the sponsoring relay")
    contract_address: ContractAddress
    contract_name: str = Field(default=DEFAULT_CONTRACT_NAME, min_length=1)
    ipfs_gateway: str = Field(default=DEFAULT_IPFS_GATEWAY, min_length=1)
    nonce_refresh_interval: float = Field(default=DEFAULT_NONCE_REFRESH_INTERVAL, gt=0)
    permit_expiry_days: float = Field(default=DEFAULT_PERMIT_EXPIRY_DAYS, gt=0)
    relay_request_timeout: float = Field(default=DEFAULT_RELAY_REQUEST_TIMEOUT, gt=0)
    finalization_timeout: float = Field(default=DEFAULT_FINALIZATION_TIMEOUT, gt=0)


def get_relay_url_from_env() -> Optional[str]:
    """
    Load the sponsoring relay base URL from environment variables.

    Environment Variable:
        - SPONSORED_TRANSACTION_BACKEND: Relay base URL (e.g. ``https://relay.example.com/``)

    Returns:
        str: Relay URL from environment, or None if not configured
    """
    return os.getenv("SPONSORED_TRANSACTION_BACKEND")


def get_contract_index_from_env() -> Optional[str]:
    """
    Load the contract instance index from environment variables.

    Environment Variable:
        - TRACK_AND_TRACE_CONTRACT_INDEX: Contract index (unsigned integer)

    Returns:
        str: Raw value, or None if not configured
    """
    return os.getenv("TRACK_AND_TRACE_CONTRACT_INDEX")


def get_contract_subindex_from_env() -> Optional[str]:
    """
    Load the contract instance subindex from environment variables.

    Environment Variable:
        - TRACK_AND_TRACE_CONTRACT_SUBINDEX: Contract subindex (defaults to 0)
    """
    return os.getenv("TRACK_AND_TRACE_CONTRACT_SUBINDEX")


def get_contract_name_from_env() -> Optional[str]:
    """
    Load the contract name from environment variables.

    Environment Variable:
        - TRACK_AND_TRACE_CONTRACT_NAME: Contract name (defaults to ``track_and_trace``)
    """
    return os.getenv("TRACK_AND_TRACE_CONTRACT_NAME")


def get_ipfs_gateway_from_env() -> Optional[str]:
    """
    Load the IPFS gateway used to resolve ``ipfs://`` metadata.

    Environment Variable:
        - IPFS_GATEWAY_URL: Gateway prefix (defaults to ``https://ipfs.io/ipfs/``)
    """
    return os.getenv("IPFS_GATEWAY_URL")


def get_nonce_refresh_interval_from_env() -> Optional[str]:
    """
    Environment Variable:
        - NONCE_REFRESH_INTERVAL: Seconds between background nonce queries (default 2)
    """
    return os.getenv("NONCE_REFRESH_INTERVAL")


def get_permit_expiry_days_from_env() -> Optional[str]:
    """
    Environment Variable:
        - PERMIT_EXPIRY_DAYS: Permit lifetime in days (default 1)
    """
    return os.getenv("PERMIT_EXPIRY_DAYS")


def get_relay_request_timeout_from_env() -> Optional[str]:
    """
    Environment Variable:
        - RELAY_REQUEST_TIMEOUT: HTTP timeout in seconds for relay requests (default 30)
    """
    return os.getenv("RELAY_REQUEST_TIMEOUT")


def get_finalization_timeout_from_env() -> Optional[str]:
    """
    Environment Variable:
        - FINALIZATION_TIMEOUT: Seconds to wait for a transaction to finalize
          before reporting an unknown outcome (default 300)
    """
    return os.getenv("FINALIZATION_TIMEOUT")


def load_client_config(**overrides) -> ClientConfig:
    """
    Build a ClientConfig from environment variables.

    Keyword overrides take precedence over the environment. ``contract_index``
    and ``contract_subindex`` may be passed instead of ``contract_address``.

    Raises:
        ConfigurationError: If a required value is missing or a value cannot
            be parsed.
    """
    relay_url = overrides.pop("relay_url", None) or get_relay_url_from_env()
    if not relay_url:
        raise ConfigurationError("SPONSORED_TRANSACTION_BACKEND is not set")

    contract_address = overrides.pop("contract_address", None)
    index = overrides.pop("contract_index", None)
    subindex = overrides.pop("contract_subindex", None)
    if contract_address is None:
        index = index if index is not None else get_contract_index_from_env()
        if index is None or index == "":
            raise ConfigurationError("TRACK_AND_TRACE_CONTRACT_INDEX is not set")
        subindex = subindex if subindex is not None else (get_contract_subindex_from_env() or 0)
        try:
            contract_address = ContractAddress(index=int(index), subindex=int(subindex))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid contract address: {exc}") from exc

    env_values = {
        "contract_name": get_contract_name_from_env(),
        "ipfs_gateway": get_ipfs_gateway_from_env(),
        "nonce_refresh_interval": get_nonce_refresh_interval_from_env(),
        "permit_expiry_days": get_permit_expiry_days_from_env(),
        "relay_request_timeout": get_relay_request_timeout_from_env(),
        "finalization_timeout": get_finalization_timeout_from_env(),
    }
    values = {key: value for key, value in env_values.items() if value}
    values.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return ClientConfig(relay_url=relay_url, contract_address=contract_address, **values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid client configuration: {exc}") from exc
