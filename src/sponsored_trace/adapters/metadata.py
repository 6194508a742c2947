"""
HTTP metadata store.

Resolves item metadata references through an IPFS gateway or plain HTTP.
``ipfs://<cid>`` and bare CIDs are rewritten to ``<gateway><cid>``; http(s)
URLs are fetched as-is. Every failure is logged and reported as ``None``.
"""

import logging
from typing import Optional

import httpx

from ..config import DEFAULT_IPFS_GATEWAY, ClientConfig
from .bases import MetadataDocument, MetadataStore

logger = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"


def parse_url_or_cid(url: str) -> str:
    """Strip the ``ipfs://`` scheme, leaving the CID (and path, if any)."""
    if url.startswith(IPFS_SCHEME):
        return url[len(IPFS_SCHEME):]
    return url


class HttpMetadataStore(MetadataStore):
    """
    MetadataStore backed by an ``httpx.AsyncClient``.

    Args:
        gateway: IPFS gateway prefix, e.g. ``https://ipfs.io/ipfs/``.
        client: Optional client to reuse; one is created (and owned) otherwise.
        timeout: Request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        gateway: str = DEFAULT_IPFS_GATEWAY,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self._gateway = gateway if gateway.endswith("/") else gateway + "/"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    @classmethod
    def from_config(cls, config: ClientConfig, client: Optional[httpx.AsyncClient] = None) -> "HttpMetadataStore":
        return cls(gateway=config.ipfs_gateway, client=client)

    @property
    def gateway(self) -> str:
        return self._gateway

    def resolve_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._gateway}{parse_url_or_cid(url)}"

    async def fetch(self, url: str) -> Optional[MetadataDocument]:
        target = self.resolve_url(url)
        try:
            response = await self._client.get(target)
        except httpx.HTTPError as exc:
            logger.warning("Metadata fetch failed for %s: %s", target, exc)
            return None
        if response.status_code >= 400:
            logger.warning("Metadata fetch for %s returned HTTP %d", target, response.status_code)
            return None

        content_type = response.headers.get("content-type")
        data = None
        try:
            data = response.json()
        except ValueError:
            logger.debug("Metadata at %s is not JSON (%s)", target, content_type)
        return MetadataDocument(url=target, content_type=content_type, data=data, raw=response.content)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpMetadataStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
