"""
Tests for the HTTP metadata store.
"""

import httpx
import pytest

from chain_mocks import MOCK_GATEWAY
from sponsored_trace.adapters.metadata import HttpMetadataStore, parse_url_or_cid


def store_with(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpMetadataStore(gateway=MOCK_GATEWAY, client=client)


def test_parse_url_or_cid():
    assert parse_url_or_cid("ipfs://bafy123") == "bafy123"
    assert parse_url_or_cid("bafy123") == "bafy123"


class TestResolve:

    def test_ipfs_and_bare_cid_use_gateway(self):
        store = HttpMetadataStore(gateway="https://gateway.test/ipfs")
        assert store.gateway == "https://gateway.test/ipfs/"
        assert store.resolve_url("ipfs://bafy/meta.json") == "https://gateway.test/ipfs/bafy/meta.json"
        assert store.resolve_url("bafy") == "https://gateway.test/ipfs/bafy"

    def test_http_urls_untouched(self):
        store = HttpMetadataStore()
        assert store.resolve_url("https://example.test/m.json") == "https://example.test/m.json"
        assert store.gateway == "https://ipfs.io/ipfs/"


class TestFetch:

    @pytest.mark.asyncio
    async def test_json_document(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(200, json={"name": "Apples", "imageUrl": "ipfs://img"})

        async with store_with(handler) as store:
            document = await store.fetch("ipfs://bafy")
        assert seen == [MOCK_GATEWAY + "bafy"]
        assert document.data == {"name": "Apples", "imageUrl": "ipfs://img"}
        assert document.content_type == "application/json"

    @pytest.mark.asyncio
    async def test_non_json_document_kept_raw(self):
        async with store_with(lambda request: httpx.Response(200, content=b"\x89PNG")) as store:
            document = await store.fetch("bafy")
        assert document.data is None
        assert document.raw == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_http_error_degrades_to_none(self):
        async with store_with(lambda request: httpx.Response(404)) as store:
            assert await store.fetch("bafy") is None

    @pytest.mark.asyncio
    async def test_transport_error_degrades_to_none(self):
        def handler(request):
            raise httpx.ConnectError("gateway down")

        async with store_with(handler) as store:
            assert await store.fetch("bafy") is None
