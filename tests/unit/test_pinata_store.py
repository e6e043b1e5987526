"""Tests for PinataContentStore against an httpx.MockTransport."""

import asyncio
import json

import httpx
import pytest

from config.settings import Settings
from src.cc_common.errors import BlobNotFoundError, StorageUnavailableError
from src.cc_storage.application.address_index import AddressIndex
from src.cc_storage.infrastructure.pinata import PinataContentStore, pinata_auth_headers

GATEWAYS = ["https://gw-a.test/ipfs/", "https://gw-b.test/ipfs/"]


def _settings(**kwargs) -> Settings:
    defaults = dict(
        PINATA_JWT="jwt-token",
        PINATA_API_URL="https://pinata.test",
        IPFS_GATEWAYS=GATEWAYS,
        WRITE_MAX_ATTEMPTS=3,
        WRITE_BACKOFF_BASE_SECONDS=0,
        GATEWAY_TIMEOUT_SECONDS=1,
        READ_TOTAL_TIMEOUT_SECONDS=2,
    )
    defaults.update(kwargs)
    return Settings(**defaults)


def _store(handler, **kwargs) -> PinataContentStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PinataContentStore(_settings(**kwargs), client=client)


class TestAuthHeaders:
    def test_jwt_wins(self) -> None:
        headers = pinata_auth_headers(
            _settings(PINATA_JWT="j", PINATA_API_KEY="k", PINATA_API_SECRET="s")
        )
        assert headers == {"Authorization": "Bearer j"}

    def test_key_and_secret(self) -> None:
        headers = pinata_auth_headers(
            _settings(PINATA_JWT=None, PINATA_API_KEY="k", PINATA_API_SECRET="s")
        )
        assert headers == {"pinata_api_key": "k", "pinata_secret_api_key": "s"}

    def test_none(self) -> None:
        assert pinata_auth_headers(_settings(PINATA_JWT=None)) is None


class TestWrite:
    async def test_pins_with_metadata_name(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"IpfsHash": "QmNew"})

        store = _store(handler)
        assert await store.write("a@x.com_balance.json", {"v": 1}) == "QmNew"

        request = seen[0]
        assert request.url == "https://pinata.test/pinning/pinJSONToIPFS"
        assert request.headers["Authorization"] == "Bearer jwt-token"
        body = json.loads(request.content)
        assert body == {"pinataContent": {"v": 1}, "pinataMetadata": {"name": "a@x.com_balance.json"}}

    async def test_retries_server_errors(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            if calls < 3:
                return httpx.Response(502, text="bad gateway")
            return httpx.Response(200, json={"IpfsHash": "QmLate"})

        assert await _store(handler).write("doc.json", {}) == "QmLate"
        assert calls == 3

    async def test_gives_up_after_max_attempts(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(StorageUnavailableError, match="ConnectError"):
            await _store(handler).write("doc.json", {})
        assert calls == 3

    async def test_client_error_not_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(401, text="unauthorized")

        with pytest.raises(StorageUnavailableError, match="401"):
            await _store(handler).write("doc.json", {})
        assert calls == 1

    async def test_missing_hash(self) -> None:
        store = _store(lambda request: httpx.Response(200, json={}))
        with pytest.raises(StorageUnavailableError):
            await store.write("doc.json", {})

    async def test_no_credentials(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        store = _store(handler, PINATA_JWT=None)
        assert store.has_credentials is False
        with pytest.raises(StorageUnavailableError):
            await store.write("doc.json", {})


class TestRead:
    async def test_first_success_wins(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "gw-a.test":
                return httpx.Response(404)
            return httpx.Response(200, json={"tokenBalance": 5})

        assert await _store(handler).read("QmX") == {"tokenBalance": 5}

    async def test_slow_gateway_does_not_block(self) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "gw-a.test":
                await asyncio.sleep(5)
            return httpx.Response(200, json={"from": request.url.host})

        assert await _store(handler).read("QmX") == {"from": "gw-b.test"}

    async def test_non_object_body_is_a_miss(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "gw-a.test":
                return httpx.Response(200, json=[1, 2])
            return httpx.Response(200, text="<html>")

        with pytest.raises(BlobNotFoundError):
            await _store(handler).read("QmX")

    async def test_all_gateways_fail(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        with pytest.raises(BlobNotFoundError, match="QmX"):
            await _store(handler).read("QmX")

    async def test_no_gateways(self) -> None:
        store = _store(lambda request: httpx.Response(200, json={}), IPFS_GATEWAYS=[])
        with pytest.raises(BlobNotFoundError):
            await store.read("QmX")


class TestSearch:
    async def test_returns_newest_pin(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"rows": [{"ipfs_pin_hash": "QmNewest"}]})

        assert await _store(handler).search_latest("a@x.com_balance.json") == "QmNewest"
        params = seen[0].url.params
        assert params["metadata[name]"] == "a@x.com_balance.json"
        assert params["status"] == "pinned"

    async def test_no_rows(self) -> None:
        store = _store(lambda request: httpx.Response(200, json={"rows": []}))
        assert await store.search_latest("doc.json") is None

    async def test_http_error(self) -> None:
        store = _store(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(StorageUnavailableError):
            await store.search_latest("doc.json")

    async def test_no_credentials_means_no_history(self) -> None:
        store = _store(lambda request: httpx.Response(500), PINATA_JWT=None)
        assert await store.search_latest("doc.json") is None

    async def test_malformed_row(self) -> None:
        store = _store(lambda request: httpx.Response(200, json={"rows": ["junk"]}))
        with pytest.raises(StorageUnavailableError, match="malformed row"):
            await store.search_latest("doc.json")

    async def test_redirect_loop_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.TooManyRedirects("loop", request=request)

        with pytest.raises(StorageUnavailableError):
            await _store(handler).search_latest("doc.json")

    async def test_malformed_row_means_no_history_for_index(self) -> None:
        store = _store(lambda request: httpx.Response(200, json={"rows": [42]}))
        index = AddressIndex(store)
        assert await index.resolve("a@x.com") is None
        assert index.entries() == {}


class TestWriteRequestErrors:
    async def test_redirect_loop_is_retried(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            raise httpx.TooManyRedirects("loop", request=request)

        with pytest.raises(StorageUnavailableError, match="TooManyRedirects"):
            await _store(handler).write("doc.json", {})
        assert calls == 3
