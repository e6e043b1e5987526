"""PinataContentStore — IPFS pinning via the Pinata HTTP API.

Writes: POST /pinning/pinJSONToIPFS with `pinataMetadata.name` set so the
blob can be found again by name. Retried with exponential backoff on
request errors, 429 and 5xx.

Reads: every configured gateway is queried concurrently; the first one to
return a JSON object wins and the rest are cancelled.

Search: GET /data/pinList?status=pinned&metadata[name]=<name>, newest first.
"""

import asyncio
import logging
from typing import Any

import httpx

from config.settings import Settings
from src.cc_common.errors import BlobNotFoundError, StorageUnavailableError

logger = logging.getLogger(__name__)

_ACCEPT_JSON = "application/json, text/plain;q=0.8,*/*;q=0.5"


class _GatewayMiss(Exception):
    """A single gateway answered, but not with a usable JSON document."""


def pinata_auth_headers(settings: Settings) -> dict[str, str] | None:
    """JWT bearer if configured, else API key + secret, else None."""
    if settings.PINATA_JWT:
        return {"Authorization": f"Bearer {settings.PINATA_JWT}"}
    if settings.PINATA_API_KEY and settings.PINATA_API_SECRET:
        return {
            "pinata_api_key": settings.PINATA_API_KEY,
            "pinata_secret_api_key": settings.PINATA_API_SECRET,
        }
    return None


class PinataContentStore:
    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_url = settings.PINATA_API_URL.rstrip("/")
        self._auth_headers = pinata_auth_headers(settings)
        self._gateways = list(settings.IPFS_GATEWAYS)
        self._gateway_timeout = settings.GATEWAY_TIMEOUT_SECONDS
        self._read_total_timeout = settings.READ_TOTAL_TIMEOUT_SECONDS
        self._search_timeout = settings.SEARCH_TIMEOUT_SECONDS
        self._max_attempts = max(1, settings.WRITE_MAX_ATTEMPTS)
        self._backoff_base = settings.WRITE_BACKOFF_BASE_SECONDS
        self._client = client or httpx.AsyncClient()
        if self._auth_headers is None:
            logger.warning("No Pinata credentials found - writes will use in-memory storage only")

    @property
    def has_credentials(self) -> bool:
        return self._auth_headers is not None

    # ------------------------------------------------------------------
    # write
    # ------------------------------------------------------------------

    async def write(self, name: str, blob: dict[str, Any]) -> str:
        if not self.has_credentials:
            raise StorageUnavailableError("Pinata credentials missing")

        payload = {"pinataContent": blob, "pinataMetadata": {"name": name}}
        last_error = ""
        for attempt in range(self._max_attempts):
            try:
                resp = await self._client.post(
                    f"{self._api_url}/pinning/pinJSONToIPFS",
                    json=payload,
                    headers=self._auth_headers,
                )
            except httpx.RequestError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
            else:
                if resp.is_success:
                    try:
                        cid = resp.json().get("IpfsHash")
                    except (ValueError, AttributeError) as exc:
                        raise StorageUnavailableError("Pinata returned a malformed pin response") from exc
                    if not cid:
                        raise StorageUnavailableError("Pinata response missing IpfsHash")
                    return str(cid)
                last_error = f"HTTP {resp.status_code}: {resp.text[:200]}"
                # Client errors other than rate limiting will not succeed on retry
                if resp.status_code < 500 and resp.status_code != 429:
                    break

            if attempt < self._max_attempts - 1:
                delay = self._backoff_base * (2**attempt)
                logger.warning(
                    "Pin of %s failed (attempt %d/%d): %s; retrying in %.1fs",
                    name, attempt + 1, self._max_attempts, last_error, delay,
                )
                await asyncio.sleep(delay)

        raise StorageUnavailableError(f"Failed to pin {name}: {last_error}")

    # ------------------------------------------------------------------
    # read
    # ------------------------------------------------------------------

    async def _fetch_from_gateway(self, gateway: str, cid: str) -> dict[str, Any]:
        resp = await self._client.get(
            f"{gateway}{cid}",
            headers={"Accept": _ACCEPT_JSON},
            timeout=self._gateway_timeout,
        )
        if not resp.is_success:
            raise _GatewayMiss(f"{gateway} returned HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise _GatewayMiss(f"{gateway} returned non-JSON body") from exc
        if not isinstance(data, dict):
            raise _GatewayMiss(f"{gateway} returned {type(data).__name__}, expected object")
        return data

    async def read(self, cid: str) -> dict[str, Any]:
        if not self._gateways:
            raise BlobNotFoundError(cid, "no gateways configured")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._read_total_timeout
        tasks = [
            asyncio.create_task(self._fetch_from_gateway(gateway, cid))
            for gateway in self._gateways
        ]
        pending: set[asyncio.Task[dict[str, Any]]] = set(tasks)
        last_error: BaseException | None = None
        try:
            while pending:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                done, pending = await asyncio.wait(
                    pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    exc = task.exception()
                    if exc is None:
                        return task.result()
                    last_error = exc
                    logger.debug("Gateway attempt for %s failed: %s", cid, exc)
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        detail = str(last_error) if last_error else "all gateways timed out"
        raise BlobNotFoundError(cid, detail)

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    async def search_latest(self, name: str) -> str | None:
        if not self.has_credentials:
            return None
        try:
            resp = await self._client.get(
                f"{self._api_url}/data/pinList",
                params={"status": "pinned", "metadata[name]": name, "pageLimit": 1},
                headers=self._auth_headers,
                timeout=self._search_timeout,
            )
        except httpx.RequestError as exc:
            raise StorageUnavailableError(f"Pinata search failed: {exc}") from exc
        if not resp.is_success:
            raise StorageUnavailableError(
                f"Pinata search failed: HTTP {resp.status_code} {resp.text[:200]}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise StorageUnavailableError("Pinata search returned non-JSON body") from exc
        if not isinstance(body, dict):
            return None
        rows = body.get("rows") or body.get("items") or []
        if not isinstance(rows, list) or not rows:
            return None
        first = rows[0]
        if not isinstance(first, dict):
            raise StorageUnavailableError("Pinata search returned a malformed row")
        cid =first.get("ipfs_pin_hash") or first.get("ipfsHash") or first.get("cid")
        return str(cid) if cid else None

    async def close(self) -> None:
        await self._client.aclose()
