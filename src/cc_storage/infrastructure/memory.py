"""InMemoryContentStore — process-local content-addressed blob store.

CIDs are sha256 digests of the canonical JSON encoding, so writing the same
document twice yields the same CID. Used for local development
(CONTENT_STORE=memory) and tests; `fail_writes`/`fail_reads` simulate an
outage of the pinning service.

Every call suspends for `latency` seconds before touching state, as a
network round trip would, so concurrent callers interleave at each call.
"""

import asyncio
import copy
import hashlib
import json
from typing import Any

from src.cc_common.errors import BlobNotFoundError, StorageUnavailableError


class InMemoryContentStore:
    def __init__(self, latency: float = 0.0) -> None:
        self._blobs: dict[str, dict[str, Any]] = {}
        # name -> CIDs in write order (latest last)
        self._names: dict[str, list[str]] = {}
        self.latency = latency
        self.fail_writes = False
        self.fail_reads = False
        self.fail_search = False

    @staticmethod
    def compute_cid(blob: dict[str, Any]) -> str:
        canonical = json.dumps(blob, sort_keys=True, separators=(",", ":"))
        return "mem" + hashlib.sha256(canonical.encode()).hexdigest()[:46]

    async def write(self, name: str, blob: dict[str, Any]) -> str:
        await asyncio.sleep(self.latency)
        if self.fail_writes:
            raise StorageUnavailableError("In-memory content store is failing writes")
        cid = self.compute_cid(blob)
        self._blobs[cid] = copy.deepcopy(blob)
        self._names.setdefault(name, []).append(cid)
        return cid

    async def read(self, cid: str) -> dict[str, Any]:
        await asyncio.sleep(self.latency)
        if self.fail_reads:
            raise BlobNotFoundError(cid, "reads disabled")
        blob = self._blobs.get(cid)
        if blob is None:
            raise BlobNotFoundError(cid)
        return copy.deepcopy(blob)

    async def search_latest(self, name: str) -> str | None:
        await asyncio.sleep(self.latency)
        if self.fail_search:
            raise StorageUnavailableError("In-memory content store is failing searches")
        cids = self._names.get(name)
        return cids[-1] if cids else None

    async def close(self) -> None:
        return None

    def __len__(self) -> int:
        return len(self._blobs)
