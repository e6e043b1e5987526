"""ContentStore Protocol — dependency inversion for testability.

Implementations persist immutable JSON blobs addressed by content id (CID).
Unit tests inject the in-memory implementation or an AsyncMock conforming
to this Protocol.
"""

from typing import Any, Protocol


class ContentStoreProtocol(Protocol):
    async def write(self, name: str, blob: dict[str, Any]) -> str:
        """Persist `blob` under metadata `name`; return its CID.

        Raises StorageUnavailableError if the backing store cannot accept it.
        """
        ...

    async def read(self, cid: str) -> dict[str, Any]:
        """Return the blob for `cid`. Raises BlobNotFoundError."""
        ...

    async def search_latest(self, name: str) -> str | None:
        """CID of the most recently written blob named `name`, if any."""
        ...

    async def close(self) -> None: ...


def balance_document_name(account_key: str) -> str:
    return f"{account_key}_balance.json"


LISTINGS_DOCUMENT_NAME = "marketplace_listings.json"
ORDERS_DOCUMENT_NAME = "marketplace_orders.json"
