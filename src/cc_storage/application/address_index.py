"""AddressIndex — account key -> CID of the latest balance snapshot.

The in-process map is a cache over the content store: on a miss the index
asks the store for the newest blob named `<accountKey>_balance.json` before
concluding the account has no history. Lookup failures are logged and treated
as "no history yet".
"""

import logging

from src.cc_common.errors import AppError
from src.cc_storage.domain.content_store import ContentStoreProtocol, balance_document_name

logger = logging.getLogger(__name__)


class AddressIndex:
    def __init__(self, content_store: ContentStoreProtocol) -> None:
        self._store = content_store
        self._cids: dict[str, str] = {}

    async def resolve(self, account_key: str) -> str | None:
        cid = self._cids.get(account_key)
        if cid is not None:
            return cid
        try:
            cid = await self._store.search_latest(balance_document_name(account_key))
        except AppError as exc:
            logger.warning("Reverse lookup for %s failed: %s", account_key, exc.message)
            return None
        if cid:
            self._cids[account_key] = cid
        return cid

    def update(self, account_key: str, cid: str) -> None:
        self._cids[account_key] = cid

    def entries(self) -> dict[str, str]:
        return dict(self._cids)
