"""LedgerStore — the ledger's process-local state, owned by one object.

Constructed once per application (see src/container.py) and injected into
BalanceLedger and MarketplaceService, so tests can build isolated stores.

Holds:
  - the AddressIndex (account key -> latest CID),
  - the volatile fallback cache for snapshots the content store refused,
  - the external id -> account key map,
  - the keyed lock registry serializing mutations per account / listing.

The volatile cache is lost on restart; snapshots kept there are flagged
`degraded` so callers can tell durability was not achieved.
"""

from src.cc_common.keyed_lock import KeyedLocks
from src.cc_ledger.domain.models import BalanceSnapshot
from src.cc_storage.application.address_index import AddressIndex
from src.cc_storage.domain.content_store import ContentStoreProtocol


class LedgerStore:
    def __init__(self, content_store: ContentStoreProtocol) -> None:
        self.index = AddressIndex(content_store)
        self.locks = KeyedLocks()
        self._volatile: dict[str, BalanceSnapshot] = {}
        self._external_ids: dict[str, str] = {}

    # --- volatile fallback cache ---

    def volatile_snapshot(self, account_key: str) -> BalanceSnapshot | None:
        return self._volatile.get(account_key)

    def keep_volatile(self, snapshot: BalanceSnapshot) -> None:
        self._volatile[snapshot.account_key] = snapshot

    def drop_volatile(self, account_key: str) -> None:
        self._volatile.pop(account_key, None)

    def volatile_keys(self) -> list[str]:
        return list(self._volatile)

    # --- external id -> account key ---

    def remember_external_id(self, external_id: str, account_key: str) -> None:
        self._external_ids[external_id] = account_key

    def account_for_external_id(self, external_id: str) -> str | None:
        return self._external_ids.get(external_id)
