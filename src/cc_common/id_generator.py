"""Business id generation.

Transaction ids keep the `tx_<epoch ms>_<9 random base36 chars>` shape already
present in pinned balance documents; listings and orders use UUID4.
"""

import secrets
import string
import time
import uuid

_BASE36 = string.digits + string.ascii_lowercase


def generate_transaction_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"tx_{int(time.time() * 1000)}_{suffix}"


def generate_market_ticket_id() -> str:
    """Correlation id for ledger moves caused by a marketplace event."""
    return f"market_{int(time.time() * 1000)}"


def generate_uuid() -> str:
    return str(uuid.uuid4())
