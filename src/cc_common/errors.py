"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Request / signature validation
  2xxx: Account / balance
  3xxx: Marketplace listing
  9xxx: Storage / system
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Request ---

class InvalidRequestError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, detail, 400)


class InvalidSignatureError(AppError):
    def __init__(self, detail: str = "Invalid signature") -> None:
        super().__init__(1002, detail, 400)


class InvalidAmountError(AppError):
    def __init__(self, field: str, value: object) -> None:
        super().__init__(1003, f"{field} must be positive, got {value}", 400)


# --- 2xxx: Account ---

class InsufficientBalanceError(AppError):
    def __init__(self, asset: str, required: float, available: float) -> None:
        super().__init__(
            2001,
            f"Insufficient {asset} balance: required {required}, available {available}",
            400,
        )


# --- 3xxx: Marketplace ---

class ListingNotFoundError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3001, f"Listing not found: {listing_id}", 404)


class ListingUnavailableError(AppError):
    def __init__(self, listing_id: str, status: str) -> None:
        super().__init__(3002, f"Listing {listing_id} not available (status {status})", 400)


class SelfTradeError(AppError):
    def __init__(self) -> None:
        super().__init__(3003, "Cannot buy your own listing", 400)


class NotListingOwnerError(AppError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3004, f"Only the seller can cancel listing {listing_id}", 403)


# --- 9xxx: Storage / System ---

class BlobNotFoundError(AppError):
    def __init__(self, cid: str, detail: str = "") -> None:
        message = f"Blob not found: {cid}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(9001, message, 404)


class StorageUnavailableError(AppError):
    def __init__(self, detail: str = "Content store unavailable") -> None:
        super().__init__(9002, detail, 503)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9003, detail, 500)
