"""Tests for request/response schemas (camelCase wire format)."""

import pytest
from pydantic import ValidationError

from src.cc_common.enums import ListingStatus
from src.cc_ledger.application.schemas import SnapshotResponse, StoreBalanceRequest
from src.cc_ledger.domain.models import default_snapshot
from src.cc_market.application.schemas import (
    BuyListingRequest,
    CreateListingRequest,
    ListingOut,
)
from src.cc_market.domain.models import Listing


class TestStoreBalanceRequest:
    def test_parses_wire_names(self) -> None:
        req = StoreBalanceRequest.model_validate({
            "userEmail": "a@x.com", "userId": "u1", "walletAddress": "0xAAA",
            "amount": 50, "adminSignature": "0xsig", "ticketId": "T1",
        })
        assert req.user_email == "a@x.com"
        assert req.amount == 50
        assert req.ticket_id == "T1"

    def test_negative_amount_allowed(self) -> None:
        req = StoreBalanceRequest.model_validate(
            {"userEmail": "a@x.com", "amount": -5, "ticketId": "T1"}
        )
        assert req.amount == -5
        assert req.admin_signature is None

    @pytest.mark.parametrize("amount", [0, "abc"])
    def test_rejects_bad_amount(self, amount) -> None:
        with pytest.raises(ValidationError):
            StoreBalanceRequest.model_validate(
                {"userEmail": "a@x.com", "amount": amount, "ticketId": "T1"}
            )

    def test_rejects_bad_email(self) -> None:
        with pytest.raises(ValidationError):
            StoreBalanceRequest.model_validate(
                {"userEmail": "not-an-email", "amount": 5, "ticketId": "T1"}
            )

    def test_requires_ticket_id(self) -> None:
        with pytest.raises(ValidationError):
            StoreBalanceRequest.model_validate({"userEmail": "a@x.com", "amount": 5})


class TestCreateListingRequest:
    @pytest.mark.parametrize("price_key", ["priceRupees", "priceSecondary", "price_secondary"])
    def test_price_aliases(self, price_key: str) -> None:
        req = CreateListingRequest.model_validate({
            "sellerEmail": "a@x.com", "sellerWallet": "0xAAA",
            "amountTokens": 20, price_key: 15,
        })
        assert req.price_secondary == 15

    def test_signature_optional_at_schema_level(self) -> None:
        req = CreateListingRequest.model_validate({
            "sellerEmail": "a@x.com", "sellerWallet": "0xAAA",
            "amountTokens": 20, "priceRupees": 15,
        })
        assert req.signature is None

    def test_wallet_required(self) -> None:
        with pytest.raises(ValidationError):
            CreateListingRequest.model_validate(
                {"sellerEmail": "a@x.com", "amountTokens": 20, "priceRupees": 15}
            )


class TestBuyListingRequest:
    def test_parses_wire_names(self) -> None:
        req = BuyListingRequest.model_validate({
            "listingId": "L1", "buyerEmail": "b@x.com", "buyerWallet": "0xBBB",
            "signature": "0xsig",
        })
        assert req.listing_id == "L1"
        assert req.buyer_user_id is None


class TestResponses:
    def test_snapshot_response_dumps_camel_case(self) -> None:
        body = SnapshotResponse.from_domain(default_snapshot("a@x.com")).model_dump(by_alias=True)
        assert body["accountKey"] == "a@x.com"
        assert body["tokenBalance"] == 0
        assert body["secondaryBalance"] == 100
        assert body["transactions"] == []
        assert body["degraded"] is False

    def test_listing_out_status_is_string(self) -> None:
        listing = Listing(
            id="L1", seller_account_key="a@x.com", seller_wallet="0xAAA",
            amount_tokens=20, price_secondary=20, status=ListingStatus.ACTIVE,
            created_at="t", updated_at="t",
        )
        body = ListingOut.from_domain(listing).model_dump(by_alias=True)
        assert body["status"] == "active"
        assert body["priceSecondary"] == 20
        assert body["sellerAccountKey"] == "a@x.com"
