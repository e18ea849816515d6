"""Tests for connecting and disconnecting a merchant's POS provider."""
import pytest
from sqlalchemy.exc import OperationalError

from conftest import (
    CLOVER_API_URL,
    CLOVER_TOKEN_URL,
    LIGHTSPEED_API_URL,
    LIGHTSPEED_TOKEN_URL,
    OWNER_ID,
    SQUARE_TOKEN_URL,
    connect_merchant,
)
from db_models import Merchant
from services.pos import (
    ConnectionManager,
    MerchantNotFound,
    PersistenceError,
    ProviderAuthError,
    UnsupportedProvider,
)

POS_FIELDS = ("pos_system", "pos_access_token", "pos_refresh_token", "pos_merchant_id", "pos_connected_at")


def pos_fields(db, merchant_id):
    db.expire_all()
    merchant = db.query(Merchant).filter(Merchant.id == merchant_id).one()
    return {field: getattr(merchant, field) for field in POS_FIELDS}


def fake_successful_exchange(fake_provider, provider):
    if provider == "square":
        fake_provider.add("POST", SQUARE_TOKEN_URL, json={
            "access_token": "tok1", "refresh_token": "ref1", "merchant_id": "SQ1"
        })
    elif provider == "clover":
        fake_provider.add("POST", CLOVER_TOKEN_URL, json={"access_token": "ctok", "merchant_id": "CL1"})
        fake_provider.add("GET", f"{CLOVER_API_URL}/merchants/CL1", json={"name": "Corner Cafe"})
    else:
        fake_provider.add("POST", LIGHTSPEED_TOKEN_URL, json={"access_token": "ltok", "refresh_token": "lref"})
        fake_provider.add("GET", f"{LIGHTSPEED_API_URL}/Account.json", json={
            "Account": {"accountID": "84321", "name": "Corner Cafe Retail"}
        })


TOKEN_URLS = {
    "square": SQUARE_TOKEN_URL,
    "clover": CLOVER_TOKEN_URL,
    "lightspeed": LIGHTSPEED_TOKEN_URL,
}


class TestConnect:

    @pytest.mark.asyncio
    async def test_square_connect_populates_merchant(self, db, merchant, fake_provider):
        fake_provider.add("POST", SQUARE_TOKEN_URL, json={"access_token": "tok1", "merchant_id": "SQ1"})
        manager = ConnectionManager(db, transport=fake_provider.transport)

        result = await manager.connect("square", "AUTH123", merchant.id, OWNER_ID)

        assert result.success is True
        assert result.provider == "square"
        assert result.provider_merchant_id == "SQ1"
        fields = pos_fields(db, merchant.id)
        assert fields["pos_system"] == "square"
        assert fields["pos_access_token"] == "tok1"
        assert fields["pos_merchant_id"] == "SQ1"
        assert fields["pos_refresh_token"] is None
        assert fields["pos_connected_at"] is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("provider, expected", [
        ("square", ("tok1", "ref1", "SQ1", None)),
        ("clover", ("ctok", None, "CL1", "Corner Cafe")),
        ("lightspeed", ("ltok", "lref", "84321", "Corner Cafe Retail")),
    ])
    async def test_each_provider_stores_its_credential(self, db, merchant, fake_provider, provider, expected):
        fake_successful_exchange(fake_provider, provider)
        manager = ConnectionManager(db, transport=fake_provider.transport)

        result = await manager.connect(provider, "AUTH123", merchant.id, OWNER_ID)

        access_token, refresh_token, provider_merchant_id, provider_merchant_name = expected
        assert result.provider_merchant_name == provider_merchant_name
        fields = pos_fields(db, merchant.id)
        assert fields["pos_system"] == provider
        assert fields["pos_access_token"] == access_token
        assert fields["pos_refresh_token"] == refresh_token
        assert fields["pos_merchant_id"] == provider_merchant_id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("provider", ["square", "clover", "lightspeed"])
    async def test_exchange_failure_writes_nothing(self, db, merchant, fake_provider, provider):
        fake_provider.add("POST", TOKEN_URLS[provider], status_code=400, json={"error": "invalid_grant"})
        manager = ConnectionManager(db, transport=fake_provider.transport)

        with pytest.raises(ProviderAuthError):
            await manager.connect(provider, "BAD", merchant.id, OWNER_ID)

        assert pos_fields(db, merchant.id) == {field: None for field in POS_FIELDS}

    @pytest.mark.asyncio
    async def test_exchange_failure_keeps_existing_connection(self, db, merchant, fake_provider):
        connect_merchant(db, merchant, "clover", access_token="old", pos_merchant_id="CL0")
        before = pos_fields(db, merchant.id)
        fake_provider.add("POST", SQUARE_TOKEN_URL, status_code=401, json={})

        with pytest.raises(ProviderAuthError):
            await ConnectionManager(db, transport=fake_provider.transport).connect(
                "square", "BAD", merchant.id, OWNER_ID
            )

        assert pos_fields(db, merchant.id) == before

    @pytest.mark.asyncio
    async def test_switching_provider_replaces_every_field(self, db, merchant, fake_provider):
        connect_merchant(db, merchant, "square", access_token="tok1", pos_merchant_id="SQ1", refresh_token="ref1")
        fake_successful_exchange(fake_provider, "clover")

        await ConnectionManager(db, transport=fake_provider.transport).connect(
            "clover", "AUTH123", merchant.id, OWNER_ID
        )

        fields = pos_fields(db, merchant.id)
        assert fields["pos_system"] == "clover"
        assert fields["pos_refresh_token"] is None
        assert fields["pos_merchant_id"] == "CL1"

    @pytest.mark.asyncio
    async def test_unsupported_provider_makes_no_calls(self, db, merchant, fake_provider):
        with pytest.raises(UnsupportedProvider):
            await ConnectionManager(db, transport=fake_provider.transport).connect(
                "toast", "AUTH123", merchant.id, OWNER_ID
            )

        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_merchant_owned_by_someone_else(self, db, merchant, fake_provider):
        fake_successful_exchange(fake_provider, "square")

        with pytest.raises(MerchantNotFound):
            await ConnectionManager(db, transport=fake_provider.transport).connect(
                "square", "AUTH123", merchant.id, "intruder"
            )

        assert fake_provider.requests == []
        assert pos_fields(db, merchant.id)["pos_system"] is None

    @pytest.mark.asyncio
    async def test_persistence_failure_raises(self, db, merchant, fake_provider, monkeypatch):
        fake_successful_exchange(fake_provider, "square")

        def broken_commit(session):
            session.rollback()
            raise OperationalError("UPDATE merchants", {}, Exception("database is locked"))

        monkeypatch.setattr("services.pos.connection.safe_commit", broken_commit)

        with pytest.raises(PersistenceError) as exc_info:
            await ConnectionManager(db, transport=fake_provider.transport).connect(
                "square", "AUTH123", merchant.id, OWNER_ID
            )

        assert exc_info.value.status_code == 500
        assert pos_fields(db, merchant.id)["pos_system"] is None


class TestDisconnect:

    def test_clears_every_linkage_field(self, db, merchant):
        connect_merchant(db, merchant, "lightspeed", access_token="ltok", pos_merchant_id="84321", refresh_token="lref")

        ConnectionManager(db).disconnect(merchant.id, OWNER_ID)

        assert pos_fields(db, merchant.id) == {field: None for field in POS_FIELDS}

    def test_disconnect_twice_is_a_no_op(self, db, merchant):
        connect_merchant(db, merchant, "square")
        manager = ConnectionManager(db)

        manager.disconnect(merchant.id, OWNER_ID)
        manager.disconnect(merchant.id, OWNER_ID)

        assert pos_fields(db, merchant.id) == {field: None for field in POS_FIELDS}

    def test_disconnect_requires_ownership(self, db, merchant):
        connect_merchant(db, merchant, "square")

        with pytest.raises(MerchantNotFound):
            ConnectionManager(db).disconnect(merchant.id, "intruder")

        assert pos_fields(db, merchant.id)["pos_system"] == "square"

    def test_disconnected_merchant_reports_not_connected(self, db, merchant):
        connect_merchant(db, merchant, "square")
        assert merchant.is_pos_connected is True

        ConnectionManager(db).disconnect(merchant.id, OWNER_ID)
        db.refresh(merchant)

        assert merchant.is_pos_connected is False
