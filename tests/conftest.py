"""
Pytest configuration and fixtures for the POS sync service tests.

The database is a throwaway SQLite file configured before any application
module is imported, so request handlers, background tasks and tests all
share it. Provider APIs are faked with httpx.MockTransport.
"""
import json
import os
import pathlib
import sys
import tempfile
from urllib.parse import parse_qs

import httpx
import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

_TEST_DB_DIR = tempfile.mkdtemp(prefix="pos-sync-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR}/test.db"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["SQUARE_APPLICATION_ID"] = "sq-app-id"
os.environ["SQUARE_APPLICATION_SECRET"] = "sq-app-secret"
os.environ["SQUARE_ENVIRONMENT"] = "production"
os.environ["CLOVER_APP_ID"] = "clover-app-id"
os.environ["CLOVER_APP_SECRET"] = "clover-app-secret"
os.environ["CLOVER_ENVIRONMENT"] = "production"
os.environ["LIGHTSPEED_CLIENT_ID"] = "ls-client-id"
os.environ["LIGHTSPEED_CLIENT_SECRET"] = "ls-client-secret"

OWNER_ID = "user-1"
MERCHANT_ID = "merchant-1"

SQUARE_TOKEN_URL = "https://connect.squareup.com/oauth2/token"
SQUARE_CATALOG_URL = "https://connect.squareup.com/v2/catalog/objects"
CLOVER_TOKEN_URL = "https://www.clover.com/oauth/token"
CLOVER_API_URL = "https://api.clover.com/v3"
LIGHTSPEED_TOKEN_URL = "https://cloud.lightspeedapp.com/oauth/access_token.php"
LIGHTSPEED_API_URL = "https://api.lightspeedapp.com/API"


class FakeProvider:
    """Canned responses for provider endpoints, keyed by method and URL without query"""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, url, status_code=200, json=None, text=None, handler=None, error=None):
        self.routes[(method, url)] = {
            "status_code": status_code,
            "json": json,
            "text": text,
            "handler": handler,
            "error": error
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, f"{request.url.scheme}://{request.url.host}{request.url.path}")
        route = self.routes.get(key)
        if route is None:
            return httpx.Response(404, json={"error": f"no fake for {key}"})
        if route["error"] is not None:
            raise route["error"]
        if route["handler"] is not None:
            return route["handler"](request)
        if route["text"] is not None:
            return httpx.Response(route["status_code"], text=route["text"])
        return httpx.Response(route["status_code"], json=route["json"])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def requests_to(self, url):
        return [r for r in self.requests if str(r.url).split("?")[0] == url]


def json_body(request: httpx.Request) -> dict:
    return json.loads(request.content)


def form_body(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture(autouse=True)
def reset_db():
    """Fresh tables for every test"""
    from database import Base, engine
    import db_models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    from database import SessionLocal

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def merchant(db):
    from db_models import Merchant

    merchant = Merchant(
        id=MERCHANT_ID,
        user_id=OWNER_ID,
        business_name="Corner Cafe",
        email="owner@cornercafe.test",
        is_approved=True
    )
    db.add(merchant)
    db.commit()
    db.refresh(merchant)
    return merchant


def make_promo_codes(db, merchant_id, codes, reward_id="reward-1"):
    from db_models import PromoCode

    promo_codes = [
        PromoCode(id=f"promo-{code}", code=code, merchant_id=merchant_id, reward_id=reward_id)
        for code in codes
    ]
    db.add_all(promo_codes)
    db.commit()
    return promo_codes


@pytest.fixture
def promo_codes(db, merchant):
    return make_promo_codes(db, merchant.id, ["SAVE5-001", "SAVE5-002", "SAVE5-003"])


def connect_merchant(db, merchant, pos_system, access_token="tok1", pos_merchant_id="PM1", refresh_token=None):
    from datetime import datetime

    merchant.pos_system = pos_system
    merchant.pos_access_token = access_token
    merchant.pos_refresh_token = refresh_token
    merchant.pos_merchant_id = pos_merchant_id
    merchant.pos_connected_at = datetime.utcnow()
    db.commit()
    db.refresh(merchant)
    return merchant


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def auth_headers():
    from auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(OWNER_ID)}"}


@pytest.fixture
def client(fake_provider):
    from fastapi.testclient import TestClient
    from main import app
    from routers.pos import get_pos_transport

    app.dependency_overrides[get_pos_transport] = lambda: fake_provider.transport
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
