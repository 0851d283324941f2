# tests/conftest.py
import sys
import os

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT_DIR)

from bson import ObjectId
import pytest
from typing import List, Dict, Any
from httpx import ASGITransport, AsyncClient

from api.main import app
from api.rate_limit import limiter
from catalog.models import Part, ShippingQuote
from catalog.store import CatalogStore


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]):
        self._docs = list(docs)

    async def to_list(self, length=None):
        """
        Return copies of the matched documents, like Motor's to_list().

        Args:
            length (int or None): Maximum number of documents; None means all.
        """
        docs = self._docs if length is None else self._docs[:length]
        return [dict(d) for d in docs]


class FakeCollection:
    def __init__(self, docs=None):
        self.docs = list(docs or [])
        for d in self.docs:
            if "_id" not in d:
                d["_id"] = str(ObjectId())

    def _matches(self, d, q):
        return all(d.get(k) == v for k, v in (q or {}).items())

    def find(self, q=None):
        """Exact-match find over the in-memory documents."""
        return FakeCursor([d for d in self.docs if self._matches(d, q)])

    async def update_one(self, q, u, upsert=False):
        """
        Apply a $set update to the first matching document.

        With upsert=True a missing document is created from the query
        fields plus the $set fields, mirroring MongoDB's upsert.
        """
        for d in self.docs:
            if self._matches(d, q):
                d.update(u.get("$set", {}))
                return {"matched_count": 1}
        if upsert:
            doc = dict(q)
            doc.update(u.get("$set", {}))
            self.docs.append(doc)
        return {"matched_count": 0}


class FakeDB:
    def __init__(self, parts=None, images=None):
        self.parts = FakeCollection(parts or [])
        self.part_images = FakeCollection(images or [])


class BrokenDB:
    """A database whose every read fails, like an unreachable server."""

    class _Parts:
        def find(self, q=None):
            raise ConnectionError("mongo down")

        async def update_one(self, *args, **kwargs):
            raise ConnectionError("mongo down")

    def __init__(self):
        self.parts = self._Parts()
        self.part_images = self._Parts()


class FakeLiveRates:
    """Stand-in for the EasyPost adapter."""

    def __init__(self, quotes=None, error=None, configured=True):
        self.quotes = quotes or []
        self.error = error
        self.configured = configured
        self.calls = 0

    def is_configured(self):
        return self.configured

    async def rates(self, address, parcel):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.quotes)


@pytest.fixture
def sample_parts():
    """
    Three catalog parts covering both categories, OEM and aftermarket, and
    an out-of-stock item.

        - bumper-1 "Front Bumper Cover": Toyota Camry 2020, body, $189, OEM
        - alt-1 "Alternator": Honda Civic 2019, mechanical, $199.99, aftermarket
        - pads-1 "Brake Pads": Toyota Corolla 2018, mechanical, $49, OEM, stock 0
    """
    return [
        Part(
            id="bumper-1",
            name="Front Bumper Cover",
            base_price_cents=18900,
            year=2020,
            make="Toyota",
            model="Camry",
            part_type="Bumper",
            category="body",
            weight_lb=30,
            dim_l_in=65,
            dim_w_in=12,
            dim_h_in=12,
            oem=True,
            stock=4,
        ),
        Part(
            id="alt-1",
            name="Alternator",
            base_price_cents=19999,
            year=2019,
            make="Honda",
            model="Civic",
            part_type="Alternator",
            category="mechanical",
            weight_lb=14,
            dim_l_in=10,
            dim_w_in=8,
            dim_h_in=8,
            oem=False,
            stock=2,
        ),
        Part(
            id="pads-1",
            name="Brake Pads",
            base_price_cents=4900,
            year=2018,
            make="Toyota",
            model="Corolla",
            part_type="Brake Pads",
            category="mechanical",
            weight_lb=2,
            dim_l_in=10,
            dim_w_in=8,
            dim_h_in=4,
            oem=True,
            stock=0,
        ),
    ]


@pytest.fixture
def store(sample_parts):
    """CatalogStore whose loader returns copies of sample_parts."""

    async def loader():
        return [p.model_copy() for p in sample_parts]

    return CatalogStore(loader=loader, ttl=300)


@pytest.fixture
def live_rates():
    """Unconfigured live adapter: the API answers from the heuristic."""
    return FakeLiveRates(configured=False)


@pytest.fixture
async def client(monkeypatch, store, live_rates):
    """
    Async test client with the catalog store and live carrier replaced.

    Setup:
        - Patches get_store to return the store fixture
        - Patches get_live_rates to return the live_rates fixture
        - Resets the rate limiter so limits do not leak between tests

    Note:
        Uses ASGITransport, so the app lifespan (and its scheduler) never starts.
    """
    monkeypatch.setattr("api.main.get_store", lambda: store)
    monkeypatch.setattr("api.main.get_live_rates", lambda: live_rates)
    limiter.reset()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.reset()


@pytest.fixture
def fake_live():
    """The FakeLiveRates class, for tests that build their own live adapter."""
    return FakeLiveRates


@pytest.fixture
def make_quote():
    def make(carrier, service, cents, days=None):
        return ShippingQuote(carrier=carrier, service=service, days=days, amount_cents=cents)

    return make


@pytest.fixture
def fake_db_factory():
    """Build FakeDB / BrokenDB instances for monkeypatching catalog.db.get_db."""

    def make(parts=None, broken=False, images=None):
        return BrokenDB() if broken else FakeDB(parts, images)

    return make
