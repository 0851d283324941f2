# tests/test_api.py
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_list_products_no_filters(client: AsyncClient):
    """
    Listing without filters returns every part with derived price fields.

    Asserts:
        - total and items cover all three sample parts
        - price_cents adds the flat $50 markup to base_price_cents
        - the out-of-stock part is listed but not purchasable
    """
    r = await client.get("/api/products")
    assert r.status_code == 200
    data = r.json()
    assert data["total"] == 3
    assert data["page"] == 1
    by_id = {p["id"]: p for p in data["items"]}
    assert by_id["bumper-1"]["price_cents"] == 18900 + 5000
    assert by_id["pads-1"]["purchasable"] is False
    assert by_id["alt-1"]["purchasable"] is True


@pytest.mark.asyncio
async def test_list_products_vehicle_filters(client: AsyncClient):
    r = await client.get("/api/products?make=Toyota&year=2020")
    data = r.json()
    assert data["total"] == 1
    assert data["items"][0]["name"] == "Front Bumper Cover"


@pytest.mark.asyncio
async def test_list_products_sort_and_pagination(client: AsyncClient):
    r = await client.get("/api/products?sort=price_desc&page=1&page_size=2")
    data = r.json()
    assert [p["id"] for p in data["items"]] == ["alt-1", "bumper-1"]
    assert data["page_size"] == 2


@pytest.mark.asyncio
async def test_list_products_validation(client: AsyncClient):
    assert (await client.get("/api/products?page=notint")).status_code == 422
    assert (await client.get("/api/products?oem=maybe")).status_code == 422
    assert (await client.get("/api/products?page_size=500")).status_code == 422


@pytest.mark.asyncio
async def test_get_product_found_and_missing(client: AsyncClient):
    r = await client.get("/api/products/alt-1")
    assert r.status_code == 200
    assert r.json()["make"] == "Honda"
    assert (await client.get("/api/products/nonexistent")).status_code == 404


@pytest.mark.asyncio
async def test_facet_endpoints(client: AsyncClient):
    assert (await client.get("/api/makes")).json() == ["Honda", "Toyota"]
    assert (await client.get("/api/models?make=Toyota")).json() == ["Camry", "Corolla"]
    assert (await client.get("/api/models?make=Saab")).json() == []
    assert (await client.get("/api/years")).json() == [2020, 2019, 2018]


@pytest.mark.asyncio
async def test_update_product_image(monkeypatch, client: AsyncClient, fake_db_factory):
    monkeypatch.setattr("catalog.db.get_db", lambda: fake_db_factory())
    r = await client.post("/api/products/pads-1/image", json={"image_url": "https://img.example/pads.jpg"})
    assert r.status_code == 200
    assert r.json()["image_url"] == "https://img.example/pads.jpg"

    r = await client.get("/api/products/pads-1")
    assert r.json()["image_url"] == "https://img.example/pads.jpg"

    r = await client.post("/api/products/ghost/image", json={"image_url": "x"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_shipping_rates_endpoint(client: AsyncClient):
    """
    POST /api/shipping/rates answers from the heuristic when no live carrier
    is configured, cheapest first, with the computed parcel block.
    """
    body = {
        "address": {"line1": "1 Main St", "city": "Madison", "state": "WI", "postal_code": "53703", "residential": True},
        "cart": [{"id": "pads-1", "qty": 1}, {"id": "unknown", "qty": 4}],
        "subtotal_cents": 5000,
    }
    r = await client.post("/api/shipping/rates", json=body)
    assert r.status_code == 200
    data = r.json()
    amounts = [q["amount_cents"] for q in data["quotes"]]
    assert amounts == sorted(amounts)
    assert data["quotes"][0] == {"carrier": "FedEx", "service": "Ground", "days": 3, "amount_cents": 1730}
    assert data["computed"] == {"billable_lb": 2.3, "dims": [10.0, 8.0, 4.0], "weight_lb": 2.0}


@pytest.mark.asyncio
async def test_shipping_rates_defaults_for_empty_body(client: AsyncClient):
    r = await client.post("/api/shipping/rates", json={})
    assert r.status_code == 200
    assert len(r.json()["quotes"]) == 5


@pytest.mark.asyncio
async def test_shipping_rates_non_string_country(client: AsyncClient):
    """A numeric country is coerced to text rather than crashing the handler."""
    r = await client.post("/api/shipping/rates", json={"address": {"country": 12}, "cart": []})
    assert r.status_code == 200
    carriers = {q["carrier"] for q in r.json()["quotes"]}
    assert carriers == {"DHL", "UPS", "FedEx"}


@pytest.mark.asyncio
async def test_shipping_rates_overflowing_qty(client: AsyncClient):
    """qty 1e400 parses as infinity and falls back to a quantity of 1."""
    r = await client.post(
        "/api/shipping/rates",
        content='{"cart": [{"id": "pads-1", "qty": 1e400}], "subtotal_cents": 5000}',
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 200
    assert r.json()["computed"]["weight_lb"] == 2.0


@pytest.mark.asyncio
async def test_create_order_overflowing_qty(monkeypatch, client: AsyncClient):
    async def fake_forward(order, lookup):
        assert order.items[0].qty == 1

    monkeypatch.setattr("api.main.forward_order", fake_forward)
    r = await client.post(
        "/api/orders",
        content='{"items": [{"id": "alt-1", "qty": 1e400}]}',
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_shipping_rates_live_failure_falls_back(monkeypatch, client: AsyncClient, fake_live):
    live = fake_live(error=ConnectionError("easypost down"))
    monkeypatch.setattr("api.main.get_live_rates", lambda: live)
    body = {
        "address": {"line1": "9 Rue", "city": "Tokyo", "state": "13", "postal_code": "100-0001", "country": "jp"},
        "cart": [{"id": "alt-1", "qty": 1}],
        "subtotal_cents": 19999,
    }
    r = await client.post("/api/shipping/rates", json=body)
    assert r.status_code == 200
    assert live.calls == 1
    assert [q["carrier"] for q in r.json()["quotes"]][0] == "DHL"


@pytest.mark.asyncio
async def test_create_order_accepts_and_forwards(monkeypatch, client: AsyncClient):
    forwarded = []

    async def fake_forward(order, lookup):
        forwarded.append(order.id)

    monkeypatch.setattr("api.main.forward_order", fake_forward)
    r = await client.post(
        "/api/orders",
        json={"items": [{"id": "alt-1", "name": "Alternator", "qty": 1, "unit_price_cents": 24999}]},
    )
    assert r.status_code == 201
    data = r.json()
    assert data["ok"] is True
    assert forwarded == [data["order_id"]]


@pytest.mark.asyncio
async def test_rate_limit_hit(client: AsyncClient):
    """The image endpoint allows 30 requests per minute per client."""
    last_status = None
    for _ in range(31):
        r = await client.post("/api/products/ghost/image", json={"image_url": "x"})
        last_status = r.status_code
        if last_status == 429:
            break
    assert last_status == 429
