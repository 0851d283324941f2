# api/main.py
from fastapi import FastAPI, Query, HTTPException, Request, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional
import os
from dotenv import load_dotenv
from .rate_limit import register_rate_limit, limiter
from catalog.models import RateRequest
from catalog.store import get_store
from shipping.carriers import EasyPostClient
from shipping.estimator import estimate_rates
from orders.dropship import Order, forward_order
from scheduler.scheduler import build_scheduler, CATALOG_REFRESH_MINUTES
from contextlib import asynccontextmanager
import logging

load_dotenv()
API_PORT = int(os.getenv("API_PORT", "8000"))
PRICE_MARKUP_CENTS = int(os.getenv("PRICE_MARKUP_CENTS", "5000"))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Background cache refresh; CATALOG_REFRESH_MINUTES=0 disables it.
    scheduler = None
    if CATALOG_REFRESH_MINUTES > 0:
        scheduler = build_scheduler()
        scheduler.start()
    yield
    if scheduler is not None:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Auto Parts Storefront API", version="1.0", lifespan=lifespan)

register_rate_limit(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

logger = logging.getLogger("api")
logger.setLevel(logging.INFO)


def get_live_rates():
    """Live carrier adapter; without an EASYPOST_API_KEY it reports unconfigured."""
    return EasyPostClient()


def part_to_resp(part):
    """
    Serialize a Part for API responses.

    Adds the two derived fields the storefront needs:
        - price_cents: base_price_cents plus the flat PRICE_MARKUP_CENTS
        - purchasable: False when the part is out of stock
    """
    data = part.model_dump()
    data["price_cents"] = part.base_price_cents + PRICE_MARKUP_CENTS
    data["purchasable"] = part.purchasable
    return data


class ImageUpdate(BaseModel):
    image_url: str


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/api/products")
@limiter.limit("100/hour")
async def list_products(
    request: Request,
    make: Optional[str] = Query(None),
    model: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
    q: Optional[str] = Query(None),
    oem: Optional[str] = Query(None, pattern="^(oem|aftermarket)$"),
    category: Optional[str] = Query(None),
    sort: str = Query("relevance"),
    page: int = Query(1, ge=1),
    page_size: int = Query(60, ge=1, le=120),
):
    """
    List catalog parts with vehicle filters, search, sorting and pagination.

    Args:
        request (Request): FastAPI request object (required for rate limiting)
        make, model, category (str, optional): Exact match filters
        year (int, optional): Fitment year
        q (str, optional): Search text matched against name and part type
        oem (str, optional): "oem" or "aftermarket"
        sort (str): relevance, price_asc, price_desc, year_desc or year_asc
        page (int): Page number, must be >= 1. Defaults to 1
        page_size (int): Items per page, 1-120. Defaults to 60

    Returns:
        dict: {"total", "page", "page_size", "items"}

    Rate Limit:
        100 requests per hour per client
    """
    store = get_store()
    result = await store.list_products(
        make=make,
        model=model,
        year=year,
        q=q,
        oem=oem,
        category=category,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    result["items"] = [part_to_resp(p) for p in result["items"]]
    return result


@app.get("/api/products/{part_id}")
@limiter.limit("100/hour")
async def get_product(request: Request, part_id: str):
    store = get_store()
    part = await store.get_product(part_id)
    if part is None:
        raise HTTPException(status_code=404, detail="Part not found")
    return part_to_resp(part)


@app.post("/api/products/{part_id}/image")
@limiter.limit("30/minute")
async def update_product_image(request: Request, part_id: str, body: ImageUpdate):
    """Attach an image URL to a part (image enrichment). 404 for unknown ids."""
    store = get_store()
    part = await store.update_product_image(part_id, body.image_url)
    if part is None:
        raise HTTPException(status_code=404, detail="Part not found")
    logger.info(f"Image updated for part {part_id}")
    return part_to_resp(part)


@app.get("/api/makes")
@limiter.limit("100/hour")
async def list_makes(request: Request):
    facets = await get_store().facets()
    return facets["makes"]


@app.get("/api/models")
@limiter.limit("100/hour")
async def list_models(request: Request, make: str = Query("")):
    facets = await get_store().facets()
    return facets["models"].get(make, [])


@app.get("/api/years")
@limiter.limit("100/hour")
async def list_years(request: Request):
    facets = await get_store().facets()
    return facets["years"]


@app.post("/api/shipping/rates")
@limiter.limit("30/minute")
async def shipping_rates(request: Request, body: RateRequest):
    """
    Quote shipping for a cart and destination.

    Request body:
        {"address": {...}, "cart": [{"id", "qty"}], "subtotal_cents": int}

    Returns:
        dict: {"quotes": [{"carrier", "service", "days", "amount_cents"}],
            "computed": {"billable_lb", "dims", "weight_lb"}}

    Note:
        Always answers with quotes. Unknown cart ids are ignored, and a
        failing live carrier falls back to the heuristic estimate.
    """
    store = get_store()
    result = await estimate_rates(
        body.cart,
        body.address,
        body.subtotal_cents,
        store.get_product,
        live=get_live_rates(),
    )
    result["quotes"] = [q.model_dump() for q in result["quotes"]]
    return result


@app.post("/api/orders", status_code=201)
@limiter.limit("30/minute")
async def create_order(request: Request, order: Order, background_tasks: BackgroundTasks):
    """Accept an order and forward it to the dropship webhook in the background."""
    store = get_store()
    background_tasks.add_task(forward_order, order, store.get_product)
    logger.info(f"Order {order.id} accepted with {len(order.items)} line(s)")
    return {"ok": True, "order_id": order.id}


# Run uvicorn externally or here
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=API_PORT, reload=True)
