# orders/dropship.py
import os
import uuid
import logging
from typing import Any, Dict, List, Optional
from httpx import AsyncClient
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv
from catalog.utils import network_retry

load_dotenv()
DROPSHIP_WEBHOOK_URL = os.getenv("DROPSHIP_WEBHOOK_URL", "")
DROPSHIP_API_KEY = os.getenv("DROPSHIP_API_KEY", "")
DROPSHIP_RETRIES = int(os.getenv("DROPSHIP_RETRIES", "3"))
DROPSHIP_TIMEOUT = float(os.getenv("DROPSHIP_TIMEOUT", "15"))

logger = logging.getLogger("orders")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
logger.addHandler(handler)


class OrderLine(BaseModel):
    id: str
    name: str = ""
    qty: int = 1
    unit_price_cents: int = 0

    @field_validator("qty", mode="before")
    @classmethod
    def coerce_qty(cls, v):
        try:
            return max(1, int(v))
        except (TypeError, ValueError, OverflowError):
            return 1


class Customer(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[Dict[str, Any]] = None


class Order(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    amount_cents: int = 0
    currency: str = "usd"
    customer: Customer = Field(default_factory=Customer)
    items: List[OrderLine] = Field(default_factory=list)


async def build_purchase_orders(order: Order, lookup) -> List[Dict]:
    """
    Build one purchase order per order line.

    Args:
        order (Order): The accepted order
        lookup (Callable): async id -> Part or None

    Returns:
        list[dict]: Purchase orders with keys line_item, supplier,
            suggested_cost and ship_to. Lines whose product is still in the
            catalog use the catalog name and id as the SKU.
    """
    pos = []
    for line in order.items:
        part = await lookup(line.id)
        pos.append(
            {
                "line_item": {
                    "sku": part.id if part else line.id,
                    "name": line.name or (part.name if part else ""),
                    "qty": line.qty,
                    "unit_price_cents": line.unit_price_cents,
                },
                "supplier": {"name": "Unknown", "url": None},
                "suggested_cost": part.base_price_cents if part else None,
                "ship_to": order.customer.address,
            }
        )
    return pos


def build_payload(order: Order, purchase_orders):
    return {
        "order_id": order.id,
        "amount_cents": order.amount_cents,
        "currency": order.currency,
        "customer": order.customer.model_dump(),
        "purchase_orders": purchase_orders,
    }


async def post_webhook(payload, url, api_key="", attempts=DROPSHIP_RETRIES):
    """POST the payload, retrying transient failures. Returns the response text."""
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    @network_retry(attempts=attempts)
    async def deliver():
        async with AsyncClient(timeout=DROPSHIP_TIMEOUT) as client:
            resp = await client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
            return resp.text

    return await deliver()


async def forward_order(order: Order, lookup, url=None, api_key=None):
    """
    Forward an order to the dropship webhook as purchase orders.

    Best effort: skipped when no webhook is configured, and delivery errors
    are logged rather than raised.

    Returns:
        dict or None: The payload that was delivered, None if skipped or failed
    """
    url = DROPSHIP_WEBHOOK_URL if url is None else url
    api_key = DROPSHIP_API_KEY if api_key is None else api_key
    if not url:
        logger.info(f"[dropship] Skipped order {order.id} (no DROPSHIP_WEBHOOK_URL)")
        return None
    payload = build_payload(order, await build_purchase_orders(order, lookup))
    try:
        text = await post_webhook(payload, url, api_key)
    except Exception as e:
        logger.error(f"[dropship] Webhook error for order {order.id}: {e}")
        return None
    logger.info(f"[dropship] Webhook response for {order.id}: {text[:200]}")
    return payload
