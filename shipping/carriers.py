# shipping/carriers.py
import os
import logging
from httpx import AsyncClient
from dotenv import load_dotenv
from catalog.models import Address, Parcel, ShippingQuote
from catalog.utils import round_half_up, to_float, to_int

load_dotenv()
EASYPOST_API_KEY = os.getenv("EASYPOST_API_KEY", "")
EASYPOST_URL = os.getenv("EASYPOST_URL", "https://api.easypost.com/v2/shipments")
CARRIER_TIMEOUT = float(os.getenv("CARRIER_TIMEOUT", "10"))

SHIP_FROM = {
    "name": os.getenv("SHIP_FROM_NAME", "Ohio Auto Parts"),
    "street1": os.getenv("SHIP_FROM_STREET1", "123 Warehouse Rd"),
    "city": os.getenv("SHIP_FROM_CITY", "Columbus"),
    "state": os.getenv("SHIP_FROM_STATE", "OH"),
    "zip": os.getenv("SHIP_FROM_ZIP", "43004"),
    "country": os.getenv("SHIP_FROM_COUNTRY", "US"),
    "phone": os.getenv("SHIP_FROM_PHONE", "5555555555"),
    "email": os.getenv("SHIP_FROM_EMAIL", "support@example.com"),
}

ALLOWED_CARRIERS = ("UPS", "FedEx", "DHLExpress", "USPS", "DHL eCommerce")
CARRIER_NAMES = {"DHLExpress": "DHL"}
MAX_QUOTES = 6

logger = logging.getLogger("shipping")


class CarrierError(Exception):
    """The live rating service could not produce quotes."""


def ounces(weight_lb):
    return max(1, round_half_up(weight_lb * 16))


def build_shipment(address: Address, parcel: Parcel, ship_from=None):
    """Build the EasyPost shipment payload for a rate request."""
    return {
        "shipment": {
            "to_address": {
                "name": address.name or "Customer",
                "street1": address.line1,
                "street2": address.line2,
                "city": address.city,
                "state": address.state,
                "zip": address.postal_code,
                "country": address.country,
                "phone": address.phone or "0000000000",
                "email": address.email or "customer@example.com",
                "residential": address.residential,
            },
            "from_address": dict(ship_from or SHIP_FROM),
            "parcel": {
                "length": max(1, round_half_up(parcel.length_in)),
                "width": max(1, round_half_up(parcel.width_in)),
                "height": max(1, round_half_up(parcel.height_in)),
                "weight": ounces(parcel.weight_lb),
            },
        }
    }


def parse_rates(body):
    """
    Turn an EasyPost shipment response into sorted quotes.

    Rates from carriers outside the allow-list, and rates without a usable
    price, are dropped. At most six quotes are returned, cheapest first.

    Raises:
        CarrierError: If the body is not a shipment object
    """
    if not isinstance(body, dict):
        raise CarrierError("Malformed rate response")
    quotes = []
    for r in body.get("rates") or []:
        if not isinstance(r, dict) or r.get("carrier") not in ALLOWED_CARRIERS:
            continue
        price = to_float(r.get("rate"))
        if price is None or price <= 0:
            continue
        quotes.append(
            ShippingQuote(
                carrier=CARRIER_NAMES.get(r["carrier"], r["carrier"]),
                service=str(r.get("service") or ""),
                days=to_int(r.get("delivery_days")),
                amount_cents=max(1, round_half_up(price * 100)),
            )
        )
    quotes.sort(key=lambda q: q.amount_cents)
    return quotes[:MAX_QUOTES]


class EasyPostClient:
    def __init__(self, api_key=None, url=EASYPOST_URL, timeout=CARRIER_TIMEOUT):
        self.api_key = EASYPOST_API_KEY if api_key is None else api_key
        self.url = url
        self.timeout = timeout

    def is_configured(self):
        return bool(self.api_key)

    async def rates(self, address: Address, parcel: Parcel):
        """
        Request live rates. Single attempt.

        Raises:
            CarrierError: On non-2xx status or a malformed body
            httpx.HTTPError: On network failure or timeout
        """
        payload = build_shipment(address, parcel)
        async with AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.url, json=payload, auth=(self.api_key, ""))
        if resp.status_code >= 300:
            raise CarrierError(f"EasyPost {resp.status_code}: {resp.text[:300]}")
        try:
            body = resp.json()
        except ValueError as e:
            raise CarrierError(f"Invalid JSON from EasyPost: {e}")
        quotes = parse_rates(body)
        logger.info(f"EasyPost returned {len(quotes)} usable rates")
        return quotes
