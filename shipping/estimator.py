# shipping/estimator.py
"""
Shipping rate estimation.

A live carrier quote is tried first when one is configured and the address
is complete. Otherwise, or when the live call fails for any reason, quotes
come from a deterministic heuristic: dimensional weight, a postal-zone
multiplier, flat surcharges and a fuel uplift.
"""
import logging
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple
from pydantic import BaseModel
from catalog.models import Address, CartLine, Parcel, Part, ShippingQuote
from catalog.utils import round_half_up

logger = logging.getLogger("shipping")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
logger.addHandler(handler)

MIN_WEIGHT_LB = 2.0
MAX_QUOTES = 6

DOMESTIC_ZONES = {
    "0": 1.00,
    "1": 0.95,
    "2": 0.98,
    "3": 1.05,
    "4": 1.10,
    "5": 1.15,
    "6": 1.20,
    "7": 1.25,
    "8": 1.28,
    "9": 1.32,
}
DEFAULT_ZONE = 1.15
INTERNATIONAL_ZONE = 1.65

REMOTE_COUNTRIES = frozenset(
    ["AU", "NZ", "ZA", "BR", "AR", "CL", "AE", "SA", "IN", "ID", "PH", "CN", "JP", "KR"]
)


class RateCard(BaseModel):
    """Pricing constants. Dollar amounts unless noted."""

    ground_base: float = 8.0
    ground_per_lb: float = 0.55
    two_day_base: float = 15.0
    two_day_per_lb: float = 0.95
    overnight_base: float = 24.0
    overnight_per_lb: float = 1.45
    intl_base: float = 32.0
    intl_per_lb: float = 1.65
    fuel_surcharge: float = 0.12
    residential_fee: float = 4.0
    remote_fee: float = 8.0
    insurance_rate: float = 0.01
    insurance_min: float = 1.0
    insurance_max: float = 50.0
    dim_divisor: float = 139.0

    def ground(self, bw):
        return self.ground_base + self.ground_per_lb * bw

    def two_day(self, bw):
        return self.two_day_base + self.two_day_per_lb * bw

    def overnight(self, bw):
        return self.overnight_base + self.overnight_per_lb * bw

    def international(self, bw):
        return self.intl_base + self.intl_per_lb * bw


DEFAULT_RATE_CARD = RateCard()


def aggregate_parcel(lines: Iterable[Tuple[Part, int]]) -> Parcel:
    """
    Collapse resolved cart lines into one parcel.

    Weight is summed per unit and floored at 2 lb. Length and width take the
    largest item; heights stack, so height is the sum of height x quantity.
    An empty cart yields a 2 lb parcel with zero dimensions.
    """
    weight = length = width = height = 0.0
    for part, qty in lines:
        qty = max(1, int(qty))
        weight += part.weight_lb * qty
        length = max(length, part.dim_l_in)
        width = max(width, part.dim_w_in)
        height += part.dim_h_in * qty
    return Parcel(
        weight_lb=max(MIN_WEIGHT_LB, weight),
        length_in=length,
        width_in=width,
        height_in=height,
    )


def billable_weight(parcel: Parcel, divisor=DEFAULT_RATE_CARD.dim_divisor) -> float:
    volume = parcel.length_in * parcel.width_in * parcel.height_in
    return max(parcel.weight_lb, volume / divisor)


def zone_multiplier(address: Address) -> float:
    if not address.is_domestic():
        return INTERNATIONAL_ZONE
    digit = (address.postal_code or "5")[0]
    return DOMESTIC_ZONES.get(digit, DEFAULT_ZONE)


def insurance_fee(subtotal_cents, card: RateCard = DEFAULT_RATE_CARD) -> float:
    fee = card.insurance_rate * (max(0, subtotal_cents) / 100)
    return max(card.insurance_min, min(card.insurance_max, fee))


def surcharges(address: Address, subtotal_cents, card: RateCard = DEFAULT_RATE_CARD) -> Dict[str, float]:
    remote = not address.is_domestic() and address.country in REMOTE_COUNTRIES
    return {
        "residential": card.residential_fee if address.residential else 0.0,
        "remote": card.remote_fee if remote else 0.0,
        "insurance": insurance_fee(subtotal_cents, card),
    }


def heuristic_rates(
    billable: float,
    address: Address,
    subtotal_cents: int,
    card: RateCard = DEFAULT_RATE_CARD,
) -> List[ShippingQuote]:
    """
    Price the fixed candidate services for the given billable weight.

    amount = (base x zone + residential + remote + insurance) x (1 + fuel),
    rounded to cents with a 1 cent floor. Returned cheapest first.
    """
    zone = zone_multiplier(address)
    fees = surcharges(address, subtotal_cents, card)
    extra = fees["residential"] + fees["remote"] + fees["insurance"]

    def quote(carrier, service, days, base):
        amount = (base * zone + extra) * (1 + card.fuel_surcharge)
        return ShippingQuote(
            carrier=carrier,
            service=service,
            days=days,
            amount_cents=max(1, round_half_up(amount * 100)),
        )

    if address.is_domestic():
        quotes = [
            quote("UPS", "Ground", 3, card.ground(billable)),
            quote("UPS", "2nd Day Air", 2, card.two_day(billable)),
            quote("FedEx", "Ground", 3, card.ground(billable) * 0.98),
            quote("FedEx", "2Day", 2, card.two_day(billable) * 0.99),
            quote("FedEx", "Standard Overnight", 1, card.overnight(billable)),
        ]
    else:
        quotes = [
            quote("DHL", "Express Worldwide", 4, card.international(billable)),
            quote("UPS", "Worldwide Saver", 5, card.international(billable) * 1.05),
            quote("FedEx", "International Priority", 4, card.international(billable) * 1.03),
        ]
    quotes.sort(key=lambda q: q.amount_cents)
    return quotes[:MAX_QUOTES]


async def resolve_cart(
    cart: Iterable[CartLine], lookup: Callable[[str], Awaitable[Optional[Part]]]
) -> List[Tuple[Part, int]]:
    """Resolve cart lines against the catalog; unknown ids are skipped."""
    resolved = []
    for line in cart:
        part = await lookup(line.id)
        if part is None:
            logger.info(f"Cart line {line.id!r} not in catalog, skipped")
            continue
        resolved.append((part, line.qty))
    return resolved


async def estimate_rates(
    cart: Iterable[CartLine],
    address: Address,
    subtotal_cents: int,
    lookup: Callable[[str], Awaitable[Optional[Part]]],
    live=None,
    card: RateCard = DEFAULT_RATE_CARD,
) -> Dict:
    """
    Quote shipping for a cart.

    Args:
        cart (Iterable[CartLine]): Lines with product id and quantity
        address (Address): Destination
        subtotal_cents (int): Order subtotal, only sizes the insurance fee
        lookup (Callable): async id -> Part or None, usually CatalogStore.get_product
        live (optional): Live carrier adapter exposing is_configured() and
            async rates(address, parcel) -> list[ShippingQuote]
        card (RateCard): Heuristic pricing constants

    Returns:
        dict: {"quotes": [ShippingQuote...], "computed": {"billable_lb",
            "dims", "weight_lb"}}

    Note:
        Never raises for upstream problems. A live failure, empty live
        answer or incomplete address all fall through to the heuristic.
    """
    lines = await resolve_cart(cart, lookup)
    parcel = aggregate_parcel(lines)
    billable = billable_weight(parcel, card.dim_divisor)

    quotes: List[ShippingQuote] = []
    if live is not None and live.is_configured() and address.is_complete():
        try:
            quotes = await live.rates(address, parcel)
        except Exception as e:
            logger.warning(f"Live rates failed, using heuristic: {e}")
            quotes = []

    if not quotes:
        quotes = heuristic_rates(billable, address, subtotal_cents, card)

    return {
        "quotes": quotes,
        "computed": {
            "billable_lb": round(billable, 1),
            "dims": parcel.dims,
            "weight_lb": parcel.weight_lb,
        },
    }
