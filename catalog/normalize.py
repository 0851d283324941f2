# catalog/normalize.py
"""
Map heterogeneous upstream part records onto the canonical Part shape.

Every field is resolved through an ordered list of accessors. The first
accessor that yields a value other than None wins, so the precedence of
upstream field names is written down once and can be tested directly.
"""
import re
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import Part, DEFAULT_WEIGHT_LB, DEFAULT_DIMS_IN
from .utils import compute_fallback_id, to_float, to_int, round_half_up

logger = logging.getLogger("catalog")

Accessor = Callable[[Dict[str, Any]], Any]

BODY_PATTERN = re.compile(
    r"bumper|fender|hood|grille|mirror|door|tail|headlight|taillight|quarter|panel",
    re.IGNORECASE,
)

FEED_LIST_KEYS = ("parts", "results", "data")


def key(name: str) -> Accessor:
    return lambda raw: raw.get(name)


def nested(parent: str, name: str) -> Accessor:
    def get(raw):
        sub = raw.get(parent)
        return sub.get(name) if isinstance(sub, dict) else None

    return get


def first_present(raw: Dict[str, Any], accessors: Sequence[Accessor]) -> Any:
    for accessor in accessors:
        value = accessor(raw)
        if value is not None:
            return value
    return None


ID_CHAIN = [key("id"), key("partId"), key("partID"), key("sku"), key("partNumber")]
NAME_CHAIN = [key("name"), key("title"), key("description")]
IMAGE_CHAIN = [key("image"), key("imageUrl"), key("image_url"), key("img"), key("thumbnail")]
PRICE_CENTS_CHAIN = [key("base_price_cents"), key("price_cents")]
PRICE_DOLLARS_CHAIN = [
    key("base_price"),
    key("price"),
    key("cost"),
    key("unitPrice"),
    nested("pricing", "price"),
]
YEAR_CHAIN = [key("year"), nested("vehicle", "year")]
MAKE_CHAIN = [key("make"), nested("vehicle", "make")]
MODEL_CHAIN = [key("model"), nested("vehicle", "model")]
PART_TYPE_CHAIN = [key("part_type"), key("partType"), key("type")]
WEIGHT_CHAIN = [key("weight_lb"), key("weightLb"), key("weight")]
LENGTH_CHAIN = [key("dim_l_in"), key("dimLIn"), key("length"), nested("dimensions", "length")]
WIDTH_CHAIN = [key("dim_w_in"), key("dimWIn"), key("width"), nested("dimensions", "width")]
HEIGHT_CHAIN = [key("dim_h_in"), key("dimHIn"), key("height"), nested("dimensions", "height")]
OEM_CHAIN = [key("oem"), key("isOem"), key("is_oem")]
STOCK_CHAIN = [key("stock"), key("quantity"), key("qty"), key("inventory")]


def infer_category(name: str) -> str:
    """Keyword heuristic: body-panel vocabulary means "body", anything else "mechanical"."""
    return "body" if BODY_PATTERN.search(name or "") else "mechanical"


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def _price_cents(raw) -> int:
    cents = to_float(first_present(raw, PRICE_CENTS_CHAIN))
    if cents is None:
        dollars = to_float(first_present(raw, PRICE_DOLLARS_CHAIN))
        cents = dollars * 100 if dollars is not None else 0
    return max(0, round_half_up(cents))


def _positive(raw, chain, default: float) -> float:
    v = to_float(first_present(raw, chain))
    return v if v is not None and v > 0 else default


def _flag(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "oem", "y")
    return bool(value)


def normalize_record(raw: Dict[str, Any], hints: Optional[Dict[str, Any]] = None) -> Part:
    """
    Normalize one upstream record into a Part.

    Args:
        raw (dict): Arbitrary feed record; every field is optional
        hints (dict, optional): Per-source defaults. Only "category" is
            consulted, and only when the record carries no category.

    Returns:
        Part: Canonical part. Pure function, no side effects.
    """
    hints = hints or {}
    name = _text(first_present(raw, NAME_CHAIN)) or "Auto Part"
    year = to_int(first_present(raw, YEAR_CHAIN))

    fields = {
        "name": name,
        "base_price_cents": _price_cents(raw),
        "year": year,
        "make": _text(first_present(raw, MAKE_CHAIN)),
        "model": _text(first_present(raw, MODEL_CHAIN)),
        "part_type": _text(first_present(raw, PART_TYPE_CHAIN)),
    }

    raw_id = first_present(raw, ID_CHAIN)
    fields["id"] = _text(raw_id) if raw_id is not None else compute_fallback_id(fields)

    category = raw.get("category") or hints.get("category")
    fields["category"] = _text(category) if category else infer_category(name)

    fields["image_url"] = _text(first_present(raw, IMAGE_CHAIN))
    fields["weight_lb"] = _positive(raw, WEIGHT_CHAIN, DEFAULT_WEIGHT_LB)
    fields["dim_l_in"] = _positive(raw, LENGTH_CHAIN, DEFAULT_DIMS_IN[0])
    fields["dim_w_in"] = _positive(raw, WIDTH_CHAIN, DEFAULT_DIMS_IN[1])
    fields["dim_h_in"] = _positive(raw, HEIGHT_CHAIN, DEFAULT_DIMS_IN[2])
    fields["oem"] = _flag(first_present(raw, OEM_CHAIN), True)

    stock = to_int(first_present(raw, STOCK_CHAIN))
    fields["stock"] = 1 if stock is None else max(0, stock)

    return Part(**fields)


def normalize_feed(payload: Any, hints: Optional[Dict[str, Any]] = None) -> List[Part]:
    """
    Normalize a whole feed body.

    Accepts a bare list, or an object with a "parts", "results" or "data"
    list (checked in that order). Any other shape yields an empty list.
    Elements that are not objects are skipped.
    """
    records = None
    if isinstance(payload, list):
        records = payload
    elif isinstance(payload, dict):
        for k in FEED_LIST_KEYS:
            if isinstance(payload.get(k), list):
                records = payload[k]
                break
    if records is None:
        return []

    parts = []
    for raw in records:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object feed record: {raw!r:.80}")
            continue
        parts.append(normalize_record(raw, hints))
    return parts


def merge_catalogs(lists: Sequence[Sequence[Part]]) -> List[Part]:
    """
    Merge part lists, deduplicating by id.

    The first occurrence of an id is the base record. Later occurrences only
    patch image_url (when non-empty), base_price_cents (when non-zero) and
    category (new, else old, else "mechanical"). Parts with an empty id are
    dropped. Output keeps first-occurrence order.
    """
    seen: Dict[str, Part] = {}
    for parts in lists:
        for p in parts:
            pid = _text(p.id)
            if not pid:
                continue
            old = seen.get(pid)
            if old is None:
                seen[pid] = p
                continue
            seen[pid] = old.model_copy(
                update={
                    "image_url": p.image_url or old.image_url,
                    "base_price_cents": p.base_price_cents or old.base_price_cents,
                    "category": p.category or old.category or "mechanical",
                }
            )
    return list(seen.values())
