# catalog/utils.py
import hashlib
import math
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)


def compute_fallback_id(fields):
    """
    Generate a deterministic identifier for a feed record that carries none.

    The same upstream record always maps to the same id, so repeated fetches
    of an id-less feed still dedupe cleanly when catalogs are merged.

    Args:
        fields (dict): The already-normalized identifying fields of the record

    Returns:
        str: "item-" followed by the first 12 hex chars of a SHA-256 digest

    Tracked Fields:
        - name
        - make
        - model
        - year
        - base_price_cents
        - part_type

    Note:
        Fields are joined with "|" in a fixed order. Missing fields default
        to an empty string.
    """
    keys = ["name", "make", "model", "year", "base_price_cents", "part_type"]
    s = "|".join(str(fields.get(k, "") if fields.get(k) is not None else "") for k in keys)
    return "item-" + hashlib.sha256(s.encode("utf-8")).hexdigest()[:12]


def to_float(value):
    """Coerce a loosely typed feed value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(str(value).strip().lstrip("$").replace(",", ""))
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def to_int(value):
    f = to_float(value)
    return None if f is None else int(f)


def round_half_up(x):
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(x + 0.5))


def network_retry(**tenacity_kwargs):
    """
    Create a tenacity retry decorator for outbound deliveries.

    Only used for webhook deliveries we own; upstream feeds and carrier
    lookups are single attempt and fall back instead.

    Args:
        **tenacity_kwargs: Optional keyword arguments
            - attempts (int): Maximum number of attempts. Defaults to 3.
            - min_wait (float): Lower bound of the backoff in seconds. Defaults to 1.
            - max_wait (float): Upper bound of the backoff in seconds. Defaults to 10.

    Returns:
        Callable: Configured retry decorator

    Example:
        @network_retry(attempts=5)
        async def deliver(payload):
            return await client.post(url, json=payload)
    """
    return retry(
        stop=stop_after_attempt(tenacity_kwargs.get("attempts", 3)),
        wait=wait_exponential(
            multiplier=1, min=tenacity_kwargs.get("min_wait", 1), max=tenacity_kwargs.get("max_wait", 10)
        ),
        retry=retry_if_exception_type(Exception),
        reraise=True,
    )
