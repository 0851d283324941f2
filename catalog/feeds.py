# catalog/feeds.py
import asyncio
import base64
import json
import os
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from httpx import AsyncClient
from dotenv import load_dotenv
from .db import fetch_local_parts, fetch_image_overrides
from .defaults import default_catalog
from .models import Part
from .normalize import normalize_feed, merge_catalogs

load_dotenv()
FEED_TIMEOUT = float(os.getenv("FEED_TIMEOUT", "8"))
CATALOG_SEED_PATH = os.getenv("CATALOG_SEED_PATH", "")

logger = logging.getLogger("catalog")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
logger.addHandler(handler)


@dataclass
class FeedSource:
    name: str
    env_prefix: str
    hints: Dict[str, str] = field(default_factory=dict)
    force_category: Optional[str] = None

    @property
    def url(self):
        return os.getenv(f"{self.env_prefix}_API_URL", "")


# Merge order: the body-panel partner feed first, then the general feed.
DEFAULT_SOURCES = [
    FeedSource("carparts", "CARPARTS", hints={"category": "body"}, force_category="body"),
    FeedSource("lkq", "LKQ"),
]


def auth_headers(prefix, env=None):
    """
    Build upstream auth headers from environment variables sharing a prefix.

    Args:
        prefix (str): Variable prefix, e.g. "LKQ"
        env (Mapping, optional): Variable source. Defaults to os.environ.

    Returns:
        dict: Headers to send with the feed request

    Resolution:
        - {prefix}_API_TOKEN -> "Authorization: Bearer <token>"
        - else {prefix}_USERNAME + {prefix}_PASSWORD -> "Authorization: Basic ..."
        - {prefix}_API_KEY -> "x-api-key" (in addition to either of the above)
    """
    env = os.environ if env is None else env
    headers = {}
    token = env.get(f"{prefix}_API_TOKEN")
    user = env.get(f"{prefix}_USERNAME")
    password = env.get(f"{prefix}_PASSWORD")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    elif user and password:
        creds = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {creds}"
    api_key = env.get(f"{prefix}_API_KEY")
    if api_key:
        headers["x-api-key"] = api_key
    return headers


class FeedClient:
    def __init__(self, sources=None, timeout=FEED_TIMEOUT):
        self.sources = list(DEFAULT_SOURCES if sources is None else sources)
        self.client = AsyncClient(timeout=timeout, headers={"Accept": "application/json"})

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def fetch_json(self, url, headers=None):
        """
        GET a JSON document. Single attempt.

        Raises:
            httpx.HTTPError: On network failure, timeout or non-2xx status
            ValueError: If the body is not valid JSON
        """
        resp = await self.client.get(url, headers=headers or {})
        resp.raise_for_status()
        return resp.json()

    async def read_source(self, source: FeedSource) -> List[Part]:
        """
        Fetch and normalize one partner feed.

        Unconfigured feeds return an empty list. Any fetch or decode failure
        is logged and also degrades to an empty list, so a single bad
        upstream never breaks the catalog build.
        """
        url = source.url
        if not url:
            return []
        try:
            payload = await self.fetch_json(url, auth_headers(source.env_prefix))
        except Exception as e:
            logger.warning(f"Feed {source.name} unavailable: {e}")
            return []
        parts = normalize_feed(payload, source.hints)
        if source.force_category:
            parts = [p.model_copy(update={"category": source.force_category}) for p in parts]
        logger.info(f"Feed {source.name}: {len(parts)} parts")
        return parts

    async def read_all(self) -> List[List[Part]]:
        """Fetch every configured feed concurrently, preserving source order."""
        tasks = [self.read_source(s) for s in self.sources]
        return list(await asyncio.gather(*tasks))


async def read_local() -> List[Part]:
    """Normalize the local MongoDB catalog; failures degrade to an empty list."""
    try:
        docs = await fetch_local_parts()
    except Exception as e:
        logger.warning(f"Local catalog unavailable: {e}")
        return []
    for d in docs:
        if d.get("id") is None and d.get("_id") is not None:
            d["id"] = str(d["_id"])
    return normalize_feed(docs)


def read_seed_file(path=None) -> List[Part]:
    """Read an optional JSON seed file shaped like any feed or {"products": [...]}."""
    path = CATALOG_SEED_PATH if path is None else path
    if not path or not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Seed file {path} unreadable: {e}")
        return []
    if isinstance(payload, dict) and isinstance(payload.get("products"), list):
        payload = payload["products"]
    return normalize_feed(payload)


async def read_image_overrides() -> Dict[str, str]:
    try:
        return await fetch_image_overrides()
    except Exception as e:
        logger.warning(f"Image overrides unavailable: {e}")
        return {}


def apply_image_overrides(parts: List[Part], images: Dict[str, str]) -> List[Part]:
    """Replace image_url on parts with an attached image; nothing else changes."""
    if not images:
        return parts
    return [
        p.model_copy(update={"image_url": images[p.id]}) if images.get(p.id) else p
        for p in parts
    ]


async def build_catalog(feed_client=None) -> List[Part]:
    """
    Build the merged catalog from every source.

    Merge order is partner feeds (in configured order), then the local
    database, then the seed file. When nothing at all comes back, or the
    build itself fails, the bundled default catalog is served instead.
    Images attached through the API are laid over the result last.
    """
    own_client = feed_client is None
    fc = feed_client or FeedClient()
    try:
        feed_lists = await fc.read_all()
        local = await read_local()
        seed = await asyncio.to_thread(read_seed_file)
        parts = merge_catalogs([*feed_lists, local, seed])
    except Exception as e:
        logger.exception(f"Catalog build failed: {e}")
        parts = []
    finally:
        if own_client:
            await fc.close()

    if not parts:
        logger.info("All catalog sources empty, serving default catalog")
        parts = default_catalog()
    return apply_image_overrides(parts, await read_image_overrides())
