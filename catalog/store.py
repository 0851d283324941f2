# catalog/store.py
import asyncio
import os
import time
import logging
from typing import Awaitable, Callable, Dict, List, Optional
from dotenv import load_dotenv
from .db import upsert_part_image
from .feeds import build_catalog
from .models import Part

load_dotenv()
CATALOG_TTL_SECONDS = float(os.getenv("CATALOG_TTL_SECONDS", "300"))
MAX_PAGE_SIZE = 120

logger = logging.getLogger("catalog")

SORTS = {
    "price_asc": (lambda p: p.base_price_cents, False),
    "price_desc": (lambda p: p.base_price_cents, True),
    "year_desc": (lambda p: p.year or 0, True),
    "year_asc": (lambda p: p.year or 0, False),
}


class CatalogStore:
    """
    Single-slot catalog cache with a TTL and single-flight refresh.

    Concurrent callers arriving while a refresh is running all await the
    same in-flight build instead of each hitting the upstream feeds.
    """

    def __init__(self, loader: Callable[[], Awaitable[List[Part]]] = build_catalog, ttl=CATALOG_TTL_SECONDS):
        self.loader = loader
        self.ttl = ttl
        self.items: List[Part] = []
        self.loaded_at: Optional[float] = None
        self._inflight: Optional[asyncio.Task] = None

    def is_fresh(self):
        return self.loaded_at is not None and (time.monotonic() - self.loaded_at) < self.ttl

    async def _load(self):
        try:
            items = await self.loader()
            self.items = list(items)
            self.loaded_at = time.monotonic()
            logger.info(f"Catalog refreshed: {len(self.items)} parts")
            return self.items
        finally:
            self._inflight = None

    async def refresh(self):
        """Rebuild the cache now, joining a refresh that is already running."""
        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._load())
            self._inflight = task
        return await asyncio.shield(task)

    async def get_items(self) -> List[Part]:
        if self.is_fresh():
            return self.items
        return await self.refresh()

    def invalidate(self):
        self.loaded_at = None

    async def get_product(self, part_id) -> Optional[Part]:
        for p in await self.get_items():
            if p.id == part_id:
                return p
        return None

    async def list_products(
        self,
        make=None,
        model=None,
        year=None,
        q=None,
        oem=None,
        category=None,
        sort="relevance",
        page=1,
        page_size=60,
    ) -> Dict:
        """
        Filter, sort and paginate the catalog.

        Args:
            make, model, category (str, optional): Exact match filters
            year (int, optional): Exact fitment year
            q (str, optional): Case-insensitive substring of name or part_type
            oem (str, optional): "oem" for OEM only, "aftermarket" for the rest
            sort (str): relevance (catalog order), price_asc, price_desc,
                year_desc or year_asc; unknown values keep catalog order
            page (int): 1-based page number
            page_size (int): Items per page, capped at 120

        Returns:
            dict: {"total", "page", "page_size", "items"}
        """
        needle = (q or "").strip().lower()
        matched = []
        for p in await self.get_items():
            if make and p.make != make:
                continue
            if model and p.model != model:
                continue
            if year and p.year != year:
                continue
            if category and p.category != category:
                continue
            if oem == "oem" and not p.oem:
                continue
            if oem == "aftermarket" and p.oem:
                continue
            if needle and needle not in p.name.lower() and needle not in p.part_type.lower():
                continue
            matched.append(p)

        if sort in SORTS:
            key_fn, reverse = SORTS[sort]
            matched.sort(key=key_fn, reverse=reverse)

        page = max(1, int(page))
        page_size = max(1, min(int(page_size), MAX_PAGE_SIZE))
        start = (page - 1) * page_size
        return {
            "total": len(matched),
            "page": page,
            "page_size": page_size,
            "items": matched[start : start + page_size],
        }

    async def facets(self) -> Dict:
        """Distinct makes, models per make and years (newest first)."""
        makes, years = set(), set()
        models: Dict[str, set] = {}
        for p in await self.get_items():
            if p.make:
                makes.add(p.make)
                if p.model:
                    models.setdefault(p.make, set()).add(p.model)
            if p.year:
                years.add(p.year)
        return {
            "makes": sorted(makes),
            "models": {m: sorted(v) for m, v in models.items()},
            "years": sorted(years, reverse=True),
        }

    async def update_product_image(self, part_id, image_url) -> Optional[Part]:
        """
        Attach an image to a cached part and persist it locally.

        Only the image is stored (part_images collection), and build_catalog
        lays it over the merged catalog, so later price or category changes
        from the feeds still come through.

        Returns:
            Part or None: The updated part, or None for an unknown id
        """
        part = await self.get_product(part_id)
        if part is None:
            return None
        part.image_url = image_url or ""
        try:
            await upsert_part_image(part_id, part.image_url)
        except Exception as e:
            logger.warning(f"Could not persist image for {part_id}: {e}")
        return part


_store = None


def get_store():
    """Return the process-wide CatalogStore singleton."""
    global _store
    if _store is None:
        _store = CatalogStore()
    return _store
