# catalog/db.py
import os
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv

load_dotenv()

MONGO_URI = os.getenv("MONGO_URI")
MONGO_DB = os.getenv("MONGO_DB", "autoparts")

_client = None
_db = None


def is_configured():
    """The local catalog is optional; without MONGO_URI it is simply empty."""
    return bool(MONGO_URI)


def get_client():
    """Initialize and return the MongoDB AsyncIOMotorClient singleton."""
    global _client, _db
    if _client is None:
        _client = AsyncIOMotorClient(MONGO_URI, serverSelectionTimeoutMS=5000)
        _db = _client[MONGO_DB]
    return _client


def get_db():
    """Return the MongoDB database instance, or None when no local catalog is configured."""
    global _db
    if _db is None:
        if not is_configured():
            return None
        get_client()
    return _db


async def fetch_local_parts():
    """Return the raw part documents of the local catalog (possibly empty)."""
    db = get_db()
    if db is None:
        return []
    cursor = db.parts.find({})
    return await cursor.to_list(length=None)


async def fetch_image_overrides():
    """Return {part_id: image_url} for every image attached through the API."""
    db = get_db()
    if db is None:
        return {}
    docs = await db.part_images.find({}).to_list(length=None)
    return {str(d["_id"]): d.get("image_url") or "" for d in docs}


async def upsert_part_image(part_id, image_url):
    """
    Record an image for a part in the part_images collection.

    Only the image is stored; price, category and the other fields keep
    coming from the catalog sources on every refresh.
    """
    db = get_db()
    if db is None:
        return False
    await db.part_images.update_one(
        {"_id": part_id}, {"$set": {"image_url": image_url}}, upsert=True
    )
    return True
