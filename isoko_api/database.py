"""
MongoDB connection manager (async via Motor).

Singleton pattern — one client per process, reused everywhere. The
connection string comes from the environment via isoko_api.config.
"""

import logging

import certifi
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from isoko_api.config import settings

logger = logging.getLogger(__name__)

# ────────────────────────────────────────────
# Singleton holder
# ────────────────────────────────────────────
_mongo_client: AsyncIOMotorClient | None = None


def get_mongo_client() -> AsyncIOMotorClient:
    """Return the singleton Motor client, creating it on first call."""
    global _mongo_client
    if _mongo_client is None:
        if not settings.MONGO_URI:
            raise RuntimeError("MONGO_URI is not set in environment variables.")
        kwargs = {
            "serverSelectionTimeoutMS": 30000,
            "connectTimeoutMS": 30000,
            "socketTimeoutMS": 60000,
        }
        if settings.MONGO_URI.startswith("mongodb+srv://"):
            kwargs["tlsCAFile"] = certifi.where()  # Atlas needs a CA bundle on some builds
        _mongo_client = AsyncIOMotorClient(settings.MONGO_URI, **kwargs)
    return _mongo_client


def get_mongo_db():
    """Return the default MongoDB database handle."""
    return get_mongo_client()[settings.MONGO_DB_NAME]


async def get_db():
    """FastAPI dependency; tests override it with an in-memory fake."""
    return get_mongo_db()


async def ping_mongo() -> bool:
    """Return True if MongoDB responds to a ping."""
    try:
        result = await get_mongo_client().admin.command("ping")
        return result.get("ok") == 1.0
    except (PyMongoError, RuntimeError) as exc:
        logger.warning("MongoDB ping failed: %s", exc)
        return False


async def close_connections():
    """Close the MongoDB client if one was opened."""
    global _mongo_client
    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None
