"""
Health check endpoint.
Returns UP / DOWN status for the API and MongoDB.
"""

from fastapi import APIRouter

from isoko_api.database import ping_mongo
from isoko_api.helpers import ok

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Ping the database and report its status."""
    mongo_ok = await ping_mongo()
    return ok({"api": "UP", "mongodb": "UP" if mongo_ok else "DOWN"})
