"""
Response envelope, document cleaning and pagination shared by the routers.
"""

import math
import re
from datetime import date, datetime, time, timezone

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException

DEFAULT_LIMIT = 20
MAX_LIMIT = 1000

STRIP_FIELDS = {"_id", "password_hash", "_claims"}


def ok(data=None, message: str | None = None) -> dict:
    """The {success, data?, message?} envelope every endpoint returns."""
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return body


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_float(val, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _plain(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def clean(doc: dict | None) -> dict | None:
    """Mongo document → JSON-safe dict with `id` instead of `_id`."""
    if doc is None:
        return None
    out = {k: _plain(v) for k, v in doc.items() if k not in STRIP_FIELDS}
    if "_id" in doc:
        out["id"] = str(doc["_id"])
    return out


def object_id(value: str, label: str = "Record") -> ObjectId:
    """Parse a path id; malformed ids are reported like missing ones."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=404, detail=f"{label} not found")


def parse_day(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid date: {value}")


def start_of(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def as_utc(value) -> datetime | None:
    """Stored datetimes come back naive from Mongo; treat them as UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return start_of(value)
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def page_params(page: int, limit: int) -> tuple[int, int]:
    return max(page, 1), min(max(limit, 1), MAX_LIMIT)


def paginated(items: list, page: int, limit: int, total: int) -> dict:
    return {
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": max(math.ceil(total / limit), 1) if limit else 1,
        },
    }


async def find_page(collection, query: dict, page: int, limit: int, sort=("created_at", -1)) -> dict:
    """One page of `collection` matching `query`, cleaned and wrapped."""
    page, limit = page_params(page, limit)
    total = await collection.count_documents(query)
    cursor = collection.find(query).sort(*sort).skip((page - 1) * limit).limit(limit)
    docs = await cursor.to_list(length=limit)
    return paginated([clean(d) for d in docs], page, limit, total)


def slice_page(items: list, page: int, limit: int) -> dict:
    """Paginate a list already computed in Python."""
    page, limit = page_params(page, limit)
    start = (page - 1) * limit
    return paginated(items[start:start + limit], page, limit, len(items))


def search_filter(search: str | None, fields: list[str]) -> dict:
    """Case-insensitive substring match across `fields`."""
    if not search:
        return {}
    pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
    return {"$or": [{f: pattern} for f in fields]}
