"""
Staff user management (admin only).

GET    /users        → paginated list (search, role, status)
GET    /users/{id}   → one user
POST   /users        → create with a hashed password
PUT    /users/{id}   → partial update
DELETE /users/{id}   → deactivate (users are never hard-deleted)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from isoko_api.database import get_db
from isoko_api.dependencies import require_roles
from isoko_api.helpers import DEFAULT_LIMIT, find_page, object_id, ok, search_filter, utcnow
from isoko_api.models import UserCreate, UserUpdate, normalize_role
from isoko_api.routes.auth import public_user
from isoko_api.security import hash_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = require_roles("admin")


async def _get_user(db, user_id: str) -> dict:
    user = await db.users.find_one({"_id": object_id(user_id, "User")})
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("")
async def list_users(
    search: str | None = None,
    role: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    _: dict = Depends(admin_only),
    db=Depends(get_db),
):
    query = search_filter(search, ["first_name", "last_name", "email", "employee_id"])
    if role:
        query["role"] = normalize_role(role) or role
    if status:
        query["status"] = status
    data = await find_page(db.users, query, page, limit)
    data["items"] = [{**u, "role": normalize_role(u.get("role"))} for u in data["items"]]
    return ok(data)


@router.get("/{user_id}")
async def get_user(user_id: str, _: dict = Depends(admin_only), db=Depends(get_db)):
    return ok(public_user(await _get_user(db, user_id)))


@router.post("", status_code=201)
async def create_user(req: UserCreate, admin: dict = Depends(admin_only), db=Depends(get_db)):
    role = normalize_role(req.role)
    if role is None:
        raise HTTPException(status_code=422, detail=f"Unknown role: {req.role}")
    email = req.email.strip().lower()
    if await db.users.find_one({"email": email}):
        raise HTTPException(status_code=409, detail="A user with this email already exists")

    doc = req.model_dump(exclude={"password"})
    doc.update(
        email=email,
        role=role,
        password_hash=hash_password(req.password),
        status="active",
        created_at=utcnow(),
        created_by=str(admin["_id"]),
    )
    result = await db.users.insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info("User %s created by %s", email, admin.get("email"))
    return ok(public_user(doc), "User created")


@router.put("/{user_id}")
async def update_user(user_id: str, req: UserUpdate, _: dict = Depends(admin_only), db=Depends(get_db)):
    user = await _get_user(db, user_id)
    changes = req.model_dump(exclude_none=True)
    if "role" in changes:
        changes["role"] = normalize_role(changes["role"])
        if changes["role"] is None:
            raise HTTPException(status_code=422, detail=f"Unknown role: {req.role}")
    if changes:
        changes["updated_at"] = utcnow()
        await db.users.update_one({"_id": user["_id"]}, {"$set": changes})
        user.update(changes)
    return ok(public_user(user), "User updated")


@router.delete("/{user_id}")
async def deactivate_user(user_id: str, admin: dict = Depends(admin_only), db=Depends(get_db)):
    user = await _get_user(db, user_id)
    if user["_id"] == admin["_id"]:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")
    await db.users.update_one({"_id": user["_id"]}, {"$set": {"status": "inactive", "updated_at": utcnow()}})
    return ok(message="User deactivated")
