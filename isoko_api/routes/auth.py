"""
Authentication routes.

POST /auth/login            — validate credentials, return token + profile
GET  /auth/me               — profile of the token's owner
POST /auth/logout           — revoke the presented token
PUT  /auth/change-password  — change own password
POST /auth/forgot-password  — issue a reset token (never reveals whether the email exists)
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException

from isoko_api.database import get_db
from isoko_api.dependencies import get_current_user
from isoko_api.helpers import clean, ok, utcnow
from isoko_api.models import ChangePasswordRequest, ForgotPasswordRequest, LoginRequest, normalize_role
from isoko_api.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

RESET_TOKEN_TTL = timedelta(hours=1)


def public_user(user: dict) -> dict:
    profile = clean(user)
    profile["role"] = normalize_role(user.get("role"))
    return profile


# ── POST /auth/login ─────────────────────────────────

@router.post("/login")
async def login(req: LoginRequest, db=Depends(get_db)):
    """Validate email + password against the users collection."""
    user = await db.users.find_one({"email": req.email.strip().lower()})
    if user is None or not verify_password(req.password, user.get("password_hash")):
        logger.info("Failed login for %s", req.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if user.get("status", "active") != "active":
        raise HTTPException(status_code=403, detail="Account is not active")

    role = normalize_role(user.get("role"))
    token = create_access_token(str(user["_id"]), role or "")
    await db.users.update_one({"_id": user["_id"]}, {"$set": {"last_login": utcnow()}})
    logger.info("User %s signed in", user["email"])
    return ok({"token": token, "user": public_user(user)}, "Login successful")


# ── GET /auth/me ─────────────────────────────────────

@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    return ok({"user": public_user(user)})


# ── POST /auth/logout ────────────────────────────────

@router.post("/logout")
async def logout(user: dict = Depends(get_current_user), db=Depends(get_db)):
    claims = user["_claims"]
    if claims.get("jti"):
        expires = datetime.fromtimestamp(claims.get("exp", 0), tz=timezone.utc)
        await db.revoked_tokens.insert_one({"jti": claims["jti"], "expires_at": expires})
    return ok(message="Logged out")


# ── PUT /auth/change-password ────────────────────────

@router.put("/change-password")
async def change_password(req: ChangePasswordRequest, user: dict = Depends(get_current_user), db=Depends(get_db)):
    if not verify_password(req.current_password, user.get("password_hash")):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"password_hash": hash_password(req.new_password), "updated_at": utcnow()}},
    )
    return ok(message="Password updated")


# ── POST /auth/forgot-password ───────────────────────

@router.post("/forgot-password")
async def forgot_password(req: ForgotPasswordRequest, db=Depends(get_db)):
    user = await db.users.find_one({"email": req.email.strip().lower()})
    if user is not None:
        await db.password_resets.insert_one({
            "user_id": str(user["_id"]),
            "token": secrets.token_urlsafe(32),
            "expires_at": utcnow() + RESET_TOKEN_TTL,
            "used": False,
        })
        logger.info("Password reset requested for %s", user["email"])
    return ok(message="If the account exists, a reset link has been sent.")
