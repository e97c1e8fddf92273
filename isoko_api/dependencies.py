"""
Request dependencies: database handle, current user, role checks and
per-role data scoping.
"""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from isoko_api.database import get_db
from isoko_api.helpers import object_id
from isoko_api.models import ROLES, normalize_role
from isoko_api.security import decode_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db=Depends(get_db),
) -> dict:
    """The active user owning the bearer token; 401 otherwise."""
    if credentials is None:
        raise _unauthorized("Not authenticated")

    claims = decode_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise _unauthorized("Invalid or expired token")
    if claims.get("jti") and await db.revoked_tokens.find_one({"jti": claims["jti"]}):
        raise _unauthorized("Token has been revoked")

    try:
        user_id = object_id(claims["sub"], "User")
    except HTTPException:
        raise _unauthorized("Invalid or expired token")
    user = await db.users.find_one({"_id": user_id})
    if user is None or user.get("status", "active") != "active":
        raise _unauthorized("Account not found or inactive")

    user["role"] = normalize_role(user.get("role"))
    user["_claims"] = claims
    return user


def require_roles(*roles: str):
    """Dependency factory: 403 unless the current user holds one of `roles`."""
    allowed = {normalize_role(r) for r in roles}
    if None in allowed:
        raise ValueError(f"Unknown role in {roles!r}; expected one of {ROLES}")

    async def checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in allowed:
            logger.info("User %s (%s) denied; needs one of %s", user.get("email"), user.get("role"), sorted(allowed))
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return checker


def loan_scope(user: dict) -> dict:
    """Mongo filter limiting loans to what the user may see."""
    role = user.get("role")
    if role == "loan-officer":
        return {"loan_officer_id": str(user["_id"])}
    if role == "supervisor" and user.get("branch"):
        return {"branch": user["branch"]}
    return {}


def client_scope(user: dict) -> dict:
    role = user.get("role")
    if role == "loan-officer":
        return {"assigned_officer_id": str(user["_id"])}
    if role == "supervisor" and user.get("branch"):
        return {"branch": user["branch"]}
    return {}
