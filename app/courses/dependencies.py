from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
from app.auth.auth_utils import verify_token, verify_optional_token
from app.courses.config import COMPLETION_AUTH_POLICY, AUTH_POLICIES
from app.courses.exceptions import AuthorizationError
from app.courses.models import CurrentUser

def get_db_instance():
    """Get database from main module"""
    from app.main import db
    return db

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_db_instance()

def _to_current_user(payload: dict) -> CurrentUser:
    role = payload.get("role") or "user"
    return CurrentUser(
        user_id=str(payload["id"]),
        username=payload.get("username"),
        role=role if role in ("user", "admin") else "user",
    )

async def get_current_user(payload: dict = Depends(verify_token)) -> CurrentUser:
    """Authenticated caller from the bearer token"""
    return _to_current_user(payload)

async def get_optional_user(payload: Optional[dict] = Depends(verify_optional_token)) -> Optional[CurrentUser]:
    """Authenticated caller, or None for anonymous requests"""
    return _to_current_user(payload) if payload else None

# ==================== ACCESS POLICY ====================

def authorize_user_access(caller: CurrentUser, user_id: str, policy: str = COMPLETION_AUTH_POLICY):
    """
    Check caller may act on user_id's progress.
    Policies: self, self_or_admin, any (see config.COMPLETION_AUTH_POLICY)
    """
    if policy not in AUTH_POLICIES:
        raise ValueError(f"Unknown authorization policy: {policy}")

    if policy == "any" or caller.user_id == user_id:
        return
    if policy == "self_or_admin" and caller.is_admin:
        return

    raise AuthorizationError(
        "Not authorized to access this user's progress",
        {"caller_id": caller.user_id, "user_id": user_id, "policy": policy},
    )
