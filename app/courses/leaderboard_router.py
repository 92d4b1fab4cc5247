from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import List, Optional
from app.courses.config import LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_MAX_LIMIT
from app.courses.database import get_top_users_by_xp
from app.courses.models import CurrentUser
from app.courses.dependencies import get_db, get_optional_user

router = APIRouter(tags=["Leaderboards"])

# ==================== LEADERBOARD QUERIES ====================

def public_entry(user: dict) -> dict:
    return {
        "nickname": user.get("nickname") or user.get("username"),
        "xp": user.get("xp", 0),
        "profilePicture": user.get("profile_picture"),
    }

def admin_entry(user: dict) -> dict:
    return {
        **public_entry(user),
        "userId": user.get("user_id"),
        "username": user.get("username"),
        "level": user.get("level", 1),
    }


async def get_leaderboard(
    db: AsyncIOMotorDatabase,
    limit: int = LEADERBOARD_DEFAULT_LIMIT,
    admin_view: bool = False
) -> List[dict]:
    """
    Top users by XP.
    Eventually consistent: may include completions still in flight.
    """
    users = await get_top_users_by_xp(db, limit)
    shape = admin_entry if admin_view else public_entry
    return [shape(u) for u in users]

# ==================== ENDPOINTS ====================

@router.get("/leaderboard")
async def leaderboard(
    limit: int = Query(LEADERBOARD_DEFAULT_LIMIT, ge=1, le=LEADERBOARD_MAX_LIMIT),
    db: AsyncIOMotorDatabase = Depends(get_db),
    caller: Optional[CurrentUser] = Depends(get_optional_user)
):
    """Global XP leaderboard (admins get user ids and levels too)"""
    entries = await get_leaderboard(db, limit, admin_view=bool(caller and caller.is_admin))

    return {
        "message": "Leaderboard retrieved successfully",
        "leaderboard": entries,
    }
