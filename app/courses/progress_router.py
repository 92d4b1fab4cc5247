from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
import asyncio
from app.courses.models import CurrentUser
from app.courses.database import get_user_progress, list_course_batches
from app.courses.completion_service import validate_identifier
from app.courses.exceptions import NotFoundError
from app.courses.progress import build_progress_summary
from app.courses.dependencies import get_db, get_current_user, authorize_user_access

router = APIRouter(tags=["Progress"])


@router.get("/progress/{user_id}")
async def get_progress(
    user_id: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
    caller: CurrentUser = Depends(get_current_user)
):
    """User's progress tree with completion ratios and unlocked batches"""
    validate_identifier("userId", user_id)
    authorize_user_access(caller, user_id)

    user, batches = await asyncio.gather(
        get_user_progress(db, user_id),
        list_course_batches(db),
    )
    if user is None:
        raise NotFoundError("User not found", {"user_id": user_id})

    return {
        "message": "Progress retrieved successfully",
        "progress": build_progress_summary(user, batches),
    }
