from fastapi import APIRouter, Depends, Body
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional
from app.courses.models import CompleteExerciseRequest, CurrentUser
from app.courses.completion_service import complete_exercise
from app.courses.dependencies import get_db, get_current_user, authorize_user_access

router = APIRouter(tags=["Progress"])


@router.post("/complete/{user_id}/{course_batch_id}/{course_id}/{exercise_id}")
async def complete_exercise_endpoint(
    user_id: str,
    course_batch_id: str,
    course_id: str,
    exercise_id: str,
    payload: Optional[CompleteExerciseRequest] = Body(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
    caller: CurrentUser = Depends(get_current_user)
):
    """
    Mark an exercise completed for a user.
    Answer correctness is checked before this endpoint is called.
    Repeats are safe: no XP, alreadyCompleted=true.
    """
    authorize_user_access(caller, user_id)

    result = await complete_exercise(
        db, user_id, course_batch_id, course_id, exercise_id,
        score=payload.score if payload else None,
    )

    return {
        "message": "Exercise already completed" if result.already_completed else "Exercise completed successfully",
        "awardedXp": result.awarded_xp,
        "currentXp": result.current_xp,
        "level": result.level,
        "alreadyCompleted": result.already_completed,
        "exerciseStatus": {
            "courseBatchId": result.exercise_status.course_batch_id,
            "courseId": result.exercise_status.course_id,
            "exerciseId": result.exercise_status.exercise_id,
            "status": result.exercise_status.status.value,
        },
        "courseProgress": result.course_progress,
    }
