import asyncio
from typing import Any, Awaitable, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.courses.config import STORE_TIMEOUT_SECONDS
from app.courses.exceptions import ConflictError, InternalError
from app.courses.models import Course, CourseBatch, Exercise, UserProgress
from app.utils.logger import get_logger

logger = get_logger(__name__)

# ==================== HELPERS ====================

async def _bounded(operation: Awaitable, what: str, timeout: Optional[float] = None) -> Any:
    """Await a store call under the store timeout, mapping driver failures to InternalError"""
    try:
        return await asyncio.wait_for(operation, timeout or STORE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.error("store timeout op=%s", what)
        raise InternalError("Database operation timed out", {"operation": what})
    except PyMongoError as e:
        logger.error("store error op=%s error=%s", what, e)
        raise InternalError("Database operation failed", {"operation": what})

# ==================== CATALOG (read-only) ====================

async def get_course_batch(db: AsyncIOMotorDatabase, course_batch_id: str) -> Optional[CourseBatch]:
    doc = await _bounded(db.course_batches.find_one({"course_batch_id": course_batch_id}), "get_course_batch")
    return CourseBatch(**doc) if doc else None

async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[Course]:
    doc = await _bounded(db.courses.find_one({"course_id": course_id}), "get_course")
    return Course(**doc) if doc else None

async def get_exercise(db: AsyncIOMotorDatabase, exercise_id: str) -> Optional[Exercise]:
    doc = await _bounded(db.exercises.find_one({"exercise_id": exercise_id}), "get_exercise")
    return Exercise(**doc) if doc else None

async def list_course_batches(db: AsyncIOMotorDatabase) -> List[CourseBatch]:
    """All batches ordered by stage"""
    cursor = db.course_batches.find({}).sort("stage", 1)
    docs = await _bounded(cursor.to_list(length=None), "list_course_batches")
    return [CourseBatch(**doc) for doc in docs]

# ==================== USER PROGRESS ====================

async def get_user_progress(db: AsyncIOMotorDatabase, user_id: str) -> Optional[UserProgress]:
    doc = await _bounded(db.users.find_one({"user_id": user_id}), "get_user_progress")
    return UserProgress(**doc) if doc else None

def _version_filter(user: UserProgress) -> Dict[str, Any]:
    if user.version:
        return {"user_id": user.user_id, "version": user.version}
    # Documents written before versioning have no version field
    return {
        "user_id": user.user_id,
        "$or": [{"version": 0}, {"version": {"$exists": False}}],
    }

async def save_user_progress(db: AsyncIOMotorDatabase, user: UserProgress) -> UserProgress:
    """
    Write progress, xp and level in a single update, guarded by the version
    the aggregate was loaded with. Other fields of the users document
    (credentials, profile, inventory) are left untouched.

    Raises ConflictError when someone else wrote the document first.
    """
    new_version = user.version + 1
    data = user.dict(include={"progress", "xp", "level"})

    result = await _bounded(
        db.users.update_one(
            _version_filter(user),
            {"$set": {**data, "version": new_version}},
        ),
        "save_user_progress",
    )

    if result.matched_count == 0:
        raise ConflictError(
            "User progress was modified concurrently",
            {"user_id": user.user_id, "version": user.version},
        )

    user.version = new_version
    return user

# ==================== LEADERBOARD ====================

LEADERBOARD_PROJECTION = {
    "_id": 0,
    "user_id": 1,
    "username": 1,
    "nickname": 1,
    "profile_picture": 1,
    "xp": 1,
    "level": 1,
}

async def get_top_users_by_xp(db: AsyncIOMotorDatabase, limit: int) -> List[dict]:
    """Users ordered by xp descending, ties broken by username"""
    cursor = db.users.find({}, LEADERBOARD_PROJECTION).sort([("xp", -1), ("username", 1)]).limit(limit)
    return await _bounded(cursor.to_list(length=limit), "get_top_users_by_xp")

# ==================== INDEXES ====================

async def create_progress_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes used by the progress engine"""
    # Users
    await db.users.create_index("user_id", unique=True)
    await db.users.create_index("username", unique=True)
    await db.users.create_index([("xp", -1)])

    # Catalog
    await db.course_batches.create_index("course_batch_id", unique=True)
    await db.course_batches.create_index("stage")
    await db.courses.create_index("course_id", unique=True)
    await db.exercises.create_index("exercise_id", unique=True)

    logger.info("progress indexes created")
