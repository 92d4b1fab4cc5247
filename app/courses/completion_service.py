"""
Exercise completion engine

complete_exercise() is the only writer of a user's progress tree, xp and
level. One call is a read-modify-write of a single users document:

  1. load user + batch + course + exercise concurrently
  2. fail with NotFoundError before touching anything if one is missing,
     ValidationError if the path is not a batch -> course -> exercise chain
  3. apply the completion to the in-memory aggregate (progress.py) and
     refuse to persist a tree whose rollups disagree
  4. persist with an optimistic version check, re-running from step 1
     when another request wrote the same user in between

A repeat completion of an exercise is answered from the loaded state and
never written.
"""

import asyncio
import re
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.courses.config import COMPLETION_MAX_RETRIES
from app.courses.database import (
    get_course, get_course_batch, get_exercise, get_user_progress, save_user_progress,
)
from app.courses.exceptions import ConflictError, InternalError, NotFoundError, ValidationError
from app.courses.models import CompletionResult, Course, CourseBatch, Exercise, ExerciseStatus
from app.courses.policies import DEFAULT_SCORING_POLICY, ScoringPolicy
from app.courses.progress import apply_completion, check_invariants
from app.utils.logger import get_logger

logger = get_logger(__name__)

IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9_\-]{1,128}$")


def validate_identifier(name: str, value: Optional[str]) -> str:
    if not isinstance(value, str) or not IDENTIFIER_RE.match(value):
        raise ValidationError(f"Invalid {name}", {name: value})
    return value


def check_hierarchy(batch: CourseBatch, course: Course, exercise: Exercise, context: dict):
    """
    The path must name a real batch -> course -> exercise chain: the batch
    lists the course, the course lists the exercise, and parent references
    stored on the course and exercise (when present) agree with the path.
    """
    if course.course_id not in batch.course_list:
        raise ValidationError("Course does not belong to this course batch", context)
    if course.course_batch_id and course.course_batch_id != batch.course_batch_id:
        raise ValidationError("Course does not belong to this course batch", context)
    if exercise.exercise_id not in course.exercise_batch_list:
        raise ValidationError("Exercise does not belong to this course", context)
    if exercise.course_id and exercise.course_id != course.course_id:
        raise ValidationError("Exercise does not belong to this course", context)
    if exercise.course_batch_id and exercise.course_batch_id != batch.course_batch_id:
        raise ValidationError("Exercise does not belong to this course batch", context)


async def complete_exercise(
    db: AsyncIOMotorDatabase,
    user_id: str,
    course_batch_id: str,
    course_id: str,
    exercise_id: str,
    score: Optional[float] = None,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
    max_retries: int = COMPLETION_MAX_RETRIES,
) -> CompletionResult:
    """Record a completion; retries version conflicts up to max_retries times"""
    validate_identifier("userId", user_id)
    validate_identifier("courseBatchId", course_batch_id)
    validate_identifier("courseId", course_id)
    validate_identifier("exerciseId", exercise_id)
    if score is not None and score < 0:
        raise ValidationError("Score must be non-negative", {"score": score})

    context = {
        "user_id": user_id,
        "course_batch_id": course_batch_id,
        "course_id": course_id,
        "exercise_id": exercise_id,
    }

    attempt = 0
    while True:
        try:
            return await _complete_once(db, user_id, course_batch_id, course_id, exercise_id, score, policy, context)
        except ConflictError:
            attempt += 1
            if attempt > max_retries:
                logger.error("completion conflict retries exhausted attempts=%s %s", attempt, context)
                raise InternalError("Failed to record exercise completion", {**context, "attempts": attempt})
            logger.warning("completion conflict, retrying attempt=%s %s", attempt, context)


async def _complete_once(db, user_id, course_batch_id, course_id, exercise_id, score, policy, context) -> CompletionResult:
    user, batch, course, exercise = await asyncio.gather(
        get_user_progress(db, user_id),
        get_course_batch(db, course_batch_id),
        get_course(db, course_id),
        get_exercise(db, exercise_id),
    )

    if user is None:
        raise NotFoundError("User not found", context)
    if batch is None:
        raise NotFoundError("Course batch not found", context)
    if course is None:
        raise NotFoundError("Course not found", context)
    if exercise is None:
        raise NotFoundError("Exercise not found", context)

    check_hierarchy(batch, course, exercise, context)

    outcome = apply_completion(user, batch, course, exercise, policy=policy, score=score)

    if not outcome.already_completed:
        problems = check_invariants(user)
        if problems:
            logger.error("inconsistent progress tree, not saving problems=%s %s", problems, context)
            raise InternalError("Failed to record exercise completion", {**context, "problems": problems})
        await save_user_progress(db, user)
        logger.info(
            "exercise completed awarded_xp=%s xp=%s level=%s course_completed=%s batch_completed=%s %s",
            outcome.awarded_xp, user.xp, user.level, outcome.course_completed, outcome.batch_completed, context,
        )
    else:
        logger.info("exercise already completed %s", context)

    return CompletionResult(
        awarded_xp=outcome.awarded_xp,
        current_xp=user.xp,
        level=user.level,
        already_completed=outcome.already_completed,
        exercise_status=ExerciseStatus(
            course_batch_id=course_batch_id,
            course_id=course_id,
            exercise_id=exercise_id,
            status=outcome.exercise_status,
        ),
        course_progress=outcome.course_progress,
    )
