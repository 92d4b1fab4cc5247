"""
Progress tree operations

Pure functions over a UserProgress aggregate. No I/O here: the completion
service loads the aggregate, calls apply_completion, then persists it.

Tree shape (one users document):

    progress[]            BatchProgress     (course_batch_id)
      courses[]           CourseProgress    (course_id)
        exercises[]       ExerciseProgress  (exercise_id)

A missing node means "not started"; stored nodes are always in_progress
or completed.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from app.courses.models import (
    BatchProgress, Course, CourseBatch, CourseProgress, Exercise,
    ExerciseProgress, ProgressStatus, UserProgress,
)
from app.courses.policies import DEFAULT_SCORING_POLICY, ScoringPolicy

# ==================== LOOKUPS ====================

def find_batch(user: UserProgress, course_batch_id: str) -> Optional[BatchProgress]:
    for batch in user.progress:
        if batch.course_batch_id == course_batch_id:
            return batch
    return None

def find_course(batch: Optional[BatchProgress], course_id: str) -> Optional[CourseProgress]:
    if batch is None:
        return None
    for course in batch.courses:
        if course.course_id == course_id:
            return course
    return None

def find_exercise(course: Optional[CourseProgress], exercise_id: str) -> Optional[ExerciseProgress]:
    if course is None:
        return None
    for exercise in course.exercises:
        if exercise.exercise_id == exercise_id:
            return exercise
    return None

def node_status(node) -> ProgressStatus:
    """Status of a progress node, NOT_STARTED when the lookup found nothing"""
    if node is None:
        return ProgressStatus.NOT_STARTED
    return ProgressStatus(node.status)

def ratio(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return completed / total

# ==================== COMPLETION ====================

@dataclass
class CompletionOutcome:
    awarded_xp: int
    already_completed: bool
    exercise_status: ProgressStatus
    course_progress: float
    course_completed: bool = False
    batch_completed: bool = False


def apply_completion(
    user: UserProgress,
    batch: CourseBatch,
    course: Course,
    exercise: Exercise,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
    score: Optional[float] = None,
    now: Optional[datetime] = None,
) -> CompletionOutcome:
    """
    Mark exercise completed for user, mutating the aggregate in place.

    A repeat completion changes nothing and reports already_completed.
    """
    batch_node = find_batch(user, batch.course_batch_id)
    course_node = find_course(batch_node, course.course_id)
    exercise_node = find_exercise(course_node, exercise.exercise_id)

    if node_status(exercise_node) == ProgressStatus.COMPLETED:
        return CompletionOutcome(
            awarded_xp=0,
            already_completed=True,
            exercise_status=ProgressStatus.COMPLETED,
            course_progress=ratio(course_node.completed_exercises_count, course_node.total_exercises_in_course),
        )

    now = now or datetime.utcnow()

    awarded = policy.award_xp(exercise)
    user.xp = user.xp + awarded
    user.level = policy.next_level(user.level, user.xp)

    # Materialize missing ancestry top-down; totals are snapshotted here only
    if batch_node is None:
        batch_node = BatchProgress(
            course_batch_id=batch.course_batch_id,
            total_courses_in_batch=len(batch.course_list),
        )
        user.progress.append(batch_node)

    if course_node is None:
        course_node = CourseProgress(
            course_id=course.course_id,
            total_exercises_in_course=len(course.exercise_batch_list),
        )
        batch_node.courses.append(course_node)

    if exercise_node is None:
        exercise_node = ExerciseProgress(exercise_id=exercise.exercise_id)
        course_node.exercises.append(exercise_node)

    exercise_node.status = ProgressStatus.COMPLETED
    exercise_node.last_attempted = now
    if score is not None:
        exercise_node.score = score

    # New and existing course nodes both start from the count before this exercise
    course_node.completed_exercises_count += 1

    course_completed = False
    if (course_node.status != ProgressStatus.COMPLETED
            and course_node.completed_exercises_count >= course_node.total_exercises_in_course):
        course_node.status = ProgressStatus.COMPLETED
        batch_node.completed_courses_count += 1
        course_completed = True

    batch_completed = False
    if (batch_node.status != ProgressStatus.COMPLETED
            and batch_node.completed_courses_count >= batch_node.total_courses_in_batch):
        batch_node.status = ProgressStatus.COMPLETED
        batch_completed = True

    return CompletionOutcome(
        awarded_xp=awarded,
        already_completed=False,
        exercise_status=ProgressStatus.COMPLETED,
        course_progress=ratio(course_node.completed_exercises_count, course_node.total_exercises_in_course),
        course_completed=course_completed,
        batch_completed=batch_completed,
    )

# ==================== INVARIANTS ====================

def check_invariants(user: UserProgress) -> List[str]:
    """
    Rollup consistency problems in the tree, empty when consistent.
    Used by tests and before persisting.
    """
    problems = []
    for batch in user.progress:
        completed_courses = 0
        for course in batch.courses:
            done = sum(1 for e in course.exercises if e.status == ProgressStatus.COMPLETED)
            if done != course.completed_exercises_count:
                problems.append(
                    f"course {course.course_id}: count {course.completed_exercises_count} != completed {done}"
                )
            is_done = course.completed_exercises_count >= course.total_exercises_in_course
            if is_done != (course.status == ProgressStatus.COMPLETED):
                problems.append(f"course {course.course_id}: status {course.status} disagrees with counters")
            if course.status == ProgressStatus.COMPLETED:
                completed_courses += 1
        if completed_courses != batch.completed_courses_count:
            problems.append(
                f"batch {batch.course_batch_id}: count {batch.completed_courses_count} != completed {completed_courses}"
            )
        is_done = batch.completed_courses_count >= batch.total_courses_in_batch
        if is_done != (batch.status == ProgressStatus.COMPLETED):
            problems.append(f"batch {batch.course_batch_id}: status {batch.status} disagrees with counters")
    return problems

# ==================== SUMMARY ====================

def build_progress_summary(user: UserProgress, batches: List[CourseBatch]) -> Dict:
    """
    Progress tree with completion ratios and stage unlocking.
    Batches are ordered by stage; the first is always unlocked, every later
    one unlocks once the batch before it is completed.
    """
    ordered = sorted(batches, key=lambda b: (b.stage, b.course_batch_id))

    batch_entries = []
    previous_completed = True
    for catalog_batch in ordered:
        node = find_batch(user, catalog_batch.course_batch_id)
        status = node_status(node)
        entry = {
            "courseBatchId": catalog_batch.course_batch_id,
            "stage": catalog_batch.stage,
            "unlocked": previous_completed,
            "status": status.value,
            "completedCoursesCount": node.completed_courses_count if node else 0,
            "totalCoursesInBatch": node.total_courses_in_batch if node else len(catalog_batch.course_list),
            "batchProgress": ratio(node.completed_courses_count, node.total_courses_in_batch) if node else 0.0,
            "courses": [
                {
                    "courseId": c.course_id,
                    "status": c.status,
                    "completedExercisesCount": c.completed_exercises_count,
                    "totalExercisesInCourse": c.total_exercises_in_course,
                    "courseProgress": ratio(c.completed_exercises_count, c.total_exercises_in_course),
                    "exercises": [
                        {
                            "exerciseId": e.exercise_id,
                            "status": e.status,
                            "score": e.score,
                            "lastAttempted": e.last_attempted.isoformat() if e.last_attempted else None,
                        }
                        for e in c.exercises
                    ],
                }
                for c in (node.courses if node else [])
            ],
        }
        batch_entries.append(entry)
        previous_completed = status == ProgressStatus.COMPLETED

    return {
        "userId": user.user_id,
        "xp": user.xp,
        "level": user.level,
        "batches": batch_entries,
    }
