from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum

# ==================== ENUMS ====================

class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class _Document(BaseModel):
    """Stored shape: enum values as plain strings, assignments re-validated"""

    class Config:
        use_enum_values = True
        validate_assignment = True
        validate_default = True

# ==================== CATALOG MODELS (read-only) ====================

class CourseBatch(_Document):
    course_batch_id: str
    course_list: List[str] = []
    stage: int = 1

class Course(_Document):
    course_id: str
    course_batch_id: Optional[str] = None
    title: Optional[str] = None
    exercise_batch_list: List[str] = []

class Exercise(_Document):
    exercise_id: str
    course_id: Optional[str] = None
    course_batch_id: Optional[str] = None
    difficulty_level: int = Field(0, ge=0)
    question: Optional[str] = None
    options: List[str] = []
    answer: Optional[str] = None

# ==================== PROGRESS TREE ====================

class ExerciseProgress(_Document):
    exercise_id: str
    status: ProgressStatus = ProgressStatus.IN_PROGRESS
    score: float = Field(0, ge=0)
    last_attempted: Optional[datetime] = None

class CourseProgress(_Document):
    course_id: str
    status: ProgressStatus = ProgressStatus.IN_PROGRESS
    completed_exercises_count: int = Field(0, ge=0)
    total_exercises_in_course: int = Field(0, ge=0)  # snapshot at creation
    exercises: List[ExerciseProgress] = Field(default_factory=list)

class BatchProgress(_Document):
    course_batch_id: str
    status: ProgressStatus = ProgressStatus.IN_PROGRESS
    completed_courses_count: int = Field(0, ge=0)
    total_courses_in_batch: int = Field(0, ge=0)  # snapshot at creation
    courses: List[CourseProgress] = Field(default_factory=list)

class UserProgress(_Document):
    """The part of a users document owned by the completion engine"""
    user_id: str
    username: str
    email: Optional[str] = None
    nickname: Optional[str] = None
    profile_picture: Optional[str] = None
    role: UserRole = UserRole.USER
    xp: int = Field(0, ge=0)
    level: int = Field(1, ge=1)
    version: int = Field(0, ge=0)
    progress: List[BatchProgress] = Field(default_factory=list)

# ==================== REQUEST / RESULT MODELS ====================

class CompleteExerciseRequest(BaseModel):
    score: Optional[float] = Field(None, ge=0)

class ExerciseStatus(BaseModel):
    course_batch_id: str
    course_id: str
    exercise_id: str
    status: ProgressStatus

class CompletionResult(BaseModel):
    awarded_xp: int
    current_xp: int
    level: int
    already_completed: bool
    exercise_status: ExerciseStatus
    course_progress: float

# ==================== AUTH ====================

class CurrentUser(BaseModel):
    user_id: str
    username: Optional[str] = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
