"""
Scoring policy: how much XP an exercise is worth and which level an XP
total maps to. Kept apart from the completion engine so tuning the game
never touches the progress-tree logic.
"""

from typing import Callable, Optional

from app.courses.config import XP_PER_DIFFICULTY_LEVEL, XP_PER_LEVEL
from app.courses.models import Exercise


def difficulty_xp(difficulty_level: int, multiplier: int = XP_PER_DIFFICULTY_LEVEL) -> int:
    """XP for a first-time completion: difficulty * multiplier"""
    return max(int(difficulty_level), 0) * multiplier


def level_for_xp(xp: int, xp_per_level: int = XP_PER_LEVEL) -> int:
    """floor(1 + xp / xp_per_level)"""
    return 1 + max(xp, 0) // xp_per_level


class ScoringPolicy:
    """
    Pluggable XP / level rules.

    Pass custom callables to change the curve without subclassing:

        ScoringPolicy(award=lambda ex: 50, level=lambda xp: 1 + xp // 500)
    """

    def __init__(
        self,
        award: Optional[Callable[[Exercise], int]] = None,
        level: Optional[Callable[[int], int]] = None,
    ):
        self._award = award or (lambda exercise: difficulty_xp(exercise.difficulty_level))
        self._level = level or level_for_xp

    def award_xp(self, exercise: Exercise) -> int:
        return int(self._award(exercise))

    def next_level(self, current_level: int, xp: int) -> int:
        # Levels only ever go up
        return max(current_level, int(self._level(xp)))


DEFAULT_SCORING_POLICY = ScoringPolicy()
