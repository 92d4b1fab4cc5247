import pytest

from app.courses.models import Exercise
from app.courses.policies import DEFAULT_SCORING_POLICY, ScoringPolicy, difficulty_xp, level_for_xp


@pytest.mark.parametrize("difficulty, expected", [(0, 0), (1, 10), (3, 30), (7, 70)])
def test_difficulty_xp_is_ten_per_level(difficulty, expected):
    assert difficulty_xp(difficulty) == expected


@pytest.mark.parametrize("xp, expected", [(0, 1), (99, 1), (100, 2), (105, 2), (250, 3)])
def test_level_for_xp(xp, expected):
    assert level_for_xp(xp) == expected


def test_default_policy_awards_difficulty_times_ten():
    exercise = Exercise(exercise_id="E1", difficulty_level=4)
    assert DEFAULT_SCORING_POLICY.award_xp(exercise) == 40


def test_level_never_goes_down():
    assert DEFAULT_SCORING_POLICY.next_level(current_level=7, xp=105) == 7
    assert DEFAULT_SCORING_POLICY.next_level(current_level=1, xp=105) == 2


def test_custom_callables_replace_the_curve():
    policy = ScoringPolicy(award=lambda ex: ex.difficulty_level ** 2, level=lambda xp: 1 + xp // 10)
    assert policy.award_xp(Exercise(exercise_id="E1", difficulty_level=5)) == 25
    assert policy.next_level(1, 25) == 3
