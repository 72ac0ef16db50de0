"""
Set score validation for beach-volleyball style scoring.

Each validator returns an error message, or None when the scores are acceptable.
"""
from typing import Optional, Sequence

from tourney.models import SetScore


def _is_valid_value(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_score_inputs(scores: Sequence[SetScore]) -> Optional[str]:
    """Every score must be a non-negative integer pair."""
    for i, score in enumerate(scores):
        if len(score) != 2:
            return f"Set {i + 1}: expected two scores"
        for side, value in zip(('Team A', 'Team B'), score):
            if not _is_valid_value(value):
                return f"Set {i + 1}: {side} - only whole numbers of 0 or more are allowed."
    return None


def validate_set(score: SetScore, set_index: int, points_limit: int) -> Optional[str]:
    score_a, score_b = score
    high = max(score_a, score_b)
    low = min(score_a, score_b)
    if score_a == score_b:
        return f"Set {set_index + 1}: a set cannot end in a tie."
    if high < points_limit:
        return f"Set {set_index + 1}: one team must reach {points_limit} points."
    if high == points_limit and low > points_limit - 2:
        return f"Set {set_index + 1}: at {points_limit}:{low} the set must be won by 2 points."
    if high > points_limit and high - low != 2:
        return f"Set {set_index + 1}: beyond {points_limit} points the set is won by exactly 2."
    return None


def validate_scores(scores: Sequence[SetScore], points_limit: int) -> Optional[str]:
    for i, score in enumerate(scores):
        error = validate_set(score, i, points_limit)
        if error:
            return error
    return None


def validate_best_of_three(scores: Sequence[SetScore], points_per_set: int,
                           points_per_third_set: int = 15) -> Optional[str]:
    if len(scores) > 3:
        return f"A best-of-three match has at most 3 sets, got {len(scores)}."
    sets_a = 0
    sets_b = 0
    for i, score in enumerate(scores):
        if score[0] == 0 and score[1] == 0:
            continue
        limit = points_per_third_set if i == 2 else points_per_set
        error = validate_set(score, i, limit)
        if error:
            return error
        if score[0] > score[1]:
            sets_a += 1
        else:
            sets_b += 1

    if sets_a < 2 and sets_b < 2:
        return "A team must win 2 sets to finish the match."
    if len(scores) > 2 and (scores[2][0] > 0 or scores[2][1] > 0):
        first_two_a = sum(1 for s in scores[:2] if s[0] > s[1])
        if first_two_a in (0, 2):
            return "The third set is only played when the first two sets are split 1:1."
    return None


def validate_match_scores(scores: Sequence[SetScore], sets_per_match: int, points_per_set: int,
                          points_per_third_set: int = 15) -> Optional[str]:
    """Full validation of a match result for the configured format."""
    error = validate_score_inputs(scores)
    if error:
        return error
    if sets_per_match == 3:
        return validate_best_of_three(scores, points_per_set, points_per_third_set)
    if len(scores) != sets_per_match:
        return f"Expected {sets_per_match} set(s), got {len(scores)}."
    return validate_scores(scores, points_per_set)


def required_sets_count(scores: Sequence[SetScore], sets_per_match: int) -> int:
    """Sets that must be entered: best of three needs a third set only after a 1:1 split."""
    if sets_per_match != 3:
        return sets_per_match
    if len(scores) >= 2:
        first_two_a = sum(1 for s in scores[:2] if s[0] > s[1])
        first_two_b = sum(1 for s in scores[:2] if s[1] > s[0])
        if first_two_a == 2 or first_two_b == 2:
            return 2
    return 3
