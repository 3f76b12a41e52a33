"""Pure scoring of a predicted score against the actual result.

Precedence:

1. An exact prediction earns ``exact_score`` and nothing else.
2. Otherwise both scores are classified as a team 1 win, a team 2 win or a
   draw. A wrong classification earns nothing at all.
3. A correct draw earns ``correct_draw`` only.
4. A correct winner earns ``correct_winner`` plus either
   ``correct_goal_diff`` (same goal difference) or ``one_team_goals`` for
   each team whose goals were predicted exactly.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NamedTuple

from .rules import RuleSet


class Outcome(enum.Enum):
    WIN1 = 'win1'
    WIN2 = 'win2'
    DRAW = 'draw'


class ScorePair(NamedTuple):
    team1: int
    team2: int


@dataclass(frozen=True)
class ScoreBreakdown:
    points: int
    rule_applied: str
    goal_diff_bonus: bool = False
    one_team_goals_count: int = 0


def classify(score: ScorePair) -> Outcome:
    if score.team1 > score.team2:
        return Outcome.WIN1
    if score.team1 < score.team2:
        return Outcome.WIN2
    return Outcome.DRAW


def _validate(score: ScorePair, label: str) -> ScorePair:
    team1, team2 = score
    for value in (team1, team2):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{label} score must be a pair of integers, got {score!r}")
        if value < 0:
            raise ValueError(f"{label} score cannot be negative, got {score!r}")
    return ScorePair(team1, team2)


def score_prediction(predicted, actual, rules: RuleSet) -> ScoreBreakdown:
    """Return the points ``predicted`` earns against ``actual``.

    ``predicted`` and ``actual`` are ``(team1, team2)`` pairs. Raises
    ``ValueError`` for negative or non-integer scores.
    """

    predicted = _validate(ScorePair(*predicted), 'Predicted')
    actual = _validate(ScorePair(*actual), 'Actual')

    if predicted == actual:
        return ScoreBreakdown(points=rules.get('exact_score'), rule_applied='exact_score')

    predicted_outcome = classify(predicted)
    if predicted_outcome is not classify(actual):
        return ScoreBreakdown(points=0, rule_applied='none')

    if predicted_outcome is Outcome.DRAW:
        return ScoreBreakdown(points=rules.get('correct_draw'), rule_applied='correct_draw')

    points = rules.get('correct_winner')
    if predicted.team1 - predicted.team2 == actual.team1 - actual.team2:
        return ScoreBreakdown(
            points=points + rules.get('correct_goal_diff'),
            rule_applied='correct_winner',
            goal_diff_bonus=True,
        )

    exact_teams = (predicted.team1 == actual.team1) + (predicted.team2 == actual.team2)
    return ScoreBreakdown(
        points=points + exact_teams * rules.get('one_team_goals'),
        rule_applied='correct_winner',
        one_team_goals_count=exact_teams,
    )
