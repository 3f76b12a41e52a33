"""Point totals per user across match, winner and award predictions."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional

from django.contrib.auth import get_user_model
from django.db.models import Count, F, Q, Sum

from .models import AwardPrediction, Prediction, TournamentWinnerPrediction


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: int
    username: str
    match_points: int
    winner_points: int
    award_points: int
    predictions_count: int
    exact_scores: int

    @property
    def total_points(self) -> int:
        return self.match_points + self.winner_points + self.award_points

    def as_dict(self) -> dict:
        return {
            'rank': self.rank,
            'id': self.user_id,
            'username': self.username,
            'match_points': self.match_points,
            'winner_points': self.winner_points,
            'award_points': self.award_points,
            'total_points': self.total_points,
            'predictions_count': self.predictions_count,
            'exact_scores': self.exact_scores,
        }


def _scoped_rows(tournament_id: Optional[int] = None):
    match_rows = Prediction.objects.all()
    winner_rows = TournamentWinnerPrediction.objects.all()
    award_rows = AwardPrediction.objects.all()
    if tournament_id is not None:
        match_rows = match_rows.filter(match__tournament_id=tournament_id)
        winner_rows = winner_rows.filter(tournament_id=tournament_id)
        award_rows = award_rows.filter(tournament_id=tournament_id)
    return match_rows, winner_rows, award_rows


def total_points_for(user_id: int, tournament_id: Optional[int] = None) -> int:
    """Return the total points of a single user, as counted on the leaderboard."""

    match_rows, winner_rows, award_rows = _scoped_rows(tournament_id)
    match_points = match_rows.filter(user_id=user_id).aggregate(points=Sum("points_earned"))["points"]
    winner_points = winner_rows.filter(user_id=user_id).aggregate(points=Sum("points_earned"))["points"]
    award_points = award_rows.filter(user_id=user_id).aggregate(
        points=Sum(F("best_player_points") + F("best_goal_scorer_points"))
    )["points"]
    return (match_points or 0) + (winner_points or 0) + (award_points or 0)


def build_leaderboard(tournament_id: Optional[int] = None) -> List[LeaderboardEntry]:
    """Return every active user ranked by total points.

    Each prediction kind is aggregated in its own query and merged per user
    so the sums are not multiplied by joins. Ties share a rank and are
    listed alphabetically.
    """

    match_rows, winner_rows, award_rows = _scoped_rows(tournament_id)

    totals: Dict[int, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
    for row in match_rows.order_by().values('user_id').annotate(
        points=Sum('points_earned'),
        count=Count('id'),
        exact=Count('id', filter=Q(rule_applied=Prediction.RuleApplied.EXACT_SCORE)),
    ):
        entry = totals[row['user_id']]
        entry['match_points'] = row['points'] or 0
        entry['predictions_count'] = row['count']
        entry['exact_scores'] = row['exact']
    for row in winner_rows.order_by().values('user_id').annotate(points=Sum('points_earned')):
        totals[row['user_id']]['winner_points'] = row['points'] or 0
    for row in award_rows.order_by().values('user_id').annotate(
        points=Sum(F('best_player_points') + F('best_goal_scorer_points'))
    ):
        totals[row['user_id']]['award_points'] = row['points'] or 0

    users = get_user_model().objects.filter(is_active=True)
    rows = []
    for user in users:
        values = totals.get(user.pk, {})
        rows.append(
            (
                user,
                values.get('match_points', 0),
                values.get('winner_points', 0),
                values.get('award_points', 0),
                values.get('predictions_count', 0),
                values.get('exact_scores', 0),
            )
        )
    rows.sort(key=lambda row: (-(row[1] + row[2] + row[3]), row[0].get_username().lower()))

    entries: List[LeaderboardEntry] = []
    previous_total = None
    rank = 0
    for position, (user, match_points, winner_points, award_points, count, exact) in enumerate(rows, start=1):
        total = match_points + winner_points + award_points
        if total != previous_total:
            rank = position
            previous_total = total
        entries.append(
            LeaderboardEntry(
                rank=rank,
                user_id=user.pk,
                username=user.get_username(),
                match_points=match_points,
                winner_points=winner_points,
                award_points=award_points,
                predictions_count=count,
                exact_scores=exact,
            )
        )
    return entries
