"""Rules deciding when predictions may be created or changed."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from django.utils import timezone

from goaltipp.tournaments.models import Match, Tournament

from .exceptions import PredictionClosedError

_CLOSED_STATUSES = frozenset({Match.Status.LIVE, Match.Status.COMPLETED})


def can_predict(match: Match, now: Optional[datetime] = None) -> bool:
    """Return ``True`` while ``match`` accepts new or updated predictions.

    A live or completed status closes the window regardless of the clock.
    """

    if match.status in _CLOSED_STATUSES:
        return False
    now = now or timezone.now()
    return now < match.match_date


def ensure_can_predict(match: Match, now: Optional[datetime] = None) -> None:
    if not can_predict(match, now):
        raise PredictionClosedError()


def tournament_started(tournament: Tournament, now: Optional[datetime] = None) -> bool:
    """Return ``True`` once ``tournament`` has begun.

    A tournament counts as started on its start date, or as soon as one of
    its matches kicked off or left the upcoming status.
    """

    now = now or timezone.now()
    if tournament.start_date and timezone.localdate(now) >= tournament.start_date:
        return True
    matches = Match.objects.filter(tournament=tournament)
    return (
        matches.filter(match_date__lte=now).exists()
        or matches.exclude(status=Match.Status.UPCOMING).exists()
    )


def can_predict_tournament(tournament: Tournament, now: Optional[datetime] = None) -> bool:
    return not tournament_started(tournament, now)


def ensure_can_predict_tournament(tournament: Tournament, now: Optional[datetime] = None) -> None:
    if tournament_started(tournament, now):
        raise PredictionClosedError("Predictions are closed for this tournament")


AWARD_MARKERS = {
    'winner': 'winner_awarded_at',
    'best_player': 'best_player_awarded_at',
    'best_goal_scorer': 'best_goal_scorer_awarded_at',
}


def award_declared(tournament: Tournament, award: str) -> bool:
    return getattr(tournament, AWARD_MARKERS[award]) is not None


def ensure_can_predict_award(tournament: Tournament, award: str, now: Optional[datetime] = None) -> None:
    """Reject picks for ``award`` once the tournament started or the award was declared."""

    ensure_can_predict_tournament(tournament, now)
    if award_declared(tournament, award):
        raise PredictionClosedError("This award has already been declared")
