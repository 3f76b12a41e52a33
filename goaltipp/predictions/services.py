"""Submission of match, tournament winner and award predictions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional, Tuple

from django.db import transaction

from goaltipp.tournaments.models import Match, Player, Team, Tournament

from .exceptions import InvalidScoreError, InvalidSelectionError
from .models import AwardPrediction, Prediction, TournamentWinnerPrediction
from .window import ensure_can_predict, ensure_can_predict_award, ensure_can_predict_tournament

logger = logging.getLogger(__name__)

MAX_GOALS = 99


def clean_score(value: Any, label: str = 'score') -> int:
    """Return ``value`` as a goal count or raise :class:`InvalidScoreError`."""

    if value is None or value == '' or isinstance(value, bool):
        raise InvalidScoreError(f'{label} is required and must be an integer.')
    if isinstance(value, float) and not value.is_integer():
        raise InvalidScoreError(f'{label} must be an integer.')
    try:
        goals = int(value)
    except (TypeError, ValueError):
        raise InvalidScoreError(f'{label} must be an integer.') from None
    if goals < 0 or goals > MAX_GOALS:
        raise InvalidScoreError(f'{label} must be between 0 and {MAX_GOALS}.')
    return goals


def submit_prediction(
    user,
    match: Match,
    team1_score: Any,
    team2_score: Any,
    *,
    now: Optional[datetime] = None,
) -> Tuple[Prediction, bool]:
    """Create or overwrite ``user``'s prediction for ``match``.

    The prediction window is checked against the locked match row so a
    result set concurrently cannot slip past the check.
    """

    team1_goals = clean_score(team1_score, 'team1_score')
    team2_goals = clean_score(team2_score, 'team2_score')

    with transaction.atomic():
        match = Match.objects.select_for_update().get(pk=match.pk)
        ensure_can_predict(match, now)
        prediction, created = Prediction.objects.update_or_create(
            user=user,
            match=match,
            defaults={
                'team1_score': team1_goals,
                'team2_score': team2_goals,
            },
        )

    logger.debug(
        "%s prediction %s-%s by %s for match %s",
        'Created' if created else 'Updated',
        team1_goals,
        team2_goals,
        user,
        match.pk,
    )
    return prediction, created


def ensure_team_in_tournament(tournament: Tournament, team: Team) -> None:
    squads = tournament.squads.all()
    if squads.exists() and not squads.filter(team=team).exists():
        raise InvalidSelectionError(f'{team} does not play in {tournament}.')


def ensure_player_in_tournament(tournament: Tournament, player: Optional[Player]) -> None:
    if player is not None and player.tournament_id != tournament.pk:
        raise InvalidSelectionError(f'{player} is not registered for {tournament}.')


def save_winner_prediction(
    user,
    tournament: Tournament,
    team: Team,
    *,
    now: Optional[datetime] = None,
) -> Tuple[TournamentWinnerPrediction, bool]:
    """Store ``user``'s tournament winner pick.

    Closed once the tournament started or its winner has been declared.
    """

    ensure_team_in_tournament(tournament, team)
    with transaction.atomic():
        tournament = Tournament.objects.select_for_update().get(pk=tournament.pk)
        ensure_can_predict_award(tournament, 'winner', now)
        return TournamentWinnerPrediction.objects.update_or_create(
            user=user,
            tournament=tournament,
            defaults={'team': team},
        )


def save_award_prediction(
    user,
    tournament: Tournament,
    *,
    best_player: Optional[Player] = None,
    best_goal_scorer: Optional[Player] = None,
    now: Optional[datetime] = None,
) -> Tuple[AwardPrediction, bool]:
    """Store the best player and best goal scorer picks.

    A slot passed as ``None`` keeps its previous pick. A slot whose award
    has already been declared can no longer be changed.
    """

    ensure_player_in_tournament(tournament, best_player)
    ensure_player_in_tournament(tournament, best_goal_scorer)

    defaults = {}
    if best_player is not None:
        defaults['best_player'] = best_player
    if best_goal_scorer is not None:
        defaults['best_goal_scorer'] = best_goal_scorer

    with transaction.atomic():
        tournament = Tournament.objects.select_for_update().get(pk=tournament.pk)
        ensure_can_predict_tournament(tournament, now)
        for slot in defaults:
            ensure_can_predict_award(tournament, slot, now)
        return AwardPrediction.objects.update_or_create(
            user=user,
            tournament=tournament,
            defaults=defaults,
        )
