"""Awarding points for match results, tournament winners and player awards."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from django.db import transaction
from django.db.models import Exists, OuterRef, Q
from django.utils import timezone

from goaltipp.tournaments.models import Match, Player, Team, Tournament

from .exceptions import InvalidScoreError
from .models import AwardPrediction, Prediction, TournamentWinnerPrediction
from .rules import resolve_rule_set
from .scoring import ScoreBreakdown, score_prediction
from .services import clean_score, ensure_player_in_tournament, ensure_team_in_tournament

logger = logging.getLogger(__name__)

AWARD_SLOTS = ('best_player', 'best_goal_scorer')


@dataclass(frozen=True)
class ScoredPrediction:
    prediction: Prediction
    breakdown: ScoreBreakdown


@dataclass(frozen=True)
class MatchScoringResult:
    """Summary returned when a match is scored."""

    match: Match
    scored: List[ScoredPrediction] = field(default_factory=list)
    failed_prediction_ids: List[int] = field(default_factory=list)
    already_scored: bool = False

    @property
    def total_awarded_points(self) -> int:
        return sum(entry.breakdown.points for entry in self.scored)

    @property
    def scored_count(self) -> int:
        return len(self.scored)

    @property
    def failed_count(self) -> int:
        return len(self.failed_prediction_ids)


@dataclass(frozen=True)
class AwardResult:
    """Summary of a tournament winner or player award declaration."""

    tournament: Tournament
    award: str
    points: int = 0
    awarded_count: int = 0
    evaluated_count: int = 0
    already_awarded: bool = False

    @property
    def total_awarded_points(self) -> int:
        return self.points * self.awarded_count


@dataclass(frozen=True)
class ProcessPendingResult:
    """Summary returned by :func:`process_pending_matches`."""

    matches_processed: int
    predictions_scored: int
    predictions_failed: int
    matches_with_errors: List[str]


def set_match_result(
    match: Match,
    team1_score: Any,
    team2_score: Any,
    *,
    force: bool = False,
) -> MatchScoringResult:
    """Record the final score of ``match`` and score its predictions.

    A match that is already completed and scored is left untouched unless
    ``force`` is set, in which case the new result replaces the old one and
    every prediction is scored again (points are reassigned, not added).
    """

    team1_goals = clean_score(team1_score, 'team1_score')
    team2_goals = clean_score(team2_score, 'team2_score')

    with transaction.atomic():
        locked = Match.objects.select_for_update().get(pk=match.pk)
        if locked.status == Match.Status.COMPLETED and locked.scored_at and not force:
            logger.info("Match %s already has a scored result; ignoring new result", locked.pk)
            return MatchScoringResult(match=locked, already_scored=True)

        locked.team1_score = team1_goals
        locked.team2_score = team2_goals
        locked.status = Match.Status.COMPLETED
        locked.save(update_fields=['team1_score', 'team2_score', 'status', 'updated_at'])
        result = score_match(locked, force=force)

    match.refresh_from_db()
    return result


def score_match(match: Match, *, force: bool = False) -> MatchScoringResult:
    """Score every prediction of a completed ``match`` exactly once.

    The ``scored_at`` marker is checked and written under a row lock inside
    the same transaction as the prediction points. A prediction that cannot
    be scored is logged, reset to unscored and skipped without affecting the
    others. Once the match is scored, later calls only pick up predictions
    left unscored by such failures; ``force`` rescores all of them.
    """

    scored: List[ScoredPrediction] = []
    failed: List[int] = []

    with transaction.atomic():
        match = Match.objects.select_for_update().get(pk=match.pk)
        if match.status != Match.Status.COMPLETED or not match.has_result:
            raise InvalidScoreError("Match must be completed with a result before scoring.")

        predictions = Prediction.objects.filter(match=match)
        if match.scored_at and not force:
            predictions = predictions.filter(scored_at__isnull=True)
            if not predictions.exists():
                return MatchScoringResult(match=match, already_scored=True)

        rules = resolve_rule_set(match.tournament_id)
        actual = (match.team1_score, match.team2_score)
        now = timezone.now()

        for prediction in predictions.select_related('user').order_by('pk'):
            try:
                with transaction.atomic():
                    breakdown = score_prediction(
                        (prediction.team1_score, prediction.team2_score), actual, rules
                    )
                    prediction.points_earned = breakdown.points
                    prediction.rule_applied = breakdown.rule_applied
                    prediction.scored_at = now
                    prediction.save(update_fields=['points_earned', 'rule_applied', 'scored_at'])
            except Exception:
                logger.exception(
                    "Failed to score prediction %s for match %s", prediction.pk, match.pk
                )
                # Points from an earlier result must not survive a failed rescore.
                Prediction.objects.filter(pk=prediction.pk).update(
                    points_earned=0, rule_applied='', scored_at=None
                )
                failed.append(prediction.pk)
                continue
            scored.append(ScoredPrediction(prediction=prediction, breakdown=breakdown))

        match.scored_at = now
        match.save(update_fields=['scored_at'])

    logger.info(
        "Scored match %s: %d predictions, %d points, %d failed",
        match.pk,
        len(scored),
        sum(entry.breakdown.points for entry in scored),
        len(failed),
    )
    return MatchScoringResult(match=match, scored=scored, failed_prediction_ids=failed)


def declare_tournament_winner(
    tournament: Tournament,
    team: Team,
    *,
    force: bool = False,
) -> AwardResult:
    """Record the winner of ``tournament`` and award the ``tournament_winner`` bonus.

    The bonus can only be attributed once. Later declarations are ignored
    unless ``force`` is set, which replaces the winner and reassigns points.
    """

    ensure_team_in_tournament(tournament, team)

    with transaction.atomic():
        locked = Tournament.objects.select_for_update().get(pk=tournament.pk)
        if locked.winner_awarded_at and not force:
            logger.info("Tournament %s winner already awarded; ignoring declaration", locked.pk)
            return AwardResult(tournament=locked, award='tournament_winner', already_awarded=True)

        points = resolve_rule_set(locked.pk).get('tournament_winner')
        now = timezone.now()

        predictions = TournamentWinnerPrediction.objects.filter(tournament=locked)
        evaluated = predictions.count()
        awarded = predictions.filter(team=team).update(points_earned=points, awarded_at=now)
        predictions.exclude(team=team).update(points_earned=0, awarded_at=now)

        locked.winner = team
        locked.winner_awarded_at = now
        locked.save(update_fields=['winner', 'winner_awarded_at'])

    tournament.refresh_from_db()
    logger.info(
        "Tournament %s winner %s: %d of %d predictions awarded %d points",
        tournament.pk,
        team.pk,
        awarded,
        evaluated,
        points,
    )
    return AwardResult(
        tournament=tournament,
        award='tournament_winner',
        points=points,
        awarded_count=awarded,
        evaluated_count=evaluated,
    )


def _award_player_slot(tournament: Tournament, slot: str, player: Player, *, force: bool) -> AwardResult:
    marker = f'{slot}_awarded_at'
    if getattr(tournament, marker) and not force:
        logger.info("Tournament %s %s already awarded; ignoring declaration", tournament.pk, slot)
        return AwardResult(tournament=tournament, award=slot, already_awarded=True)

    points = resolve_rule_set(tournament.pk).get(slot)
    now = timezone.now()

    predictions = AwardPrediction.objects.filter(tournament=tournament).exclude(**{f'{slot}__isnull': True})
    evaluated = predictions.count()
    awarded = predictions.filter(**{slot: player}).update(
        **{f'{slot}_points': points, f'{slot}_awarded_at': now}
    )
    predictions.exclude(**{slot: player}).update(
        **{f'{slot}_points': 0, f'{slot}_awarded_at': now}
    )

    setattr(tournament, slot, player)
    setattr(tournament, marker, now)
    tournament.save(update_fields=[slot, marker])
    return AwardResult(
        tournament=tournament,
        award=slot,
        points=points,
        awarded_count=awarded,
        evaluated_count=evaluated,
    )


def declare_award_winners(
    tournament: Tournament,
    *,
    best_player: Optional[Player] = None,
    best_goal_scorer: Optional[Player] = None,
    force: bool = False,
) -> List[AwardResult]:
    """Record the best player and/or best goal scorer and award their bonuses.

    Each slot is resolved independently: declaring the best player does not
    close the best goal scorer slot and vice versa.
    """

    selections = {'best_player': best_player, 'best_goal_scorer': best_goal_scorer}
    for player in selections.values():
        ensure_player_in_tournament(tournament, player)

    results: List[AwardResult] = []
    with transaction.atomic():
        locked = Tournament.objects.select_for_update().get(pk=tournament.pk)
        for slot in AWARD_SLOTS:
            player = selections[slot]
            if player is None:
                continue
            results.append(_award_player_slot(locked, slot, player, force=force))

    tournament.refresh_from_db()
    for result in results:
        logger.info(
            "Tournament %s %s: %d of %d predictions awarded %d points%s",
            tournament.pk,
            result.award,
            result.awarded_count,
            result.evaluated_count,
            result.points,
            ' (already awarded)' if result.already_awarded else '',
        )
    return results


def pending_matches(*, force: bool = False):
    """Completed matches with a result that still have scoring to do.

    A match is pending until it is marked scored and none of its predictions
    is left unscored. With ``force`` every completed match is returned.
    """

    matches = Match.objects.filter(
        status=Match.Status.COMPLETED,
        team1_score__isnull=False,
        team2_score__isnull=False,
    )
    if not force:
        unscored = Prediction.objects.filter(match=OuterRef('pk'), scored_at__isnull=True)
        matches = matches.filter(Q(scored_at__isnull=True) | Exists(unscored))
    return matches


def process_pending_matches(*, force: bool = False, matches=None) -> ProcessPendingResult:
    """Score completed matches whose predictions have not been scored yet.

    This is the retry path for results whose scoring was interrupted or
    left failed predictions behind. With ``force`` every completed match is
    scored again.
    """

    if matches is None:
        matches = pending_matches(force=force)

    processed = 0
    scored = 0
    failed = 0
    errors: List[str] = []
    for match in matches.order_by('match_date', 'pk'):
        try:
            result = score_match(match, force=force)
        except Exception as exc:
            logger.exception("Error scoring match %s", match.pk)
            errors.append(f"{match}: {exc}")
            continue
        if result.already_scored:
            continue
        processed += 1
        scored += result.scored_count
        failed += result.failed_count

    return ProcessPendingResult(
        matches_processed=processed,
        predictions_scored=scored,
        predictions_failed=failed,
        matches_with_errors=errors,
    )
