import json
import logging
from typing import Any, Optional

from django.contrib.auth import get_user_model
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from goaltipp.tournaments.models import Match, Player, Team, Tournament
from goaltipp.user_context import api_login_required, api_staff_required, get_active_user

from . import scoring_service
from .exceptions import InvalidSelectionError, PredictionError
from .leaderboard import build_leaderboard, total_points_for
from .models import AwardPrediction, Prediction, TournamentWinnerPrediction
from .rules import list_scoring_rules, update_scoring_rules
from .services import save_award_prediction, save_winner_prediction, submit_prediction
from .window import can_predict, tournament_started

logger = logging.getLogger(__name__)


def _load_json(request) -> dict:
    try:
        data = json.loads(request.body or b'{}')
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValueError('Invalid JSON') from None
    if not isinstance(data, dict):
        raise ValueError('Invalid JSON')
    return data


def _parse_id(value: Any, label: str) -> Optional[int]:
    if value in (None, ''):
        return None
    if isinstance(value, bool):
        raise InvalidSelectionError(f'{label} must be an integer.')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidSelectionError(f'{label} must be an integer.') from None


def _parse_force(data: dict) -> bool:
    # Only a JSON true rescores; "false", 1 and the like do not.
    return data.get('force') is True


def _error(message: str, status: int = 400) -> JsonResponse:
    return JsonResponse({'error': message}, status=status)


def _serialize_team(team: Optional[Team]) -> Optional[dict]:
    if team is None:
        return None
    return {'id': team.pk, 'name': team.name, 'short_name': team.short_name, 'flag_url': team.flag_url}


def _serialize_match(match: Match, now=None) -> dict:
    return {
        'id': match.pk,
        'tournament_id': match.tournament_id,
        'team1': _serialize_team(match.team1),
        'team2': _serialize_team(match.team2),
        'match_date': match.match_date.isoformat(),
        'stage': match.stage,
        'status': match.status,
        'team1_score': match.team1_score,
        'team2_score': match.team2_score,
        'can_predict': can_predict(match, now),
    }


def _serialize_tournament(tournament: Tournament, now=None) -> dict:
    return {
        'id': tournament.pk,
        'name': tournament.name,
        'description': tournament.description,
        'logo_url': tournament.logo_url,
        'start_date': tournament.start_date.isoformat() if tournament.start_date else None,
        'end_date': tournament.end_date.isoformat() if tournament.end_date else None,
        'is_active': tournament.is_active,
        'started': tournament_started(tournament, now),
        'winner': _serialize_team(tournament.winner),
        'best_player_id': tournament.best_player_id,
        'best_goal_scorer_id': tournament.best_goal_scorer_id,
    }


def _serialize_player(player: Player) -> dict:
    return {
        'id': player.pk,
        'name': player.name,
        'team_id': player.team_id,
        'team_name': player.team.name if player.team else None,
        'position': player.position,
        'photo_url': player.photo_url,
    }


def _serialize_prediction(prediction: Prediction) -> dict:
    return {
        'id': prediction.pk,
        'user_id': prediction.user_id,
        'match_id': prediction.match_id,
        'team1_score': prediction.team1_score,
        'team2_score': prediction.team2_score,
        'points_earned': prediction.points_earned,
        'rule_applied': prediction.rule_applied,
        'status': prediction.status,
    }


def _serialize_winner_prediction(prediction: Optional[TournamentWinnerPrediction]) -> Optional[dict]:
    if prediction is None:
        return None
    return {
        'tournament_id': prediction.tournament_id,
        'team_id': prediction.team_id,
        'team_name': prediction.team.name,
        'points_earned': prediction.points_earned,
    }


def _serialize_award_prediction(prediction: Optional[AwardPrediction]) -> Optional[dict]:
    if prediction is None:
        return None
    data = {'tournament_id': prediction.tournament_id, 'points_earned': prediction.points_earned}
    for slot in scoring_service.AWARD_SLOTS:
        player = getattr(prediction, slot)
        data[f'{slot}_id'] = player.pk if player else None
        data[f'{slot}_name'] = player.name if player else None
        data[f'{slot}_points'] = getattr(prediction, f'{slot}_points')
    return data


def _serialize_match_result(result: scoring_service.MatchScoringResult) -> dict:
    return {
        'match': _serialize_match(result.match),
        'already_scored': result.already_scored,
        'scored': result.scored_count,
        'failed': result.failed_count,
        'total_points': result.total_awarded_points,
    }


def _serialize_award_result(result: scoring_service.AwardResult) -> dict:
    return {
        'award': result.award,
        'already_awarded': result.already_awarded,
        'points': result.points,
        'awarded': result.awarded_count,
        'evaluated': result.evaluated_count,
    }


def _match_queryset(request):
    matches = Match.objects.select_related('team1', 'team2')
    tournament_id = request.GET.get('tournament')
    if tournament_id:
        try:
            matches = matches.filter(tournament_id=int(tournament_id))
        except ValueError:
            return matches.none()
    return matches


@require_http_methods(["GET"])
def match_list(request):
    now = timezone.now()
    return JsonResponse([_serialize_match(match, now) for match in _match_queryset(request)], safe=False)


@require_http_methods(["GET"])
def visible_match_list(request):
    now = timezone.now()
    matches = _match_queryset(request).filter(is_visible=True)
    return JsonResponse([_serialize_match(match, now) for match in matches], safe=False)


@require_http_methods(["GET"])
def upcoming_match_list(request):
    now = timezone.now()
    matches = (
        _match_queryset(request)
        .filter(status=Match.Status.UPCOMING, match_date__gt=now, is_visible=True)
        .order_by('match_date')
    )
    return JsonResponse([_serialize_match(match, now) for match in matches], safe=False)


@require_http_methods(["GET"])
def match_detail(request, match_id: int):
    match = get_object_or_404(Match.objects.select_related('team1', 'team2'), pk=match_id)
    data = _serialize_match(match)
    data['venue'] = match.venue
    return JsonResponse(data)


@require_http_methods(["GET"])
def team_match_list(request, team_id: int):
    team = get_object_or_404(Team, pk=team_id)
    now = timezone.now()
    matches = _match_queryset(request).filter(Q(team1=team) | Q(team2=team))
    return JsonResponse([_serialize_match(match, now) for match in matches], safe=False)


@require_http_methods(["GET"])
def match_can_predict(request, match_id: int):
    match = get_object_or_404(Match, pk=match_id)
    return JsonResponse({'match_id': match.pk, 'can_predict': can_predict(match)})


@csrf_exempt
@require_http_methods(["PUT", "POST"])
@api_staff_required
def set_match_result(request, match_id: int):
    """Set the final score of a match; scoring runs immediately."""
    match = get_object_or_404(Match, pk=match_id)
    try:
        data = _load_json(request)
        result = scoring_service.set_match_result(
            match,
            data.get('team1_score'),
            data.get('team2_score'),
            force=_parse_force(data),
        )
    except (ValueError, PredictionError) as exc:
        return _error(str(exc))

    logger.info("Result for match %s set by %s", match.pk, request.user)
    return JsonResponse({'success': True, **_serialize_match_result(result)})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_login_required
def predictions(request):
    """List the active user's predictions, or submit one."""
    user = get_active_user(request)
    if request.method == 'GET':
        rows = Prediction.objects.filter(user=user).select_related('match')
        return JsonResponse([_serialize_prediction(row) for row in rows], safe=False)

    try:
        data = _load_json(request)
        match_id = _parse_id(data.get('match_id'), 'match_id')
        if match_id is None:
            return _error('Missing match_id')
        match = get_object_or_404(Match, pk=match_id)
        prediction, created = submit_prediction(
            user, match, data.get('team1_score'), data.get('team2_score')
        )
    except (ValueError, PredictionError) as exc:
        return _error(str(exc))

    return JsonResponse({
        'success': True,
        'message': 'Prediction saved successfully',
        'created': created,
        'prediction': _serialize_prediction(prediction),
    })


@require_http_methods(["GET"])
@api_login_required
def match_predictions(request, match_id: int):
    """Everyone's predictions for a match, revealed once it is locked."""
    match = get_object_or_404(Match, pk=match_id)
    if can_predict(match):
        return _error('Predictions are hidden until the match is locked', status=403)
    rows = match.predictions.select_related('user', 'match')
    data = []
    for row in rows:
        entry = _serialize_prediction(row)
        entry['username'] = row.user.get_username()
        data.append(entry)
    return JsonResponse(data, safe=False)


@require_http_methods(["GET"])
def tournament_list(request):
    now = timezone.now()
    tournaments = Tournament.objects.select_related('winner')
    return JsonResponse([_serialize_tournament(tournament, now) for tournament in tournaments], safe=False)


@require_http_methods(["GET"])
def active_tournament_list(request):
    now = timezone.now()
    tournaments = Tournament.objects.filter(is_active=True).select_related('winner')
    return JsonResponse([_serialize_tournament(tournament, now) for tournament in tournaments], safe=False)


@require_http_methods(["GET"])
def tournament_detail(request, tournament_id: int):
    tournament = get_object_or_404(Tournament.objects.select_related('winner'), pk=tournament_id)
    return JsonResponse(_serialize_tournament(tournament))


@require_http_methods(["GET"])
def tournament_players(request, tournament_id: int):
    tournament = get_object_or_404(Tournament, pk=tournament_id)
    players = tournament.players.select_related('team')
    return JsonResponse([_serialize_player(player) for player in players], safe=False)


@require_http_methods(["GET"])
def tournament_started_view(request, tournament_id: int):
    tournament = get_object_or_404(Tournament, pk=tournament_id)
    return JsonResponse({'tournament_id': tournament.pk, 'started': tournament_started(tournament)})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_login_required
def winner_prediction(request, tournament_id: int):
    user = get_active_user(request)
    tournament = get_object_or_404(Tournament, pk=tournament_id)
    if request.method == 'GET':
        prediction = (
            TournamentWinnerPrediction.objects.filter(user=user, tournament=tournament)
            .select_related('team')
            .first()
        )
        return JsonResponse({'prediction': _serialize_winner_prediction(prediction)})

    try:
        data = _load_json(request)
        team_id = _parse_id(data.get('team_id'), 'team_id')
        if team_id is None:
            return _error('Missing team_id')
        team = get_object_or_404(Team, pk=team_id)
        prediction, created = save_winner_prediction(user, tournament, team)
    except (ValueError, PredictionError) as exc:
        return _error(str(exc))

    return JsonResponse({
        'success': True,
        'created': created,
        'prediction': _serialize_winner_prediction(prediction),
    })


@csrf_exempt
@require_http_methods(["GET", "POST"])
@api_login_required
def award_prediction(request, tournament_id: int):
    user = get_active_user(request)
    tournament = get_object_or_404(Tournament, pk=tournament_id)
    if request.method == 'GET':
        prediction = (
            AwardPrediction.objects.filter(user=user, tournament=tournament)
            .select_related('best_player', 'best_goal_scorer')
            .first()
        )
        return JsonResponse({'prediction': _serialize_award_prediction(prediction)})

    try:
        data = _load_json(request)
        players = {}
        for slot in scoring_service.AWARD_SLOTS:
            player_id = _parse_id(data.get(f'{slot}_id'), f'{slot}_id')
            players[slot] = get_object_or_404(Player, pk=player_id) if player_id is not None else None
        if not any(players.values()):
            return _error('Select at least one player')
        prediction, created = save_award_prediction(user, tournament, **players)
    except (ValueError, PredictionError) as exc:
        return _error(str(exc))

    return JsonResponse({
        'success': True,
        'created': created,
        'prediction': _serialize_award_prediction(prediction),
    })


@csrf_exempt
@require_http_methods(["PUT", "POST"])
@api_staff_required
def declare_winner(request, tournament_id: int):
    tournament = get_object_or_404(Tournament, pk=tournament_id)
    try:
        data = _load_json(request)
        team_id = _parse_id(data.get('team_id'), 'team_id')
        if team_id is None:
            return _error('Missing team_id')
        team = get_object_or_404(Team, pk=team_id)
        result = scoring_service.declare_tournament_winner(
            tournament, team, force=_parse_force(data)
        )
    except (ValueError, PredictionError) as exc:
        return _error(str(exc))

    return JsonResponse({'success': True, **_serialize_award_result(result)})


@csrf_exempt
@require_http_methods(["PUT", "POST"])
@api_staff_required
def declare_awards(request, tournament_id: int):
    tournament = get_object_or_404(Tournament, pk=tournament_id)
    try:
        data = _load_json(request)
        players = {}
        for slot in scoring_service.AWARD_SLOTS:
            player_id = _parse_id(data.get(f'{slot}_id'), f'{slot}_id')
            players[slot] = get_object_or_404(Player, pk=player_id) if player_id is not None else None
        if not any(players.values()):
            return _error('Select at least one winner')
        results = scoring_service.declare_award_winners(
            tournament, force=_parse_force(data), **players
        )
    except (ValueError, PredictionError) as exc:
        return _error(str(exc))

    return JsonResponse({
        'success': True,
        'results': [_serialize_award_result(result) for result in results],
    })


@csrf_exempt
@require_http_methods(["GET", "PUT", "POST"])
def tournament_awards(request, tournament_id: int):
    """Read the declared awards of a tournament; staff declare them with PUT or POST."""
    if request.method != 'GET':
        return declare_awards(request, tournament_id)

    tournament = get_object_or_404(
        Tournament.objects.select_related('best_player', 'best_goal_scorer'), pk=tournament_id
    )
    data = {'tournament_id': tournament.pk}
    for slot in scoring_service.AWARD_SLOTS:
        player = getattr(tournament, slot)
        data[f'{slot}_id'] = player.pk if player else None
        data[f'{slot}_name'] = player.name if player else None
        data[f'{slot}_awarded'] = getattr(tournament, f'{slot}_awarded_at') is not None
    return JsonResponse(data)


@csrf_exempt
@require_http_methods(["GET", "PUT"])
@api_staff_required
def scoring_rules(request):
    """Read or save the global rule set, or a tournament's overrides."""
    try:
        tournament_id = _parse_id(request.GET.get('tournament'), 'tournament')
        tournament = get_object_or_404(Tournament, pk=tournament_id) if tournament_id is not None else None
        if request.method == 'PUT':
            update_scoring_rules(_load_json(request), tournament=tournament)
    except (ValueError, PredictionError) as exc:
        return _error(str(exc))

    return JsonResponse(list_scoring_rules(tournament), safe=False)


@require_http_methods(["GET"])
def leaderboard(request):
    tournament_id = request.GET.get('tournament')
    try:
        tournament_id = _parse_id(tournament_id, 'tournament')
    except PredictionError as exc:
        return _error(str(exc))
    return JsonResponse([entry.as_dict() for entry in build_leaderboard(tournament_id)], safe=False)


@require_http_methods(["GET"])
def user_predictions(request, user_id: int):
    """Scored predictions of one user, as shown from the leaderboard."""
    user = get_object_or_404(get_user_model(), pk=user_id, is_active=True)
    rows = (
        Prediction.objects.filter(user=user, scored_at__isnull=False)
        .select_related('match__team1', 'match__team2')
        .order_by('-match__match_date')
    )
    winner_rows = TournamentWinnerPrediction.objects.filter(
        user=user, awarded_at__isnull=False
    ).select_related('team')
    award_rows = (
        AwardPrediction.objects.filter(user=user)
        .filter(Q(best_player_awarded_at__isnull=False) | Q(best_goal_scorer_awarded_at__isnull=False))
        .select_related('best_player', 'best_goal_scorer')
    )

    matches = []
    for row in rows:
        entry = _serialize_prediction(row)
        entry['match'] = _serialize_match(row.match)
        matches.append(entry)
    return JsonResponse({
        'user_id': user.pk,
        'username': user.get_username(),
        'total_points': total_points_for(user.pk),
        'predictions': matches,
        'winner_predictions': [_serialize_winner_prediction(row) for row in winner_rows],
        'award_predictions': [_serialize_award_prediction(row) for row in award_rows],
    })
