from datetime import timedelta
from unittest import mock

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from goaltipp.predictions import scoring_service
from goaltipp.predictions.exceptions import InvalidScoreError, InvalidSelectionError
from goaltipp.predictions.models import (
    AwardPrediction,
    Prediction,
    ScoringRule,
    TournamentWinnerPrediction,
)
from goaltipp.predictions.scoring import score_prediction as real_score_prediction
from goaltipp.tournaments.models import Match, Player, Team, Tournament, TournamentTeam


class ScoringServiceTestCase(TestCase):
    def setUp(self) -> None:
        user_model = get_user_model()
        self.alice = user_model.objects.create_user(username='alice', password='secret')
        self.bob = user_model.objects.create_user(username='bob', password='secret')
        self.carol = user_model.objects.create_user(username='carol', password='secret')

        self.tournament = Tournament.objects.create(name='World Cup')
        self.algeria = Team.objects.create(name='Algeria')
        self.tunisia = Team.objects.create(name='Tunisia')
        TournamentTeam.objects.create(tournament=self.tournament, team=self.algeria)
        TournamentTeam.objects.create(tournament=self.tournament, team=self.tunisia)

        for rule_type, points in (
            ('exact_score', 5),
            ('correct_winner', 3),
            ('correct_draw', 3),
            ('correct_goal_diff', 1),
            ('one_team_goals', 1),
            ('tournament_winner', 10),
            ('best_player', 7),
            ('best_goal_scorer', 6),
        ):
            ScoringRule.objects.create(rule_type=rule_type, points=points)

        self.match = Match.objects.create(
            tournament=self.tournament,
            team1=self.algeria,
            team2=self.tunisia,
            match_date=timezone.now() - timedelta(hours=2),
            status=Match.Status.LIVE,
        )
        self.exact = Prediction.objects.create(user=self.alice, match=self.match, team1_score=2, team2_score=1)
        self.diff = Prediction.objects.create(user=self.bob, match=self.match, team1_score=3, team2_score=2)
        self.wrong = Prediction.objects.create(user=self.carol, match=self.match, team1_score=0, team2_score=2)


class SetMatchResultTests(ScoringServiceTestCase):
    def test_scores_every_prediction(self) -> None:
        result = scoring_service.set_match_result(self.match, 2, 1)

        self.assertEqual(result.scored_count, 3)
        self.assertEqual(result.failed_count, 0)
        self.assertEqual(result.total_awarded_points, 9)
        self.assertFalse(result.already_scored)

        self.match.refresh_from_db()
        self.assertEqual(self.match.status, Match.Status.COMPLETED)
        self.assertEqual((self.match.team1_score, self.match.team2_score), (2, 1))
        self.assertIsNotNone(self.match.scored_at)

        points = dict(Prediction.objects.values_list('user__username', 'points_earned'))
        self.assertEqual(points, {'alice': 5, 'bob': 4, 'carol': 0})
        self.assertEqual(Prediction.objects.get(pk=self.wrong.pk).rule_applied, 'none')
        self.assertFalse(Prediction.objects.filter(scored_at__isnull=True).exists())

    def test_second_result_is_a_no_op(self) -> None:
        scoring_service.set_match_result(self.match, 2, 1)
        first_scored_at = Match.objects.get(pk=self.match.pk).scored_at

        result = scoring_service.set_match_result(self.match, 0, 2)

        self.assertTrue(result.already_scored)
        self.assertEqual(result.scored_count, 0)
        self.match.refresh_from_db()
        self.assertEqual((self.match.team1_score, self.match.team2_score), (2, 1))
        self.assertEqual(self.match.scored_at, first_scored_at)
        self.assertEqual(Prediction.objects.get(pk=self.exact.pk).points_earned, 5)
        self.assertEqual(Prediction.objects.get(pk=self.wrong.pk).points_earned, 0)

    def test_force_replaces_result_without_accumulating(self) -> None:
        scoring_service.set_match_result(self.match, 2, 1)
        scoring_service.set_match_result(self.match, 0, 2, force=True)

        points = dict(Prediction.objects.values_list('user__username', 'points_earned'))
        self.assertEqual(points, {'alice': 0, 'bob': 0, 'carol': 5})

    def test_passed_match_is_refreshed(self) -> None:
        scoring_service.set_match_result(self.match, 1, 1)

        self.assertEqual(self.match.status, Match.Status.COMPLETED)
        self.assertIsNotNone(self.match.scored_at)

    def test_rejects_invalid_scores(self) -> None:
        with self.assertRaises(InvalidScoreError):
            scoring_service.set_match_result(self.match, -1, 0)

        self.match.refresh_from_db()
        self.assertEqual(self.match.status, Match.Status.LIVE)

    def test_tournament_override_is_used(self) -> None:
        ScoringRule.objects.create(rule_type='exact_score', points=12, tournament=self.tournament)

        scoring_service.set_match_result(self.match, 2, 1)

        self.assertEqual(Prediction.objects.get(pk=self.exact.pk).points_earned, 12)

    def test_match_without_predictions(self) -> None:
        match = Match.objects.create(
            team1=self.tunisia,
            team2=self.algeria,
            match_date=timezone.now() - timedelta(hours=2),
        )

        result = scoring_service.set_match_result(match, 0, 0)

        self.assertEqual(result.scored_count, 0)
        match.refresh_from_db()
        self.assertIsNotNone(match.scored_at)

    def test_failing_prediction_is_skipped(self) -> None:
        def flaky(predicted, actual, rules):
            if predicted == (3, 2):
                raise ValueError('corrupt prediction')
            return real_score_prediction(predicted, actual, rules)

        with mock.patch('goaltipp.predictions.scoring_service.score_prediction', side_effect=flaky):
            with self.assertLogs('goaltipp.predictions.scoring_service', level='ERROR') as logs:
                result = scoring_service.set_match_result(self.match, 2, 1)

        self.assertEqual(result.scored_count, 2)
        self.assertEqual(result.failed_prediction_ids, [self.diff.pk])
        self.assertIn(f'Failed to score prediction {self.diff.pk}', logs.output[0])

        self.assertEqual(Prediction.objects.get(pk=self.exact.pk).points_earned, 5)
        failed = Prediction.objects.get(pk=self.diff.pk)
        self.assertEqual(failed.points_earned, 0)
        self.assertIsNone(failed.scored_at)
        self.assertIsNotNone(Match.objects.get(pk=self.match.pk).scored_at)

    def test_failed_rescore_clears_earlier_points(self) -> None:
        scoring_service.set_match_result(self.match, 2, 1)
        self.assertEqual(Prediction.objects.get(pk=self.exact.pk).points_earned, 5)

        def flaky(predicted, actual, rules):
            if predicted == (2, 1):
                raise ValueError('corrupt prediction')
            return real_score_prediction(predicted, actual, rules)

        with mock.patch('goaltipp.predictions.scoring_service.score_prediction', side_effect=flaky):
            with self.assertLogs('goaltipp.predictions.scoring_service', level='ERROR'):
                result = scoring_service.set_match_result(self.match, 0, 3, force=True)

        self.assertEqual(result.failed_prediction_ids, [self.exact.pk])
        failed = Prediction.objects.get(pk=self.exact.pk)
        self.assertEqual(failed.points_earned, 0)
        self.assertEqual(failed.rule_applied, '')
        self.assertIsNone(failed.scored_at)
        self.assertEqual(Prediction.objects.get(pk=self.wrong.pk).points_earned, 4)


class ScoreMatchTests(ScoringServiceTestCase):
    def test_requires_completed_match(self) -> None:
        with self.assertRaises(InvalidScoreError):
            scoring_service.score_match(self.match)

    def test_scores_once(self) -> None:
        Match.objects.filter(pk=self.match.pk).update(
            status=Match.Status.COMPLETED, team1_score=2, team2_score=1
        )

        first = scoring_service.score_match(self.match)
        second = scoring_service.score_match(self.match)

        self.assertEqual(first.scored_count, 3)
        self.assertTrue(second.already_scored)
        self.assertEqual(Prediction.objects.get(pk=self.exact.pk).points_earned, 5)

    def test_process_pending_matches_picks_up_unscored(self) -> None:
        Match.objects.filter(pk=self.match.pk).update(
            status=Match.Status.COMPLETED, team1_score=1, team2_score=1
        )

        result = scoring_service.process_pending_matches()
        again = scoring_service.process_pending_matches()

        self.assertEqual(result.matches_processed, 1)
        self.assertEqual(result.predictions_scored, 3)
        self.assertEqual(result.matches_with_errors, [])
        self.assertEqual(again.matches_processed, 0)

    def test_process_pending_matches_retries_failed_predictions(self) -> None:
        def flaky(predicted, actual, rules):
            if predicted == (3, 2):
                raise ValueError('corrupt prediction')
            return real_score_prediction(predicted, actual, rules)

        with mock.patch('goaltipp.predictions.scoring_service.score_prediction', side_effect=flaky):
            with self.assertLogs('goaltipp.predictions.scoring_service', level='ERROR'):
                scoring_service.set_match_result(self.match, 2, 1)

        result = scoring_service.process_pending_matches()
        again = scoring_service.process_pending_matches()

        self.assertEqual(result.matches_processed, 1)
        self.assertEqual(result.predictions_scored, 1)
        self.assertEqual(again.matches_processed, 0)
        points = dict(Prediction.objects.values_list('user__username', 'points_earned'))
        self.assertEqual(points, {'alice': 5, 'bob': 4, 'carol': 0})
        self.assertFalse(Prediction.objects.filter(scored_at__isnull=True).exists())

    def test_process_pending_matches_with_force(self) -> None:
        scoring_service.set_match_result(self.match, 2, 1)
        Prediction.objects.filter(pk=self.exact.pk).update(points_earned=99)

        result = scoring_service.process_pending_matches(force=True)

        self.assertEqual(result.matches_processed, 1)
        self.assertEqual(Prediction.objects.get(pk=self.exact.pk).points_earned, 5)


class DeclareTournamentWinnerTests(ScoringServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        TournamentWinnerPrediction.objects.create(user=self.alice, tournament=self.tournament, team=self.algeria)
        TournamentWinnerPrediction.objects.create(user=self.bob, tournament=self.tournament, team=self.tunisia)

    def test_awards_bonus_once(self) -> None:
        first = scoring_service.declare_tournament_winner(self.tournament, self.algeria)
        second = scoring_service.declare_tournament_winner(self.tournament, self.algeria)

        self.assertEqual(first.awarded_count, 1)
        self.assertEqual(first.evaluated_count, 2)
        self.assertEqual(first.total_awarded_points, 10)
        self.assertTrue(second.already_awarded)

        points = dict(TournamentWinnerPrediction.objects.values_list('user__username', 'points_earned'))
        self.assertEqual(points, {'alice': 10, 'bob': 0})
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.winner, self.algeria)
        self.assertIsNotNone(self.tournament.winner_awarded_at)

    def test_redeclaring_other_team_is_ignored(self) -> None:
        scoring_service.declare_tournament_winner(self.tournament, self.algeria)
        result = scoring_service.declare_tournament_winner(self.tournament, self.tunisia)

        self.assertTrue(result.already_awarded)
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.winner, self.algeria)
        self.assertEqual(TournamentWinnerPrediction.objects.get(user=self.bob).points_earned, 0)

    def test_force_moves_bonus(self) -> None:
        scoring_service.declare_tournament_winner(self.tournament, self.algeria)
        scoring_service.declare_tournament_winner(self.tournament, self.tunisia, force=True)

        points = dict(TournamentWinnerPrediction.objects.values_list('user__username', 'points_earned'))
        self.assertEqual(points, {'alice': 0, 'bob': 10})

    def test_rejects_team_outside_tournament(self) -> None:
        outsider = Team.objects.create(name='Japan')

        with self.assertRaises(InvalidSelectionError):
            scoring_service.declare_tournament_winner(self.tournament, outsider)

        self.tournament.refresh_from_db()
        self.assertIsNone(self.tournament.winner_awarded_at)


class DeclareAwardWinnersTests(ScoringServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.mahrez = Player.objects.create(tournament=self.tournament, team=self.algeria, name='Mahrez')
        self.msakni = Player.objects.create(tournament=self.tournament, team=self.tunisia, name='Msakni')
        AwardPrediction.objects.create(
            user=self.alice,
            tournament=self.tournament,
            best_player=self.mahrez,
            best_goal_scorer=self.msakni,
        )
        AwardPrediction.objects.create(
            user=self.bob,
            tournament=self.tournament,
            best_player=self.msakni,
        )

    def test_slots_are_awarded_independently(self) -> None:
        results = scoring_service.declare_award_winners(self.tournament, best_player=self.mahrez)

        self.assertEqual([result.award for result in results], ['best_player'])
        self.assertEqual(results[0].awarded_count, 1)
        self.assertEqual(results[0].evaluated_count, 2)

        alice = AwardPrediction.objects.get(user=self.alice)
        self.assertEqual(alice.best_player_points, 7)
        self.assertEqual(alice.best_goal_scorer_points, 0)
        self.assertIsNone(alice.best_goal_scorer_awarded_at)

        results = scoring_service.declare_award_winners(self.tournament, best_goal_scorer=self.msakni)

        self.assertFalse(results[0].already_awarded)
        alice.refresh_from_db()
        self.assertEqual(alice.points_earned, 13)
        self.assertEqual(AwardPrediction.objects.get(user=self.bob).points_earned, 0)

    def test_each_slot_is_awarded_once(self) -> None:
        scoring_service.declare_award_winners(
            self.tournament, best_player=self.mahrez, best_goal_scorer=self.msakni
        )
        results = scoring_service.declare_award_winners(
            self.tournament, best_player=self.msakni, best_goal_scorer=self.mahrez
        )

        self.assertTrue(all(result.already_awarded for result in results))
        self.tournament.refresh_from_db()
        self.assertEqual(self.tournament.best_player, self.mahrez)
        self.assertEqual(AwardPrediction.objects.get(user=self.alice).points_earned, 13)
        self.assertEqual(AwardPrediction.objects.get(user=self.bob).points_earned, 0)

    def test_force_reassigns_points(self) -> None:
        scoring_service.declare_award_winners(self.tournament, best_player=self.mahrez)
        scoring_service.declare_award_winners(self.tournament, best_player=self.msakni, force=True)

        self.assertEqual(AwardPrediction.objects.get(user=self.alice).best_player_points, 0)
        self.assertEqual(AwardPrediction.objects.get(user=self.bob).best_player_points, 7)

    def test_rejects_player_from_other_tournament(self) -> None:
        other = Tournament.objects.create(name='Euro')
        stranger = Player.objects.create(tournament=other, name='Stranger')

        with self.assertRaises(InvalidSelectionError):
            scoring_service.declare_award_winners(self.tournament, best_player=stranger)
