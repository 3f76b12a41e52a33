from datetime import date, timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from goaltipp.tournaments.models import Match, Team, Tournament, TournamentTeam


class TournamentModelTests(TestCase):
    def test_end_date_before_start_date_is_invalid(self) -> None:
        tournament = Tournament(name='Cup', start_date=date(2026, 6, 11), end_date=date(2026, 6, 1))

        with self.assertRaises(ValidationError):
            tournament.full_clean()

    def test_teams_through_squads(self) -> None:
        tournament = Tournament.objects.create(name='Cup')
        team = Team.objects.create(name='Morocco')
        TournamentTeam.objects.create(tournament=tournament, team=team, group_name='B')

        self.assertEqual(list(tournament.teams.all()), [team])
        self.assertEqual(list(team.tournaments.all()), [tournament])


class MatchModelTests(TestCase):
    def setUp(self) -> None:
        self.home = Team.objects.create(name='Algeria')
        self.away = Team.objects.create(name='Egypt')

    def test_defaults(self) -> None:
        match = Match.objects.create(team1=self.home, team2=self.away, match_date=timezone.now())

        self.assertEqual(match.status, Match.Status.UPCOMING)
        self.assertFalse(match.has_result)
        self.assertIsNone(match.scored_at)
        self.assertEqual(str(match), 'Algeria vs Egypt')

    def test_team_cannot_play_itself(self) -> None:
        match = Match(team1=self.home, team2=self.home, match_date=timezone.now())

        with self.assertRaises(ValidationError):
            match.full_clean()

    def test_has_kicked_off(self) -> None:
        kickoff = timezone.now()
        match = Match(team1=self.home, team2=self.away, match_date=kickoff)

        self.assertFalse(match.has_kicked_off(kickoff - timedelta(seconds=1)))
        self.assertTrue(match.has_kicked_off(kickoff))
