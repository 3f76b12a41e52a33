from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Team(models.Model):
    name = models.CharField(max_length=100, unique=True)
    short_name = models.CharField(
        max_length=10,
        blank=True,
        help_text="Abbreviated name (e.g., 'ALG' for Algeria)",
    )
    flag_url = models.URLField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Tournament(models.Model):
    """A competition grouping matches, squads and tournament-level predictions.

    The ``*_awarded_at`` timestamps record that the bonus for the declared
    winner, best player or best goal scorer has been distributed. They are
    written in the same transaction as the bonus points and are never cleared
    except by a forced recomputation.
    """

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    logo_url = models.URLField(max_length=500, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    teams = models.ManyToManyField(
        Team,
        through='TournamentTeam',
        related_name='tournaments',
        blank=True,
    )
    winner = models.ForeignKey(
        Team,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='won_tournaments',
    )
    best_player = models.ForeignKey(
        'Player',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='best_player_of',
    )
    best_goal_scorer = models.ForeignKey(
        'Player',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='best_goal_scorer_of',
    )
    winner_awarded_at = models.DateTimeField(null=True, blank=True)
    best_player_awarded_at = models.DateTimeField(null=True, blank=True)
    best_goal_scorer_awarded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-start_date', 'name']

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({'end_date': 'End date cannot be before the start date.'})


class TournamentTeam(models.Model):
    tournament = models.ForeignKey(Tournament, on_delete=models.CASCADE, related_name='squads')
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='squads')
    group_name = models.CharField(max_length=20, blank=True)

    class Meta:
        unique_together = (('tournament', 'team'),)
        ordering = ['group_name', 'team__name']

    def __str__(self) -> str:
        return f"{self.team} @ {self.tournament}"


class Player(models.Model):
    tournament = models.ForeignKey(Tournament, on_delete=models.CASCADE, related_name='players')
    team = models.ForeignKey(
        Team,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='players',
    )
    name = models.CharField(max_length=150)
    position = models.CharField(max_length=50, blank=True)
    photo_url = models.URLField(max_length=500, blank=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Match(models.Model):
    """A fixture between two teams.

    ``status`` only moves forward (upcoming, live, completed). The scores are
    written when an administrator sets the result, and ``scored_at`` records
    that every prediction for the match has been scored.
    """

    class Status(models.TextChoices):
        UPCOMING = 'upcoming', 'Upcoming'
        LIVE = 'live', 'Live'
        COMPLETED = 'completed', 'Completed'

    tournament = models.ForeignKey(
        Tournament,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='matches',
    )
    team1 = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='home_matches')
    team2 = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='away_matches')
    match_date = models.DateTimeField(help_text='Kick-off. No predictions are accepted from this moment.')
    stage = models.CharField(max_length=50, blank=True)
    venue = models.CharField(max_length=150, blank=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.UPCOMING,
    )
    team1_score = models.PositiveSmallIntegerField(null=True, blank=True)
    team2_score = models.PositiveSmallIntegerField(null=True, blank=True)
    is_visible = models.BooleanField(default=True)
    scored_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['match_date', 'id']
        verbose_name_plural = 'Matches'
        indexes = [
            models.Index(fields=['status', 'match_date'], name='match_status_date_idx'),
            models.Index(fields=['tournament', 'is_visible'], name='match_tournament_visible_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.team1} vs {self.team2}"

    def clean(self) -> None:
        if self.team1_id and self.team1_id == self.team2_id:
            raise ValidationError('A team cannot play against itself.')

    @property
    def has_result(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None

    def has_kicked_off(self, now=None) -> bool:
        return (now or timezone.now()) >= self.match_date
