from __future__ import annotations

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from goaltipp.tournaments.models import Match, Player, Team, Tournament


class ScoringRule(models.Model):
    """Point value of one rule type, either global or for a single tournament.

    Rows without a tournament form the global rule set. A tournament row
    overrides the global value for matches and awards of that tournament.
    """

    class RuleType(models.TextChoices):
        EXACT_SCORE = 'exact_score', 'Exact score'
        CORRECT_WINNER = 'correct_winner', 'Correct winner'
        CORRECT_DRAW = 'correct_draw', 'Correct draw'
        CORRECT_GOAL_DIFF = 'correct_goal_diff', 'Correct goal difference'
        ONE_TEAM_GOALS = 'one_team_goals', "One team's goals"
        TOURNAMENT_WINNER = 'tournament_winner', 'Tournament winner'
        BEST_PLAYER = 'best_player', 'Best player'
        BEST_GOAL_SCORER = 'best_goal_scorer', 'Best goal scorer'

    rule_type = models.CharField(max_length=30, choices=RuleType.choices)
    points = models.IntegerField(default=0, validators=[MinValueValidator(0)])
    tournament = models.ForeignKey(
        Tournament,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='scoring_rules',
        help_text='Leave empty for the global default.',
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['tournament_id', 'rule_type']
        constraints = [
            models.UniqueConstraint(
                fields=['rule_type', 'tournament'],
                name='unique_rule_per_tournament',
            ),
            models.UniqueConstraint(
                fields=['rule_type'],
                condition=models.Q(tournament__isnull=True),
                name='unique_global_rule',
            ),
        ]

    def __str__(self) -> str:
        scope = self.tournament.name if self.tournament_id else 'global'
        return f"{self.get_rule_type_display()} ({scope}): {self.points}"


class Prediction(models.Model):
    class RuleApplied(models.TextChoices):
        EXACT_SCORE = 'exact_score', 'Exact score'
        CORRECT_WINNER = 'correct_winner', 'Correct winner'
        CORRECT_DRAW = 'correct_draw', 'Correct draw'
        NONE = 'none', 'No rule'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='match_predictions',
    )
    match = models.ForeignKey(Match, on_delete=models.CASCADE, related_name='predictions')
    team1_score = models.PositiveSmallIntegerField()
    team2_score = models.PositiveSmallIntegerField()
    points_earned = models.PositiveIntegerField(default=0)
    rule_applied = models.CharField(max_length=20, choices=RuleApplied.choices, blank=True)
    scored_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (('user', 'match'),)
        ordering = ['match__match_date', 'id']
        indexes = [
            models.Index(fields=['match', 'user'], name='prediction_match_user_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.user} - {self.match}: {self.team1_score}-{self.team2_score}"

    @property
    def status(self) -> str:
        return self.match.status


class TournamentWinnerPrediction(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='winner_predictions',
    )
    tournament = models.ForeignKey(
        Tournament,
        on_delete=models.CASCADE,
        related_name='winner_predictions',
    )
    team = models.ForeignKey(Team, on_delete=models.CASCADE, related_name='winner_predictions')
    points_earned = models.PositiveIntegerField(default=0)
    awarded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (('user', 'tournament'),)

    def __str__(self) -> str:
        return f"{self.user} - {self.tournament}: {self.team}"


class AwardPrediction(models.Model):
    """Best player and best goal scorer picks of a user for a tournament.

    Both slots are resolved independently, each with its own points and
    award timestamp.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='award_predictions',
    )
    tournament = models.ForeignKey(
        Tournament,
        on_delete=models.CASCADE,
        related_name='award_predictions',
    )
    best_player = models.ForeignKey(
        Player,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='best_player_predictions',
    )
    best_goal_scorer = models.ForeignKey(
        Player,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='best_goal_scorer_predictions',
    )
    best_player_points = models.PositiveIntegerField(default=0)
    best_goal_scorer_points = models.PositiveIntegerField(default=0)
    best_player_awarded_at = models.DateTimeField(null=True, blank=True)
    best_goal_scorer_awarded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = (('user', 'tournament'),)

    def __str__(self) -> str:
        return f"{self.user} - {self.tournament} awards"

    @property
    def points_earned(self) -> int:
        return self.best_player_points + self.best_goal_scorer_points
