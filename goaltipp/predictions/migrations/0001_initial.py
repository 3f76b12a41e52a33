from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('tournaments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ScoringRule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                (
                    'rule_type',
                    models.CharField(
                        choices=[
                            ('exact_score', 'Exact score'),
                            ('correct_winner', 'Correct winner'),
                            ('correct_draw', 'Correct draw'),
                            ('correct_goal_diff', 'Correct goal difference'),
                            ('one_team_goals', "One team's goals"),
                            ('tournament_winner', 'Tournament winner'),
                            ('best_player', 'Best player'),
                            ('best_goal_scorer', 'Best goal scorer'),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    'points',
                    models.IntegerField(default=0, validators=[django.core.validators.MinValueValidator(0)]),
                ),
                ('updated_at', models.DateTimeField(auto_now=True)),
                (
                    'tournament',
                    models.ForeignKey(
                        blank=True,
                        help_text='Leave empty for the global default.',
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='scoring_rules',
                        to='tournaments.tournament',
                    ),
                ),
            ],
            options={
                'ordering': ['tournament_id', 'rule_type'],
                'constraints': [
                    models.UniqueConstraint(fields=('rule_type', 'tournament'), name='unique_rule_per_tournament'),
                    models.UniqueConstraint(
                        condition=models.Q(('tournament__isnull', True)),
                        fields=('rule_type',),
                        name='unique_global_rule',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Prediction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('team1_score', models.PositiveSmallIntegerField()),
                ('team2_score', models.PositiveSmallIntegerField()),
                ('points_earned', models.PositiveIntegerField(default=0)),
                (
                    'rule_applied',
                    models.CharField(
                        blank=True,
                        choices=[
                            ('exact_score', 'Exact score'),
                            ('correct_winner', 'Correct winner'),
                            ('correct_draw', 'Correct draw'),
                            ('none', 'No rule'),
                        ],
                        max_length=20,
                    ),
                ),
                ('scored_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                (
                    'match',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='predictions',
                        to='tournaments.match',
                    ),
                ),
                (
                    'user',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='match_predictions',
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                'ordering': ['match__match_date', 'id'],
                'unique_together': {('user', 'match')},
                'indexes': [
                    models.Index(fields=['match', 'user'], name='prediction_match_user_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TournamentWinnerPrediction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('points_earned', models.PositiveIntegerField(default=0)),
                ('awarded_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                (
                    'team',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='winner_predictions',
                        to='tournaments.team',
                    ),
                ),
                (
                    'tournament',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='winner_predictions',
                        to='tournaments.tournament',
                    ),
                ),
                (
                    'user',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='winner_predictions',
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                'unique_together': {('user', 'tournament')},
            },
        ),
        migrations.CreateModel(
            name='AwardPrediction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('best_player_points', models.PositiveIntegerField(default=0)),
                ('best_goal_scorer_points', models.PositiveIntegerField(default=0)),
                ('best_player_awarded_at', models.DateTimeField(blank=True, null=True)),
                ('best_goal_scorer_awarded_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                (
                    'best_goal_scorer',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='best_goal_scorer_predictions',
                        to='tournaments.player',
                    ),
                ),
                (
                    'best_player',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='best_player_predictions',
                        to='tournaments.player',
                    ),
                ),
                (
                    'tournament',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='award_predictions',
                        to='tournaments.tournament',
                    ),
                ),
                (
                    'user',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='award_predictions',
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                'unique_together': {('user', 'tournament')},
            },
        ),
    ]
