from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Team',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                (
                    'short_name',
                    models.CharField(
                        blank=True,
                        help_text="Abbreviated name (e.g., 'ALG' for Algeria)",
                        max_length=10,
                    ),
                ),
                ('flag_url', models.URLField(blank=True, max_length=500)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Tournament',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('logo_url', models.URLField(blank=True, max_length=500)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('winner_awarded_at', models.DateTimeField(blank=True, null=True)),
                ('best_player_awarded_at', models.DateTimeField(blank=True, null=True)),
                ('best_goal_scorer_awarded_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                (
                    'winner',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='won_tournaments',
                        to='tournaments.team',
                    ),
                ),
            ],
            options={
                'ordering': ['-start_date', 'name'],
            },
        ),
        migrations.CreateModel(
            name='TournamentTeam',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('group_name', models.CharField(blank=True, max_length=20)),
                (
                    'team',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='squads',
                        to='tournaments.team',
                    ),
                ),
                (
                    'tournament',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='squads',
                        to='tournaments.tournament',
                    ),
                ),
            ],
            options={
                'ordering': ['group_name', 'team__name'],
                'unique_together': {('tournament', 'team')},
            },
        ),
        migrations.AddField(
            model_name='tournament',
            name='teams',
            field=models.ManyToManyField(
                blank=True,
                related_name='tournaments',
                through='tournaments.TournamentTeam',
                to='tournaments.team',
            ),
        ),
        migrations.CreateModel(
            name='Player',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=150)),
                ('position', models.CharField(blank=True, max_length=50)),
                ('photo_url', models.URLField(blank=True, max_length=500)),
                (
                    'team',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='players',
                        to='tournaments.team',
                    ),
                ),
                (
                    'tournament',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='players',
                        to='tournaments.tournament',
                    ),
                ),
            ],
            options={
                'ordering': ['name'],
            },
        ),
        migrations.AddField(
            model_name='tournament',
            name='best_player',
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='best_player_of',
                to='tournaments.player',
            ),
        ),
        migrations.AddField(
            model_name='tournament',
            name='best_goal_scorer',
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name='best_goal_scorer_of',
                to='tournaments.player',
            ),
        ),
        migrations.CreateModel(
            name='Match',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                (
                    'match_date',
                    models.DateTimeField(help_text='Kick-off. No predictions are accepted from this moment.'),
                ),
                ('stage', models.CharField(blank=True, max_length=50)),
                ('venue', models.CharField(blank=True, max_length=150)),
                (
                    'status',
                    models.CharField(
                        choices=[('upcoming', 'Upcoming'), ('live', 'Live'), ('completed', 'Completed')],
                        default='upcoming',
                        max_length=10,
                    ),
                ),
                ('team1_score', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('team2_score', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('is_visible', models.BooleanField(default=True)),
                ('scored_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                (
                    'team1',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='home_matches',
                        to='tournaments.team',
                    ),
                ),
                (
                    'team2',
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name='away_matches',
                        to='tournaments.team',
                    ),
                ),
                (
                    'tournament',
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name='matches',
                        to='tournaments.tournament',
                    ),
                ),
            ],
            options={
                'verbose_name_plural': 'Matches',
                'ordering': ['match_date', 'id'],
                'indexes': [
                    models.Index(fields=['status', 'match_date'], name='match_status_date_idx'),
                    models.Index(fields=['tournament', 'is_visible'], name='match_tournament_visible_idx'),
                ],
            },
        ),
    ]
