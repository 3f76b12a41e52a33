from django.contrib import admin, messages
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from goaltipp.predictions import scoring_service
from goaltipp.predictions.exceptions import PredictionError

from .models import Match, Player, Team, Tournament, TournamentTeam


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'short_name')
    search_fields = ('name', 'short_name')


class TournamentTeamInline(admin.TabularInline):
    model = TournamentTeam
    extra = 0
    autocomplete_fields = ('team',)


class PlayerInline(admin.TabularInline):
    model = Player
    extra = 0
    fields = ('name', 'team', 'position', 'photo_url')


@admin.register(Tournament)
class TournamentAdmin(admin.ModelAdmin):
    list_display = (
        'name',
        'start_date',
        'end_date',
        'is_active',
        'winner',
        'winner_awarded_at',
    )
    list_filter = ('is_active',)
    search_fields = ('name',)
    inlines = (TournamentTeamInline, PlayerInline)
    readonly_fields = (
        'winner',
        'best_player',
        'best_goal_scorer',
        'winner_awarded_at',
        'best_player_awarded_at',
        'best_goal_scorer_awarded_at',
    )
    fieldsets = (
        (None, {
            'fields': ('name', 'description', 'logo_url', 'start_date', 'end_date', 'is_active'),
        }),
        ('Awards', {
            'fields': (
                ('winner', 'winner_awarded_at'),
                ('best_player', 'best_player_awarded_at'),
                ('best_goal_scorer', 'best_goal_scorer_awarded_at'),
            ),
            'description': 'Declared through the award API so bonus points are attributed exactly once.',
        }),
    )


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    list_display = ('name', 'team', 'tournament', 'position')
    list_filter = ('tournament',)
    search_fields = ('name', 'team__name')
    autocomplete_fields = ('team',)


@admin.register(Match)
class MatchAdmin(admin.ModelAdmin):
    list_display = (
        '__str__',
        'tournament',
        'match_date',
        'status',
        'team1_score',
        'team2_score',
        'scored_at',
    )
    list_filter = ('status', 'tournament', 'is_visible')
    search_fields = ('team1__name', 'team2__name')
    autocomplete_fields = ('team1', 'team2')
    date_hierarchy = 'match_date'
    actions = ('score_matches', 'rescore_matches')

    def get_readonly_fields(self, request: HttpRequest, obj=None):
        readonly = ['scored_at']
        if obj is not None and obj.scored_at:
            readonly += ['status', 'team1_score', 'team2_score']
        return readonly

    def save_model(self, request, obj, form, change):
        result_changed = {'team1_score', 'team2_score'} & set(form.changed_data)
        wants_result = bool(result_changed) and obj.has_result and not obj.scored_at
        if wants_result:
            scores = (obj.team1_score, obj.team2_score)
            previous = Match.objects.filter(pk=obj.pk).first() if change else None
            obj.team1_score = previous.team1_score if previous else None
            obj.team2_score = previous.team2_score if previous else None

        super().save_model(request, obj, form, change)

        if wants_result:
            try:
                result = scoring_service.set_match_result(obj, *scores)
            except PredictionError as exc:
                self.message_user(request, str(exc), level=messages.ERROR)
                return
            self.message_user(
                request,
                _('Result saved. Scored %(scored)d predictions (%(failed)d failed).')
                % {'scored': result.scored_count, 'failed': result.failed_count},
                level=messages.SUCCESS if not result.failed_count else messages.WARNING,
            )

    def _score(self, request, queryset, *, force: bool) -> None:
        candidates = queryset.filter(
            status=Match.Status.COMPLETED,
            team1_score__isnull=False,
            team2_score__isnull=False,
        )
        result = scoring_service.process_pending_matches(force=force, matches=candidates)
        for error in result.matches_with_errors:
            messages.warning(request, f"Warning: {error}")
        if result.matches_processed:
            self.message_user(
                request,
                f"Scored {result.matches_processed} matches: {result.predictions_scored} predictions, "
                f"{result.predictions_failed} failed.",
                level=messages.SUCCESS,
            )
        else:
            self.message_user(request, "No matches needed scoring.", level=messages.INFO)

    @admin.action(description='Score selected completed matches')
    def score_matches(self, request, queryset):
        self._score(request, queryset, force=False)

    @admin.action(description='Recompute points for selected completed matches')
    def rescore_matches(self, request, queryset):
        self._score(request, queryset, force=True)
