from django.contrib import admin

from .models import AwardPrediction, Prediction, ScoringRule, TournamentWinnerPrediction


@admin.register(ScoringRule)
class ScoringRuleAdmin(admin.ModelAdmin):
    list_display = ('rule_type', 'tournament', 'points', 'updated_at')
    list_editable = ('points',)
    list_filter = ('rule_type', 'tournament')


@admin.register(Prediction)
class PredictionAdmin(admin.ModelAdmin):
    list_display = (
        'user',
        'match',
        'team1_score',
        'team2_score',
        'points_earned',
        'rule_applied',
        'scored_at',
    )
    list_filter = ('rule_applied', 'match__tournament', 'match__status')
    search_fields = ('user__username', 'match__team1__name', 'match__team2__name')
    readonly_fields = ('points_earned', 'rule_applied', 'scored_at', 'created_at', 'updated_at')
    raw_id_fields = ('user', 'match')


@admin.register(TournamentWinnerPrediction)
class TournamentWinnerPredictionAdmin(admin.ModelAdmin):
    list_display = ('user', 'tournament', 'team', 'points_earned', 'awarded_at')
    list_filter = ('tournament',)
    search_fields = ('user__username', 'team__name')
    readonly_fields = ('points_earned', 'awarded_at')
    raw_id_fields = ('user',)


@admin.register(AwardPrediction)
class AwardPredictionAdmin(admin.ModelAdmin):
    list_display = (
        'user',
        'tournament',
        'best_player',
        'best_player_points',
        'best_goal_scorer',
        'best_goal_scorer_points',
    )
    list_filter = ('tournament',)
    search_fields = ('user__username',)
    readonly_fields = (
        'best_player_points',
        'best_player_awarded_at',
        'best_goal_scorer_points',
        'best_goal_scorer_awarded_at',
    )
    raw_id_fields = ('user',)
